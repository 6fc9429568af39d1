"""Access to the authenticated actor.

Authentication happens outside this package. The outer layer stores the
directory ID of the authenticated actor on ``request.state.actor_id``;
an absent or unusable value means the request is unauthenticated.
"""

from fastapi import Request


def get_current_actor_id(request: Request) -> int | None:
    """Get the authenticated actor ID for a request.

    Args:
        request: FastAPI request

    Returns:
        Actor ID, or None if the request is unauthenticated
    """
    actor_id = getattr(request.state, "actor_id", None)
    if isinstance(actor_id, bool) or not isinstance(actor_id, int):
        return None
    return actor_id
