"""Bounded store calls.

Every engine and manager operation runs through ``run_store_call`` so a slow
or unreachable store surfaces as ``StoreUnavailableError``.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from rbac_core.exceptions import StoreUnavailableError

T = TypeVar("T")

# Errors that mean the store could not be reached, not that the query was wrong
UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, ConnectionError, OSError)


async def run_store_call(call: Awaitable[T], timeout: float) -> T:
    """Await a store call with a timeout.

    Args:
        call: Coroutine performing the store work
        timeout: Upper bound in seconds

    Returns:
        The call's result

    Raises:
        StoreUnavailableError: If the call timed out or the store is unreachable
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise StoreUnavailableError("Store operation timed out") from e
    except UNAVAILABLE_ERRORS as e:
        raise StoreUnavailableError() from e
