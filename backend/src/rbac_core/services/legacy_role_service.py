"""Migration of legacy free-text roles into the assignment ledger.

Actors carried over from the pre-RBAC user model hold a single role string.
Decisions never read that string; this service converts it once into an
assignment of the RBAC role with the same meaning.
"""

import logging
from collections.abc import Awaitable
from typing import TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import Settings, get_settings
from rbac_core.constants.permissions import LEGACY_ROLE_MAPPING
from rbac_core.models.domain.assignment import AssignmentState, next_state_on_assign
from rbac_core.models.orm.actor_role import ActorRoleORM
from rbac_core.models.orm.base import utcnow
from rbac_core.repositories.actor_repository import ActorRepository
from rbac_core.repositories.assignment_repository import AssignmentRepository
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.utils.security_events import SecurityEventType, log_security_event
from rbac_core.utils.store import run_store_call

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LegacyMigrationSummary(BaseModel):
    """Outcome of a legacy role migration run."""

    migrated: int = 0
    already_assigned: int = 0
    skipped: int = 0
    errors: list[str] = []


class LegacyRoleMigrationService:
    """Converts legacy role strings into active role assignments."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        """Initialize service with database session."""
        self.session = session
        self.settings = settings or get_settings()
        self.actor_repo = ActorRepository(session)
        self.role_repo = RoleRepository(session)
        self.assignment_repo = AssignmentRepository(session)

    async def migrate(self, assigned_by: int | None = None) -> LegacyMigrationSummary:
        """Assign each active actor the RBAC role matching its legacy string.

        Unknown strings are skipped. A mapped role missing from the catalog is
        reported as an error. Revoked assignments are reactivated instead of
        inserting a second row.

        Args:
            assigned_by: Actor recorded as the assigner

        Returns:
            Summary of the run

        Raises:
            StoreUnavailableError: If the store is unreachable or timed out
        """
        summary = LegacyMigrationSummary()
        migrated: list[tuple[int, int]] = []

        try:
            actors = await self._bounded(self.actor_repo.get_with_legacy_roles())
            roles = {
                r.name: r
                for r in await self._bounded(
                    self.role_repo.get_by_names(
                        sorted({name.value for name in LEGACY_ROLE_MAPPING.values()})
                    )
                )
            }

            for actor in actors:
                legacy = actor.legacy_role.strip().lower()
                role_name = LEGACY_ROLE_MAPPING.get(legacy)
                if role_name is None:
                    logger.warning(f"Actor {actor.id} has unknown legacy role '{legacy}', skipped")
                    summary.skipped += 1
                    continue

                role = roles.get(role_name.value)
                if role is None:
                    summary.errors.append(f"Role '{role_name.value}' not found for actor {actor.id}")
                    continue

                existing = await self._bounded(
                    self.assignment_repo.get_for_actor_and_role(actor.id, role.id)
                )
                current = AssignmentState.of(existing.is_active if existing else None)
                if current is AssignmentState.ACTIVE:
                    summary.already_assigned += 1
                    continue
                next_state_on_assign(current, actor.id, role.id)

                now = utcnow()
                if existing is None:
                    self.session.add(
                        ActorRoleORM(
                            actor_id=actor.id,
                            role_id=role.id,
                            assigned_at=now,
                            assigned_by=assigned_by,
                            is_active=True,
                        )
                    )
                else:
                    existing.is_active = True
                    existing.assigned_at = now
                    existing.assigned_by = assigned_by
                    existing.expires_at = None

                migrated.append((actor.id, role.id))
                summary.migrated += 1

            await self._bounded(self.session.flush())
            await self._bounded(self.session.commit())
        except Exception:
            await self.session.rollback()
            raise

        for actor_id, role_id in migrated:
            log_security_event(
                SecurityEventType.ROLE_ASSIGNED,
                actor_id=assigned_by,
                target_actor_id=actor_id,
                details={"role_id": role_id, "source": "legacy_role"},
            )

        logger.info(
            f"Legacy role migration: {summary.migrated} migrated, "
            f"{summary.already_assigned} already assigned, {summary.skipped} skipped, "
            f"{len(summary.errors)} errors"
        )
        return summary

    async def _bounded(self, call: Awaitable[T]) -> T:
        """Bound a single store call of the migration."""
        return await run_store_call(call, self.settings.store_timeout_seconds)
