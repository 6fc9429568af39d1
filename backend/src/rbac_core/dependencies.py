"""Centralized dependency injection factories for FastAPI."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.database import get_db
from rbac_core.services.authorization_service import AuthorizationService
from rbac_core.services.legacy_role_service import LegacyRoleMigrationService
from rbac_core.services.rbac_service import RbacService


def get_authorization_service(db: AsyncSession = Depends(get_db)) -> AuthorizationService:
    """Get AuthorizationService instance."""
    return AuthorizationService(db)


def get_rbac_service(db: AsyncSession = Depends(get_db)) -> RbacService:
    """Get RbacService instance."""
    return RbacService(db)


def get_legacy_role_service(db: AsyncSession = Depends(get_db)) -> LegacyRoleMigrationService:
    """Get LegacyRoleMigrationService instance."""
    return LegacyRoleMigrationService(db)
