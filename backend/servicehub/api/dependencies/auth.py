# backend/servicehub/api/dependencies/auth.py
"""
Actor resolution and authorization gating.

Authentication happens upstream; the gateway forwards the resolved actor in
the X-Actor-Id and X-Actor-Role headers. Providers are mapped to the
businesses they own so ownership checks need no further lookups.
"""

from dataclasses import dataclass, field
import logging
from typing import FrozenSet, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ...core.enums import RoleName
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...models.booking import Booking
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    actor_id: str
    role: RoleName
    business_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    def can_manage_business(self, business_id: str) -> bool:
        return self.is_admin or business_id in self.business_ids

    def can_manage_booking(self, booking: Booking) -> bool:
        return self.can_manage_business(booking.business_id)


def get_auth_context(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> AuthContext:
    if not x_actor_id or not x_actor_role:
        raise UnauthorizedException("Authentication required", code="NOT_AUTHENTICATED")
    try:
        role = RoleName(x_actor_role.strip().lower())
    except ValueError:
        raise UnauthorizedException(
            f"Unknown role: {x_actor_role}",
            code="UNKNOWN_ROLE",
            details={"allowed": [r.value for r in RoleName]},
        )

    business_ids: FrozenSet[str] = frozenset()
    if role == RoleName.PROVIDER:
        repo = RepositoryFactory.create_business_repository(db)
        business_ids = frozenset(repo.ids_owned_by(x_actor_id))
    return AuthContext(actor_id=x_actor_id, role=role, business_ids=business_ids)


def require_admin(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Dependency that ensures the caller has administrator privileges."""
    if not auth.is_admin:
        raise ForbiddenException("Admin access required", code="ADMIN_REQUIRED")
    return auth


def require_business_access(business_id: str, auth: AuthContext) -> None:
    if not auth.can_manage_business(business_id):
        raise ForbiddenException(
            "You do not have permission to access this provider",
            code="PROVIDER_ACCESS_DENIED",
        )
