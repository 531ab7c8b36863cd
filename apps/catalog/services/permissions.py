"""
Caller identity and the single owner-or-admin predicate shared by the
product, offer and promotion services.
"""

from dataclasses import dataclass
from typing import Optional

from apps.catalog.exceptions import Forbidden

ADMIN = 'Admin'
SELLER = 'Vendeur'
VISITOR = 'Visiteur'

ROLES = (ADMIN, SELLER, VISITOR)


@dataclass(frozen=True)
class Caller:
    """Verified (user id, role) pair supplied by the authentication layer."""
    user_id: int
    role: str = VISITOR

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    @property
    def can_sell(self) -> bool:
        return self.role in (ADMIN, SELLER)


def role_for_user(user) -> str:
    """Map a Django user onto a marketplace role."""
    if not user or not user.is_authenticated:
        return VISITOR
    if user.is_superuser or user.is_staff:
        return ADMIN
    group_names = set(user.groups.values_list('name', flat=True))
    if ADMIN in group_names:
        return ADMIN
    if SELLER in group_names:
        return SELLER
    return VISITOR


def caller_from_user(user) -> Caller:
    return Caller(user_id=user.pk, role=role_for_user(user))


def is_owner_or_admin(owner_id: int, user_id: int, role: Optional[str] = None) -> bool:
    """
    True when user_id owns the entity, or when role is the admin role.
    Pass role=None for owner-only checks.
    """
    if owner_id is not None and owner_id == user_id:
        return True
    return role == ADMIN


def ensure_owner_or_admin(owner_id: int, user_id: int, role: Optional[str] = None,
                          message: Optional[str] = None) -> None:
    if not is_owner_or_admin(owner_id, user_id, role):
        raise Forbidden(message or 'Accès non autorisé')
