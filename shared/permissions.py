"""
Capability lookup — which operation categories a scope may perform.

Pure functions over two static tables, one per scope source. Roles and API
key permission levels are kept in separate tables: both enums have a
``READ_ONLY`` member with the same string value, and a single dict keyed by
str-enums would silently merge them.

    Scope source                  READ  WRITE  DELETE  MANAGE_KEYS
    Role ADMIN                    yes   yes    yes     yes
    Role USER                     yes   yes    yes     no
    Role READ_ONLY                yes   no     no      no
    ApiKeyPermission READ_ONLY    yes   no     no      no
    ApiKeyPermission READ_WRITE   yes   yes    no      no
    ApiKeyPermission FULL_ACCESS  yes   yes    yes     yes

Unknown scopes get no capabilities.

Operations on the caller's own API keys use require_key_management(): the
ordinary category check, plus MANAGE_KEYS when the scope came from an API key.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Union

from errors import ForbiddenError
from schemas.models.api_key import ApiKeyPermission
from schemas.models.user import UserRole

if TYPE_CHECKING:
    from services.authentication import Principal

Scope = Union[UserRole, ApiKeyPermission]


class Capability(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    MANAGE_KEYS = "manage_keys"


_ALL = frozenset(Capability)
_READ_ONLY = frozenset({Capability.READ})
_READ_WRITE = frozenset({Capability.READ, Capability.WRITE})

ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.ADMIN: _ALL,
    UserRole.USER: frozenset({Capability.READ, Capability.WRITE, Capability.DELETE}),
    UserRole.READ_ONLY: _READ_ONLY,
}

API_KEY_CAPABILITIES: dict[ApiKeyPermission, frozenset[Capability]] = {
    ApiKeyPermission.READ_ONLY: _READ_ONLY,
    ApiKeyPermission.READ_WRITE: _READ_WRITE,
    ApiKeyPermission.FULL_ACCESS: _ALL,
}


def capabilities_for(scope: object) -> frozenset[Capability]:
    """Return the capability set for *scope* (empty for anything unknown)."""
    if isinstance(scope, UserRole):
        return ROLE_CAPABILITIES.get(scope, frozenset())
    if isinstance(scope, ApiKeyPermission):
        return API_KEY_CAPABILITIES.get(scope, frozenset())
    return frozenset()


def has_capability(scope: object, capability: Capability) -> bool:
    return capability in capabilities_for(scope)


def require_capability(principal: "Principal", capability: Capability) -> None:
    """Raise ForbiddenError unless *principal*'s scope grants *capability*."""
    if not has_capability(principal.scope, capability):
        raise ForbiddenError(
            f"Insufficient permissions: {capability.value} access required"
        )


def require_key_management(principal: "Principal", capability: Capability) -> None:
    """Gate an operation on the caller's own API keys.

    The operation's category (*capability*) is checked against the scope as
    usual. A caller that authenticated with an API key must additionally hold
    MANAGE_KEYS, so a key can never mint, list or revoke keys unless it was
    issued with FULL_ACCESS.
    """
    require_capability(principal, capability)
    if isinstance(principal.scope, ApiKeyPermission):
        require_capability(principal, Capability.MANAGE_KEYS)
