import enum
from typing import Iterable, Optional

from storefront.errors import Forbidden, Unauthenticated


class Permission(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    ITEMCREATE = "ITEMCREATE"
    ITEMUPDATE = "ITEMUPDATE"
    ITEMDELETE = "ITEMDELETE"
    PERMISSIONUPDATE = "PERMISSIONUPDATE"


DEFAULT_PERMISSIONS = [Permission.USER.value]


def _names(perms: Iterable) -> set:
    return {p.value if isinstance(p, Permission) else str(p) for p in perms}


def require_identity(identity):
    """Return ``identity`` or raise Unauthenticated for anonymous requests."""
    if identity is None:
        raise Unauthenticated()
    return identity


def has_permission(identity, required_any_of: Iterable) -> bool:
    return bool(_names(identity.permissions) & _names(required_any_of))


def authorize(identity, required_any_of: Iterable):
    """
    Raise Forbidden unless the identity holds at least one of the required
    permissions. Callers handle the anonymous case first.
    """
    required = _names(required_any_of)
    if not has_permission(identity, required):
        raise Forbidden(
            f"You do not have sufficient permissions: {sorted(required)}"
        )


def owns(identity, owner_id: Optional[int]) -> bool:
    return owner_id is not None and identity.id == owner_id


def authorize_owner_or(identity, owner_id: Optional[int], required_any_of: Iterable):
    """Permit the owner of a resource, or anyone holding an overriding permission."""
    require_identity(identity)
    if owns(identity, owner_id) or has_permission(identity, required_any_of):
        return
    raise Forbidden()
