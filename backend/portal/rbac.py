from portal.exceptions import AuthorizationError
from portal.models import Role


ROLE_LABELS = {
    Role.CLIENT: "Client",
    Role.ADMIN: "Admin",
}


def has_role(principal, role: Role) -> bool:
    """Check if a principal carries the given role"""
    return getattr(principal, "role", None) == role


def require_role(principal, role: Role):
    """Raise AuthorizationError unless the principal has the role"""
    if not has_role(principal, role):
        raise AuthorizationError(f"{ROLE_LABELS[role]} access required")
    return principal
