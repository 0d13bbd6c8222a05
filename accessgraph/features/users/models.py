"""
User entity: assigned roles plus direct permission grants and denials.
"""
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from accessgraph.core.exceptions import EntityValidationError
from accessgraph.core.identifiers import PermissionId, RoleId, UserId


_email_adapter = TypeAdapter(EmailStr)


def normalize_email(value: str) -> str:
    """
    Validate an email address and return its lower-cased form.

    Raises:
        EntityValidationError: If the address is malformed
    """
    try:
        email = _email_adapter.validate_python(value)
    except ValidationError:
        raise EntityValidationError(f"Invalid email: {value}") from None
    return email.lower()


def _require_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise EntityValidationError("User name cannot be empty")
    return name.strip()


class User:
    """
    Authorization subject.

    A permission id is never held in both ``direct_permission_grants`` and
    ``direct_permission_denials``: granting clears a denial and denying
    clears a grant.
    """

    def __init__(
        self,
        id: UserId,
        name: str,
        email: str,
        created_at: Optional[datetime] = None,
        assigned_roles: Iterable[RoleId] = (),
        direct_permission_grants: Iterable[PermissionId] = (),
        direct_permission_denials: Iterable[PermissionId] = (),
    ):
        self.id = UserId.coerce(id)
        self._name = _require_name(name)
        self.email = normalize_email(email)
        self.created_at = created_at or datetime.now(timezone.utc)
        self._assigned_roles: set[RoleId] = {RoleId.coerce(rid) for rid in assigned_roles}
        self._grants: set[PermissionId] = {
            PermissionId.coerce(pid) for pid in direct_permission_grants
        }
        self._denials: set[PermissionId] = {
            PermissionId.coerce(pid) for pid in direct_permission_denials
        }
        overlap = self._grants & self._denials
        if overlap:
            raise EntityValidationError(
                "Permissions cannot be both granted and denied: "
                + ", ".join(sorted(str(pid) for pid in overlap))
            )

    @classmethod
    def create(cls, name: str, email: str) -> "User":
        """Create a new user with a generated id and the current timestamp."""
        return cls(UserId.generate(), name, email)

    @property
    def name(self) -> str:
        return self._name

    @property
    def assigned_roles(self) -> frozenset[RoleId]:
        return frozenset(self._assigned_roles)

    @property
    def direct_permission_grants(self) -> frozenset[PermissionId]:
        return frozenset(self._grants)

    @property
    def direct_permission_denials(self) -> frozenset[PermissionId]:
        return frozenset(self._denials)

    def rename(self, name: str) -> None:
        self._name = _require_name(name)

    # --- Roles ---

    def assign_role(self, role_id: RoleId) -> None:
        self._assigned_roles.add(RoleId.coerce(role_id))

    def unassign_role(self, role_id: RoleId) -> None:
        self._assigned_roles.discard(RoleId.coerce(role_id))

    def has_role(self, role_id: RoleId) -> bool:
        return RoleId.coerce(role_id) in self._assigned_roles

    def sync_roles(self, role_ids: Iterable[RoleId]) -> None:
        """Replace the assigned roles with exactly ``role_ids``."""
        self._assigned_roles = {RoleId.coerce(rid) for rid in role_ids}

    # --- Direct permissions ---

    def grant_direct_permission(self, permission_id: PermissionId) -> None:
        permission_id = PermissionId.coerce(permission_id)
        self._denials.discard(permission_id)
        self._grants.add(permission_id)

    def deny_direct_permission(self, permission_id: PermissionId) -> None:
        permission_id = PermissionId.coerce(permission_id)
        self._grants.discard(permission_id)
        self._denials.add(permission_id)

    def revoke_direct_permission(self, permission_id: PermissionId) -> None:
        """Drop any direct grant or denial for the permission."""
        permission_id = PermissionId.coerce(permission_id)
        self._grants.discard(permission_id)
        self._denials.discard(permission_id)

    def has_direct_grant(self, permission_id: PermissionId) -> bool:
        return PermissionId.coerce(permission_id) in self._grants

    def has_direct_denial(self, permission_id: PermissionId) -> bool:
        return PermissionId.coerce(permission_id) in self._denials

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"
