"""
Role entity.

Roles group permissions and inherit every permission held by their
ancestors through ``parent_roles`` edges.
"""
from datetime import datetime, timezone
from typing import Iterable, Optional

from accessgraph.core.exceptions import EntityValidationError, HierarchyIntegrityError
from accessgraph.core.identifiers import PermissionId, RoleId


def _require_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise EntityValidationError("Role name cannot be empty")
    return name.strip()


class Role:
    """
    Role with parent roles and directly granted permissions.

    Examples: Viewer, Editor (parent Viewer), Admin (parent Editor)
    """

    def __init__(
        self,
        id: RoleId,
        name: str,
        description: str = "",
        created_at: Optional[datetime] = None,
        parent_roles: Iterable[RoleId] = (),
        permissions: Iterable[PermissionId] = (),
    ):
        self.id = RoleId.coerce(id)
        self._name = _require_name(name)
        self.description = description or ""
        self.created_at = created_at or datetime.now(timezone.utc)
        self._parent_roles: set[RoleId] = {RoleId.coerce(rid) for rid in parent_roles}
        self._permissions: set[PermissionId] = {
            PermissionId.coerce(pid) for pid in permissions
        }
        if self.id in self._parent_roles:
            raise HierarchyIntegrityError("Role cannot be its own parent")

    @classmethod
    def create(cls, name: str, description: str = "") -> "Role":
        """Create a new role with a generated id and the current timestamp."""
        return cls(RoleId.generate(), name, description)

    @property
    def name(self) -> str:
        return self._name

    @property
    def parent_roles(self) -> frozenset[RoleId]:
        return frozenset(self._parent_roles)

    @property
    def permissions(self) -> frozenset[PermissionId]:
        return frozenset(self._permissions)

    def rename(self, name: str) -> None:
        self._name = _require_name(name)

    def update_description(self, description: str) -> None:
        self.description = description or ""

    # --- Hierarchy ---

    def add_parent_role(self, parent_id: RoleId) -> None:
        """
        Add a direct parent. Adding an existing parent is a no-op.

        Only self-parenting is checked here; cycles through other roles are
        caught by RoleGraphService.link_parent, which needs the full graph.

        Raises:
            HierarchyIntegrityError: If ``parent_id`` is this role's own id
        """
        parent_id = RoleId.coerce(parent_id)
        if parent_id == self.id:
            raise HierarchyIntegrityError("Role cannot be its own parent")
        self._parent_roles.add(parent_id)

    def remove_parent_role(self, parent_id: RoleId) -> None:
        self._parent_roles.discard(RoleId.coerce(parent_id))

    def has_parent_role(self, parent_id: RoleId) -> bool:
        return RoleId.coerce(parent_id) in self._parent_roles

    # --- Permission grants ---

    def grant_permission(self, permission_id: PermissionId) -> None:
        self._permissions.add(PermissionId.coerce(permission_id))

    def revoke_permission(self, permission_id: PermissionId) -> None:
        self._permissions.discard(PermissionId.coerce(permission_id))

    def has_permission(self, permission_id: PermissionId) -> bool:
        return PermissionId.coerce(permission_id) in self._permissions

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Role):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self._name!r})>"
