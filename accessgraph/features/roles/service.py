"""
Role management use cases.

Functions mutate the given AccessSnapshot in place. Referential cleanup on
delete (parent edges, user assignments) happens here, not in the graph
service.
"""
from typing import List, Union

from accessgraph.core.exceptions import DuplicateEntityError
from accessgraph.core.identifiers import PermissionId, RoleId
from accessgraph.core.snapshot import AccessSnapshot
from accessgraph.features.permissions.models import Permission
from accessgraph.features.roles.graph import RoleGraphService
from accessgraph.features.roles.models import Role
from accessgraph.features.roles.schemas import (
    RoleCreate,
    RoleHierarchyResponse,
    RoleResponse,
    RoleUpdate,
)
from accessgraph.utils import get_logger


log = get_logger(__name__)

role_graph = RoleGraphService()


def create_role(snapshot: AccessSnapshot, data: RoleCreate) -> Role:
    """
    Create a new role.

    Raises:
        DuplicateEntityError: If a role with the same name already exists
    """
    if snapshot.find_role_by_name(data.name) is not None:
        log.warning(f"Duplicate role name {data.name!r}")
        raise DuplicateEntityError(f"Role with name {data.name} already exists")

    role = Role.create(data.name, data.description)
    snapshot.add_role(role)
    log.info(f"Role created: {role.id} {role.name!r}")
    return role


def update_role(snapshot: AccessSnapshot, role_id: Union[RoleId, str], data: RoleUpdate) -> Role:
    role = snapshot.get_role(role_id)
    if data.name is not None:
        existing = snapshot.find_role_by_name(data.name)
        if existing is not None and existing.id != role.id:
            raise DuplicateEntityError(f"Role with name {data.name} already exists")
        role.rename(data.name)
    if data.description is not None:
        role.update_description(data.description)
    return role


def delete_role(snapshot: AccessSnapshot, role_id: Union[RoleId, str]) -> None:
    """Delete a role after removing it from other roles' parents and from users."""
    role = snapshot.get_role(role_id)

    for other in snapshot.roles.values():
        if other.has_parent_role(role.id):
            other.remove_parent_role(role.id)
    for user in snapshot.users.values():
        user.unassign_role(role.id)

    del snapshot.roles[role.id]
    log.info(f"Role deleted: {role.id} {role.name!r}")


def set_role_parent(
    snapshot: AccessSnapshot,
    role_id: Union[RoleId, str],
    parent_role_id: Union[RoleId, str],
) -> Role:
    """
    Make ``parent_role_id`` a parent of ``role_id``.

    Raises:
        EntityNotFoundError: If either role does not exist
        HierarchyIntegrityError: If the link would create a cycle; nothing changes
    """
    role = snapshot.get_role(role_id)
    parent = snapshot.get_role(parent_role_id)
    role_graph.link_parent(role, parent.id, snapshot.roles)
    log.info(f"Role {role.name!r} now inherits from {parent.name!r}")
    return role


def remove_role_parent(
    snapshot: AccessSnapshot,
    role_id: Union[RoleId, str],
    parent_role_id: Union[RoleId, str],
) -> Role:
    role = snapshot.get_role(role_id)
    role.remove_parent_role(RoleId.coerce(parent_role_id))
    return role


def grant_permission_to_role(
    snapshot: AccessSnapshot,
    role_id: Union[RoleId, str],
    permission_id: Union[PermissionId, str],
) -> Role:
    role = snapshot.get_role(role_id)
    permission = snapshot.get_permission(permission_id)
    role.grant_permission(permission.id)
    log.debug(f"Granted {permission.id} to role {role.name!r}")
    return role


def revoke_permission_from_role(
    snapshot: AccessSnapshot,
    role_id: Union[RoleId, str],
    permission_id: Union[PermissionId, str],
) -> Role:
    role = snapshot.get_role(role_id)
    role.revoke_permission(PermissionId.coerce(permission_id))
    return role


def get_role_hierarchy(snapshot: AccessSnapshot, role_id: Union[RoleId, str]) -> RoleHierarchyResponse:
    """Get a role together with all ancestor and descendant roles."""
    role = snapshot.get_role(role_id)
    ancestor_ids = role_graph.ancestors(role, snapshot.roles)
    descendant_ids = role_graph.descendants(role, snapshot.roles)

    def responses(ids):
        return [
            RoleResponse.from_entity(snapshot.roles[rid])
            for rid in sorted(ids)
            if rid in snapshot.roles
        ]

    return RoleHierarchyResponse(
        role=RoleResponse.from_entity(role),
        ancestors=responses(ancestor_ids),
        descendants=responses(descendant_ids),
    )


def get_role_permissions(snapshot: AccessSnapshot, role_id: Union[RoleId, str]) -> List[Permission]:
    """
    Get the effective permissions of a role, inherited ones included.

    Raises:
        EntityNotFoundError: If the role or any granted permission is missing
    """
    role = snapshot.get_role(role_id)
    permission_ids = role_graph.effective_permissions([role], snapshot.roles)
    return [snapshot.get_permission(pid) for pid in sorted(permission_ids)]
