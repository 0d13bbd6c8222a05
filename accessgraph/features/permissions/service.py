"""
Permission management use cases.

Each function works against an AccessSnapshot and mutates it in place; the
caller persists the touched entities afterwards.
"""
from typing import Optional, Union

from accessgraph.core.exceptions import DuplicateEntityError, EntityValidationError
from accessgraph.core.identifiers import PermissionId
from accessgraph.core.snapshot import AccessSnapshot
from accessgraph.features.permissions.graph import PermissionGraphService
from accessgraph.features.permissions.models import (
    Permission,
    Scoped,
    TargetSpec,
    target_from_fields,
)
from accessgraph.features.permissions.schemas import (
    PermissionCreate,
    PermissionHierarchyResponse,
    PermissionResponse,
    PermissionUpdate,
)
from accessgraph.utils import get_logger


log = get_logger(__name__)

permission_graph = PermissionGraphService()


def _describe(action: str, resource_type: str, target: TargetSpec) -> str:
    return f"{action}:{resource_type}:{target}"


def create_permission(snapshot: AccessSnapshot, data: PermissionCreate) -> Permission:
    """
    Create a new permission.

    Raises:
        DuplicateEntityError: If a permission with the same action, resource
            type and target already exists
    """
    target = data.to_target()
    existing = snapshot.find_permission_by_key(data.action, data.resource_type, target)
    if existing is not None:
        log.warning(f"Duplicate permission {_describe(data.action, data.resource_type, target)}")
        raise DuplicateEntityError(
            f"Permission {_describe(data.action, data.resource_type, target)} already exists"
        )

    permission = Permission.create(data.action, data.resource_type, target, data.description)
    snapshot.add_permission(permission)
    log.info(f"Permission created: {permission.id} {_describe(permission.action, permission.resource_type, target)}")
    return permission


def _resolve_updated_target(permission: Permission, data: PermissionUpdate) -> Optional[TargetSpec]:
    """Work out the new target from an update, or None to keep the current one."""
    fields = data.model_fields_set

    if data.target_id is not None:
        return target_from_fields(target_id=data.target_id)
    if data.scope is not None:
        return target_from_fields(scope=data.scope)

    currently_scoped = isinstance(permission.target, Scoped)
    if "target_id" in fields and not currently_scoped:
        raise EntityValidationError(
            "Cannot clear target_id without providing a scope"
        )
    if "scope" in fields and currently_scoped:
        raise EntityValidationError(
            "Cannot clear scope without providing a target_id"
        )
    return None


def update_permission(
    snapshot: AccessSnapshot,
    permission_id: Union[PermissionId, str],
    data: PermissionUpdate,
) -> Permission:
    """
    Update a permission's definition.

    Raises:
        EntityNotFoundError: If the permission does not exist
        EntityValidationError: If the update would leave no target and no scope
        DuplicateEntityError: If the new definition collides with another permission
    """
    permission = snapshot.get_permission(permission_id)
    target = _resolve_updated_target(permission, data)
    if target is None:
        target = permission.target
    action = data.action if data.action is not None else permission.action
    resource_type = data.resource_type if data.resource_type is not None else permission.resource_type

    existing = snapshot.find_permission_by_key(action, resource_type, target)
    if existing is not None and existing.id != permission.id:
        raise DuplicateEntityError(
            f"Permission {_describe(action.lower(), resource_type.lower(), target)} already exists"
        )

    permission.update(
        action=data.action,
        resource_type=data.resource_type,
        target=target,
        description=data.description,
    )
    log.info(f"Permission updated: {permission.id}")
    return permission


def delete_permission(snapshot: AccessSnapshot, permission_id: Union[PermissionId, str]) -> None:
    """
    Delete a permission and strip every reference to it.

    References are removed from role grants, user grants and denials, and
    the parent sets of other permissions.
    """
    permission = snapshot.get_permission(permission_id)

    for role in snapshot.roles.values():
        role.revoke_permission(permission.id)
    for user in snapshot.users.values():
        user.revoke_direct_permission(permission.id)
    for other in snapshot.permissions.values():
        other.remove_parent_permission(permission.id)

    del snapshot.permissions[permission.id]
    log.info(f"Permission deleted: {permission.id}")


def set_permission_parent(
    snapshot: AccessSnapshot,
    permission_id: Union[PermissionId, str],
    parent_permission_id: Union[PermissionId, str],
) -> Permission:
    """
    Make ``parent_permission_id`` a required permission of ``permission_id``.

    Raises:
        EntityNotFoundError: If either permission does not exist
        HierarchyIntegrityError: If the link would create a cycle
    """
    permission = snapshot.get_permission(permission_id)
    parent = snapshot.get_permission(parent_permission_id)
    permission_graph.link_parent(permission, parent.id, snapshot.permissions)
    log.info(f"Permission {permission.id} now requires {parent.id}")
    return permission


def remove_permission_parent(
    snapshot: AccessSnapshot,
    permission_id: Union[PermissionId, str],
    parent_permission_id: Union[PermissionId, str],
) -> Permission:
    permission = snapshot.get_permission(permission_id)
    permission.remove_parent_permission(PermissionId.coerce(parent_permission_id))
    return permission


def get_permission_hierarchy(
    snapshot: AccessSnapshot,
    permission_id: Union[PermissionId, str],
) -> PermissionHierarchyResponse:
    """Get a permission together with its dependencies and its dependents."""
    permission = snapshot.get_permission(permission_id)
    ancestor_ids = permission_graph.dependencies(permission, snapshot.permissions)
    descendant_ids = permission_graph.descendants(permission, snapshot.permissions)

    def responses(ids):
        return [
            PermissionResponse.from_entity(snapshot.permissions[pid])
            for pid in sorted(ids)
            if pid in snapshot.permissions
        ]

    return PermissionHierarchyResponse(
        permission=PermissionResponse.from_entity(permission),
        ancestors=responses(ancestor_ids),
        descendants=responses(descendant_ids),
    )
