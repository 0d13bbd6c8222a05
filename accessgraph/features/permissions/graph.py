"""
Permission hierarchy queries.

A permission's ``parent_permissions`` are the permissions it requires. The
dependency closure of a permission is everything reachable over those edges.
"""
from typing import Mapping

from accessgraph.core import hierarchy
from accessgraph.core.exceptions import HierarchyIntegrityError
from accessgraph.core.identifiers import PermissionId
from accessgraph.features.permissions.models import Permission
from accessgraph.utils import get_logger


log = get_logger(__name__)


def _parents_of(all_permissions: Mapping[PermissionId, Permission]) -> hierarchy.ParentLookup:
    def lookup(permission_id: PermissionId):
        permission = all_permissions.get(permission_id)
        return permission.parent_permissions if permission is not None else None

    return lookup


class PermissionGraphService:
    """Stateless queries over a permission map (permission id -> Permission)."""

    def dependencies(
        self,
        permission: Permission,
        all_permissions: Mapping[PermissionId, Permission],
    ) -> set[PermissionId]:
        """
        Resolve every transitively required permission (depth-first).

        Args:
            permission: The permission to resolve dependencies for
            all_permissions: Map of all permissions in the system

        Returns:
            Set of required permission ids, excluding ``permission`` itself
        """
        return hierarchy.collect_ancestors_dfs(permission.id, _parents_of(all_permissions))

    def descendants(
        self,
        permission: Permission,
        all_permissions: Mapping[PermissionId, Permission],
    ) -> set[PermissionId]:
        """
        Find every permission whose dependency closure contains ``permission``.

        Computes the dependencies of each candidate, so this is O(N * D).
        Meant for hierarchy inspection, not per-request checks.
        """
        return {
            candidate.id
            for candidate in all_permissions.values()
            if candidate.id != permission.id
            and permission.id in self.dependencies(candidate, all_permissions)
        }

    def implies(
        self,
        permission: Permission,
        target_id: PermissionId,
        all_permissions: Mapping[PermissionId, Permission],
    ) -> bool:
        """True if ``target_id`` is ``permission`` itself or one of its dependencies."""
        target_id = PermissionId.coerce(target_id)
        if permission.id == target_id:
            return True
        return target_id in self.dependencies(permission, all_permissions)

    def all_required(
        self,
        permission: Permission,
        all_permissions: Mapping[PermissionId, Permission],
    ) -> set[PermissionId]:
        """Dependencies of ``permission`` plus the permission itself."""
        required = self.dependencies(permission, all_permissions)
        required.add(permission.id)
        return required

    def detect_cycle(
        self,
        permission: Permission,
        all_permissions: Mapping[PermissionId, Permission],
    ) -> bool:
        return hierarchy.has_cycle(permission.id, _parents_of(all_permissions))

    def would_create_cycle(
        self,
        child: Permission,
        candidate_parent: PermissionId,
        all_permissions: Mapping[PermissionId, Permission],
    ) -> bool:
        """
        Check whether adding ``candidate_parent`` to ``child`` would close a cycle.

        Works on a hypothetical copy of the parent edges; nothing is mutated.
        """
        candidate_parent = PermissionId.coerce(candidate_parent)
        parents = {pid: p.parent_permissions for pid, p in all_permissions.items()}
        parents[child.id] = child.parent_permissions
        hypothetical = hierarchy.with_extra_parent(parents, child.id, candidate_parent)
        return hierarchy.has_cycle(child.id, hierarchy.parent_lookup(hypothetical))

    def link_parent(
        self,
        child: Permission,
        parent_id: PermissionId,
        all_permissions: Mapping[PermissionId, Permission],
    ) -> None:
        """
        Add ``parent_id`` as a required permission of ``child``.

        Raises:
            HierarchyIntegrityError: If the link is a self-reference or would
                create a cycle; ``child`` is left unchanged
        """
        parent_id = PermissionId.coerce(parent_id)
        if parent_id == child.id:
            raise HierarchyIntegrityError("Permission cannot be its own parent")
        if self.would_create_cycle(child, parent_id, all_permissions):
            log.warning(f"Rejected permission parent {parent_id} for {child.id}: cycle")
            raise HierarchyIntegrityError(
                "Cannot set parent permission: would create circular dependency "
                "in permission hierarchy"
            )
        child.add_parent_permission(parent_id)

    def validate_integrity(self, all_permissions: Mapping[PermissionId, Permission]) -> bool:
        for permission in all_permissions.values():
            if self.detect_cycle(permission, all_permissions):
                log.warning(f"Permission hierarchy cycle detected through {permission.id}")
                return False
        return True
