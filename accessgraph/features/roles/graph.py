"""
Role hierarchy queries.

Implements:
- Cycle detection and the "would this parent close a cycle" gate
- Ancestor / descendant resolution
- Effective permission aggregation over inherited roles
"""
from typing import Iterable, Mapping

from accessgraph.core import hierarchy
from accessgraph.core.exceptions import HierarchyIntegrityError
from accessgraph.core.identifiers import PermissionId, RoleId
from accessgraph.features.roles.models import Role
from accessgraph.utils import get_logger


log = get_logger(__name__)


def _parents_of(all_roles: Mapping[RoleId, Role]) -> hierarchy.ParentLookup:
    def lookup(role_id: RoleId):
        role = all_roles.get(role_id)
        return role.parent_roles if role is not None else None

    return lookup


class RoleGraphService:
    """
    Stateless queries over a role map.

    Every method takes the full ``all_roles`` map (role id -> Role) as a
    snapshot. Ids referenced by ``parent_roles`` but missing from the map are
    treated as dead ends.
    """

    def detect_cycle(self, role: Role, all_roles: Mapping[RoleId, Role]) -> bool:
        """
        Check whether a cycle is reachable from ``role`` over parent edges.

        Args:
            role: Role to start the depth-first search from
            all_roles: Map of all roles in the system

        Returns:
            True if a back edge is found
        """
        return hierarchy.has_cycle(role.id, _parents_of(all_roles))

    def ancestors(self, role: Role, all_roles: Mapping[RoleId, Role]) -> set[RoleId]:
        """
        Get every role reachable over parent edges (breadth-first).

        ``role`` itself is never included.
        """
        return hierarchy.collect_ancestors_bfs(role.id, _parents_of(all_roles))

    def descendants(self, role: Role, all_roles: Mapping[RoleId, Role]) -> set[RoleId]:
        """Get every role that has ``role`` among its ancestors."""
        return {
            candidate.id
            for candidate in all_roles.values()
            if candidate.id != role.id and role.id in self.ancestors(candidate, all_roles)
        }

    def would_create_cycle(
        self,
        child: Role,
        candidate_parent: RoleId,
        all_roles: Mapping[RoleId, Role],
    ) -> bool:
        """
        Check whether adding ``candidate_parent`` to ``child`` would close a cycle.

        Runs cycle detection on a hypothetical parent mapping; neither
        ``child`` nor any role in ``all_roles`` is modified.
        """
        candidate_parent = RoleId.coerce(candidate_parent)
        parents = {role_id: role.parent_roles for role_id, role in all_roles.items()}
        parents[child.id] = child.parent_roles
        hypothetical = hierarchy.with_extra_parent(parents, child.id, candidate_parent)
        return hierarchy.has_cycle(child.id, hierarchy.parent_lookup(hypothetical))

    def link_parent(
        self,
        child: Role,
        parent_id: RoleId,
        all_roles: Mapping[RoleId, Role],
    ) -> None:
        """
        Add ``parent_id`` as a parent of ``child`` if that keeps the graph acyclic.

        Raises:
            HierarchyIntegrityError: If the link is a self-reference or would
                create a cycle; ``child`` is left unchanged
        """
        parent_id = RoleId.coerce(parent_id)
        if parent_id == child.id:
            raise HierarchyIntegrityError("Role cannot be its own parent")
        if self.would_create_cycle(child, parent_id, all_roles):
            log.warning(f"Rejected role parent {parent_id} for role {child.id}: cycle")
            raise HierarchyIntegrityError(
                "Cannot set parent role: would create circular dependency in role hierarchy"
            )
        child.add_parent_role(parent_id)

    def effective_permissions(
        self,
        roles: Iterable[Role],
        all_roles: Mapping[RoleId, Role],
    ) -> set[PermissionId]:
        """
        Union of direct permissions of ``roles`` and of all their ancestors.

        Args:
            roles: Roles to calculate permissions for
            all_roles: Map of all roles in the system

        Returns:
            Set of all effective permission ids
        """
        effective: set[PermissionId] = set()
        for role in roles:
            effective.update(role.permissions)
            for ancestor_id in self.ancestors(role, all_roles):
                ancestor = all_roles.get(ancestor_id)
                if ancestor is not None:
                    effective.update(ancestor.permissions)
        return effective

    def validate_integrity(self, all_roles: Mapping[RoleId, Role]) -> bool:
        """True if no role in ``all_roles`` participates in a cycle."""
        for role in all_roles.values():
            if self.detect_cycle(role, all_roles):
                log.warning(f"Role hierarchy cycle detected through role {role.id}")
                return False
        return True
