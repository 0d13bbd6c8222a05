"""
Authorization decision procedure.

Combines a user's direct denials, direct grants and role-derived permissions:
1. Direct denial: first denied permission matching the request -> DENY
2. Direct grant: first granted permission matching the request -> ALLOW
3. Roles: no roles -> DENY; otherwise the first effective permission
   matching the request -> ALLOW, else DENY

An explicit denial always wins, and direct grants bypass role inheritance.
Candidates within a stage are evaluated in identifier order so the reported
provenance is stable.
"""
from typing import Iterable, List, Optional, Union

from accessgraph.core import config
from accessgraph.core.exceptions import EntityValidationError
from accessgraph.core.identifiers import PermissionId, UserId
from accessgraph.core.snapshot import AccessSnapshot
from accessgraph.features.authorization.schemas import (
    AuthorizationDecision,
    DecisionReason,
    PermissionCheckRequest,
    PermissionCheckResponse,
)
from accessgraph.features.permissions.evaluator import PermissionContext, PermissionEvaluator
from accessgraph.features.permissions.models import Permission
from accessgraph.features.permissions.schemas import PermissionResponse
from accessgraph.features.roles.graph import RoleGraphService
from accessgraph.utils import get_logger


log = get_logger(__name__)


def _canonical_owner(resource_owner_id: Optional[str]) -> Optional[str]:
    """Canonical user id form of an owner id; values that are not ids pass through."""
    if resource_owner_id is None:
        return None
    try:
        return str(UserId.coerce(resource_owner_id))
    except EntityValidationError:
        return resource_owner_id


class AuthorizationService:
    """Answers "may this user do this" against an AccessSnapshot."""

    def __init__(
        self,
        role_graph: Optional[RoleGraphService] = None,
        evaluator: Optional[PermissionEvaluator] = None,
    ):
        self.role_graph = role_graph or RoleGraphService()
        self.evaluator = evaluator or PermissionEvaluator()

    def _load_permissions(
        self, snapshot: AccessSnapshot, permission_ids: Iterable[PermissionId]
    ) -> List[Permission]:
        # Missing ids raise EntityNotFoundError rather than silently not matching
        return [snapshot.get_permission(pid) for pid in sorted(permission_ids)]

    def check(
        self,
        snapshot: AccessSnapshot,
        user_id: Union[UserId, str],
        action: str,
        resource_type: str,
        *,
        resource_owner_id: Optional[str] = None,
        team_id: Optional[str] = None,
        organization_id: Optional[str] = None,
        specific_resource_id: Optional[str] = None,
    ) -> AuthorizationDecision:
        """
        Decide whether a user may perform ``action`` on ``resource_type``.

        Args:
            snapshot: Roles, permissions and users to decide against
            user_id: The already-authenticated subject
            action: Requested action
            resource_type: Requested resource type
            resource_owner_id: Owner of the resource, for "own" scope
            team_id: Team of the resource, for "team" scope
            organization_id: Organization of the resource, for "org" scope
            specific_resource_id: Resource instance id, for specific targets

        Returns:
            AuthorizationDecision; a DENY is a normal result, not an error

        Raises:
            EntityNotFoundError: If the user, an assigned role or a referenced
                permission is missing from the snapshot
        """
        user = snapshot.get_user(user_id)
        context = PermissionContext(
            subject_id=str(user.id),
            action=action,
            resource_type=resource_type,
            resource_owner_id=_canonical_owner(resource_owner_id),
            team_id=team_id,
            organization_id=organization_id,
            specific_resource_id=specific_resource_id,
        )
        decision = self._decide(snapshot, user, context)
        self._audit(context, decision)
        return decision

    def _decide(self, snapshot: AccessSnapshot, user, context: PermissionContext) -> AuthorizationDecision:
        # 1. Direct denials take precedence over everything
        denials = self._load_permissions(snapshot, user.direct_permission_denials)
        denied_by = self.evaluator.evaluate_any(denials, context)
        if denied_by is not None:
            return AuthorizationDecision(
                allowed=False,
                reason=DecisionReason.DIRECT_DENIAL,
                denied_by=str(denied_by.id),
            )

        # 2. Direct grants bypass role inheritance
        grants = self._load_permissions(snapshot, user.direct_permission_grants)
        granted_by = self.evaluator.evaluate_any(grants, context)
        if granted_by is not None:
            return AuthorizationDecision(
                allowed=True,
                reason=DecisionReason.DIRECT_GRANT,
                granted_by=str(granted_by.id),
            )

        # 3. Role-derived permissions
        if not user.assigned_roles:
            return AuthorizationDecision(allowed=False, reason=DecisionReason.NO_ROLES_ASSIGNED)

        roles = [snapshot.get_role(role_id) for role_id in sorted(user.assigned_roles)]
        effective_ids = self.role_graph.effective_permissions(roles, snapshot.roles)
        candidates = self._load_permissions(snapshot, effective_ids)
        granted_by = self.evaluator.evaluate_any(candidates, context)
        if granted_by is not None:
            return AuthorizationDecision(
                allowed=True,
                reason=DecisionReason.ROLE_GRANT,
                granted_by=str(granted_by.id),
            )

        return AuthorizationDecision(allowed=False, reason=DecisionReason.NO_MATCHING_PERMISSION)

    def _audit(self, context: PermissionContext, decision: AuthorizationDecision) -> None:
        if not (config.AUDIT_LOG_ALL or (config.AUDIT_LOG_DENIES and not decision.allowed)):
            return
        log.info(
            f"Audit: user={context.subject_id} action={context.action} "
            f"resource={context.resource_type}:{context.specific_resource_id} "
            f"allowed={decision.allowed} reason={decision.reason.value} "
            f"permission={decision.granted_by or decision.denied_by}"
        )

    def check_request(
        self, snapshot: AccessSnapshot, request: PermissionCheckRequest
    ) -> PermissionCheckResponse:
        """Schema-level entry point for an outer API layer."""
        decision = self.check(
            snapshot,
            request.user_id,
            request.action,
            request.resource_type,
            resource_owner_id=request.resource_owner_id,
            team_id=request.team_id,
            organization_id=request.organization_id,
            specific_resource_id=request.specific_resource_id,
        )
        granted_by = None
        if decision.granted_by is not None:
            granted_by = PermissionResponse.from_entity(snapshot.get_permission(decision.granted_by))
        return PermissionCheckResponse(
            has_permission=decision.allowed,
            reason=decision.reason,
            message=decision.message,
            granted_by=granted_by,
        )

    def user_effective_permissions(
        self, snapshot: AccessSnapshot, user_id: Union[UserId, str]
    ) -> List[Permission]:
        """
        Get every permission a user holds through roles, inherited ones included.

        Direct grants and denials are not part of this list.
        """
        user = snapshot.get_user(user_id)
        if not user.assigned_roles:
            return []
        roles = [snapshot.get_role(role_id) for role_id in sorted(user.assigned_roles)]
        effective_ids = self.role_graph.effective_permissions(roles, snapshot.roles)
        return self._load_permissions(snapshot, effective_ids)
