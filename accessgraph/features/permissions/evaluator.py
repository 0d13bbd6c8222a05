"""
Context-aware permission evaluation.

Decides whether a single permission grants a request, taking into account:
- Resource matching (exact match or wildcard resource type)
- Action implication (manage implies every action)
- Target resolution (specific resource id or wildcard)
- Dynamic scope resolution (own / team / org / global)
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from accessgraph.core.exceptions import EntityValidationError
from accessgraph.features.permissions.models import (
    MANAGE_ACTION,
    WILDCARD,
    Permission,
    ScopeLevel,
    Scoped,
    Specific,
    Wildcard,
    normalize_token,
)
from accessgraph.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class PermissionContext:
    """
    Runtime attributes of one authorization request.

    Attributes:
        subject_id: The user attempting the action
        action: Requested action (e.g. "read", "update")
        resource_type: Requested resource type (e.g. "document")
        resource_owner_id: Owner of the resource, for "own" scope
        team_id: Team the resource belongs to, for "team" scope
        organization_id: Organization the resource belongs to, for "org" scope
        specific_resource_id: Id of the resource instance, for specific targets
    """

    subject_id: str
    action: str
    resource_type: str
    resource_owner_id: Optional[str] = None
    team_id: Optional[str] = None
    organization_id: Optional[str] = None
    specific_resource_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.subject_id is None or not str(self.subject_id).strip():
            raise EntityValidationError("Context subject_id cannot be empty")
        object.__setattr__(self, "subject_id", str(self.subject_id))
        object.__setattr__(self, "action", normalize_token(self.action, "Action"))
        object.__setattr__(
            self, "resource_type", normalize_token(self.resource_type, "Resource type")
        )


def resource_matches(permission_resource_type: str, requested_resource_type: str) -> bool:
    """The wildcard resource type matches any requested resource type."""
    if permission_resource_type == WILDCARD:
        return True
    return permission_resource_type == requested_resource_type


def action_implies(granted_action: str, requested_action: str) -> bool:
    """``manage`` implies every action; any other action implies only itself."""
    if granted_action == MANAGE_ACTION:
        return True
    return granted_action == requested_action


def scope_matches(level: ScopeLevel, context: PermissionContext) -> bool:
    """
    Resolve a dynamic scope against the request context.

    - global: always matches
    - org: the context carries a non-empty organization id
    - team: the context carries a non-empty team id
    - own: the resource owner is the subject
    """
    if level is ScopeLevel.GLOBAL:
        return True
    if level is ScopeLevel.ORG:
        return bool(context.organization_id)
    if level is ScopeLevel.TEAM:
        return bool(context.team_id)
    if level is ScopeLevel.OWN:
        return (
            context.resource_owner_id is not None
            and str(context.resource_owner_id) == context.subject_id
        )
    return False


class PermissionEvaluator:
    """Evaluates candidate permissions against a PermissionContext."""

    def evaluate(self, permission: Permission, context: PermissionContext) -> bool:
        """
        Check whether ``permission`` grants the request described by ``context``.

        Stages run in order and stop at the first failure: resource match,
        action implication, target/scope resolution.
        """
        if not resource_matches(permission.resource_type, context.resource_type):
            log.debug(
                f"Resource mismatch: {permission.id} covers {permission.resource_type}, "
                f"requested {context.resource_type}"
            )
            return False

        if not action_implies(permission.action, context.action):
            log.debug(
                f"Action mismatch: {permission.id} grants {permission.action}, "
                f"requested {context.action}"
            )
            return False

        return self._evaluate_target(permission, context)

    def _evaluate_target(self, permission: Permission, context: PermissionContext) -> bool:
        target = permission.target

        if isinstance(target, Wildcard):
            return True

        if isinstance(target, Specific):
            matched = target.value == context.specific_resource_id
            if not matched:
                log.debug(
                    f"Target mismatch: {permission.id} targets {target.value}, "
                    f"requested {context.specific_resource_id}"
                )
            return matched

        if isinstance(target, Scoped):
            matched = scope_matches(target.level, context)
            if not matched:
                log.debug(f"Scope {target.level.value} not satisfied for {permission.id}")
            return matched

        # Fail closed on anything that is not a known target shape
        log.warning(f"Permission {permission.id} has no usable target: {target!r}")
        return False

    def evaluate_any(
        self,
        permissions: Iterable[Permission],
        context: PermissionContext,
    ) -> Optional[Permission]:
        """
        Find the first permission that grants the request.

        Returns:
            The first matching permission in iteration order, or None
        """
        for permission in permissions:
            if self.evaluate(permission, context):
                return permission
        return None

    def has_permission(
        self,
        permissions: Iterable[Permission],
        context: PermissionContext,
    ) -> bool:
        return self.evaluate_any(permissions, context) is not None
