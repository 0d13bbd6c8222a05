"""
Permission entity and its target specification.

A permission grants an action on a resource type, narrowed by exactly one
target specification:
- Specific(value): one concrete resource, e.g. "project:123"
- Wildcard(): every resource of the type
- Scoped(level): a dynamic breadth resolved from runtime context
  (own, team, org, global)

The target is a single tagged value, so a permission can never carry both a
fixed target and a dynamic scope, nor neither of them.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Union

from accessgraph.core.exceptions import EntityValidationError, HierarchyIntegrityError
from accessgraph.core.identifiers import PermissionId


# ============================================================================
# Constants
# ============================================================================

# The single elevated action: implies every other action
MANAGE_ACTION = "manage"

# Matches any resource type when used as a permission's resource type,
# and any resource instance when used as a target
WILDCARD = "*"


def normalize_token(value: str, field: str) -> str:
    """Strip and lower-case an action or resource type, rejecting blanks."""
    if not isinstance(value, str) or not value.strip():
        raise EntityValidationError(f"{field} cannot be empty")
    return value.strip().lower()


# ============================================================================
# Target specification
# ============================================================================

class ScopeLevel(str, Enum):
    """Dynamic scope levels, broadest last."""

    OWN = "own"
    TEAM = "team"
    ORG = "org"
    GLOBAL = "global"

    @classmethod
    def parse(cls, value: Union["ScopeLevel", str]) -> "ScopeLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(level.value for level in cls)
            raise EntityValidationError(
                f"Invalid scope level: {value}. Must be one of: {valid}"
            ) from None


@dataclass(frozen=True)
class Specific:
    """A single concrete resource identifier."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise EntityValidationError("Target value cannot be empty for specific target")
        object.__setattr__(self, "value", self.value.strip())
        if self.value == WILDCARD:
            raise EntityValidationError("Use Wildcard() for the '*' target")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Wildcard:
    """Every resource instance of the permission's resource type."""

    def __str__(self) -> str:
        return WILDCARD


@dataclass(frozen=True)
class Scoped:
    """A dynamic scope evaluated against the request context."""

    level: ScopeLevel

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", ScopeLevel.parse(self.level))

    def __str__(self) -> str:
        return f"scope:{self.level.value}"


TargetSpec = Union[Specific, Wildcard, Scoped]

TARGET_TYPES = (Specific, Wildcard, Scoped)


def target_from_fields(
    target_id: Optional[str] = None,
    scope: Optional[Union[ScopeLevel, str]] = None,
) -> TargetSpec:
    """
    Parse the nullable target/scope pair used at the edges of the system.

    Exactly one of ``target_id`` and ``scope`` must be given.

    Examples:
        target_from_fields(target_id="*")           -> Wildcard()
        target_from_fields(target_id="repo:42")     -> Specific("repo:42")
        target_from_fields(scope="team")            -> Scoped(ScopeLevel.TEAM)

    Raises:
        EntityValidationError: If both or neither are given
    """
    has_target = target_id is not None
    has_scope = scope is not None
    if has_target and has_scope:
        raise EntityValidationError(
            "target_id and scope are mutually exclusive; provide only one"
        )
    if not has_target and not has_scope:
        raise EntityValidationError(
            "Either target_id or scope must be provided (they are mutually exclusive)"
        )
    if has_target:
        if isinstance(target_id, str) and target_id.strip() == WILDCARD:
            return Wildcard()
        return Specific(target_id)
    return Scoped(ScopeLevel.parse(scope))


def _require_target(target: object) -> TargetSpec:
    if not isinstance(target, TARGET_TYPES):
        raise EntityValidationError(
            "Permission target must be exactly one of Specific, Wildcard or Scoped"
        )
    return target


# ============================================================================
# Entity
# ============================================================================

class Permission:
    """
    Permission to perform an action on a resource type.

    Examples:
    - action="read", resource_type="document", target=Scoped(ScopeLevel.OWN)
    - action="update", resource_type="repository", target=Wildcard()
    - action="manage", resource_type="*", target=Wildcard()
    """

    def __init__(
        self,
        id: PermissionId,
        action: str,
        resource_type: str,
        target: TargetSpec,
        description: str = "",
        created_at: Optional[datetime] = None,
        parent_permissions: Iterable[PermissionId] = (),
    ):
        self.id = PermissionId.coerce(id)
        self._action = normalize_token(action, "Action")
        self._resource_type = normalize_token(resource_type, "Resource type")
        self._target = _require_target(target)
        self.description = description or ""
        self.created_at = created_at or datetime.now(timezone.utc)
        self._parent_permissions: set[PermissionId] = {
            PermissionId.coerce(pid) for pid in parent_permissions
        }
        if self.id in self._parent_permissions:
            raise HierarchyIntegrityError("Permission cannot be its own parent")

    @classmethod
    def create(
        cls,
        action: str,
        resource_type: str,
        target: TargetSpec,
        description: str = "",
    ) -> "Permission":
        """Create a new permission with a generated id and the current timestamp."""
        return cls(PermissionId.generate(), action, resource_type, target, description)

    # --- Read access ---

    @property
    def action(self) -> str:
        return self._action

    @property
    def resource_type(self) -> str:
        return self._resource_type

    @property
    def target(self) -> TargetSpec:
        return self._target

    @property
    def target_id(self) -> Optional[str]:
        """Legacy view: the specific value, '*' for wildcard, None when scoped."""
        if isinstance(self._target, Scoped):
            return None
        return str(self._target)

    @property
    def scope(self) -> Optional[ScopeLevel]:
        """Legacy view: the scope level when scoped, otherwise None."""
        if isinstance(self._target, Scoped):
            return self._target.level
        return None

    @property
    def parent_permissions(self) -> frozenset[PermissionId]:
        return frozenset(self._parent_permissions)

    @property
    def key(self) -> tuple[str, str, TargetSpec]:
        """Definition key: two permissions with the same key are duplicates."""
        return (self._action, self._resource_type, self._target)

    # --- Mutation ---

    def update(
        self,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        target: Optional[TargetSpec] = None,
        description: Optional[str] = None,
    ) -> None:
        """
        Update definition fields. Omitted (None) fields are kept.

        Every supplied value is validated before anything is assigned.
        """
        new_action = normalize_token(action, "Action") if action is not None else self._action
        new_resource_type = (
            normalize_token(resource_type, "Resource type")
            if resource_type is not None
            else self._resource_type
        )
        new_target = _require_target(target) if target is not None else self._target

        self._action = new_action
        self._resource_type = new_resource_type
        self._target = new_target
        if description is not None:
            self.description = description

    def add_parent_permission(self, parent_id: PermissionId) -> None:
        parent_id = PermissionId.coerce(parent_id)
        if parent_id == self.id:
            raise HierarchyIntegrityError("Permission cannot be its own parent")
        self._parent_permissions.add(parent_id)

    def remove_parent_permission(self, parent_id: PermissionId) -> None:
        self._parent_permissions.discard(PermissionId.coerce(parent_id))

    def has_parent_permission(self, parent_id: PermissionId) -> bool:
        return PermissionId.coerce(parent_id) in self._parent_permissions

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (
            f"<Permission(id={self.id}, action={self._action!r}, "
            f"resource_type={self._resource_type!r}, target={self._target})>"
        )
