"""
User management use cases: creation, role assignment and direct permissions.
"""
from typing import Iterable, List, Union

from accessgraph.core.exceptions import DuplicateEntityError
from accessgraph.core.identifiers import PermissionId, RoleId, UserId
from accessgraph.core.snapshot import AccessSnapshot
from accessgraph.features.roles.models import Role
from accessgraph.features.users.models import User
from accessgraph.features.users.schemas import UserCreate
from accessgraph.utils import get_logger


log = get_logger(__name__)


def create_user(snapshot: AccessSnapshot, data: UserCreate) -> User:
    """
    Create a new user.

    Raises:
        DuplicateEntityError: If the email is already registered
    """
    if snapshot.find_user_by_email(data.email) is not None:
        log.warning(f"Duplicate user email {data.email}")
        raise DuplicateEntityError(f"User with email {data.email} already exists")

    user = User.create(data.name, data.email)
    snapshot.add_user(user)
    log.info(f"User created: {user.id} {user.email}")
    return user


def assign_role(
    snapshot: AccessSnapshot,
    user_id: Union[UserId, str],
    role_id: Union[RoleId, str],
) -> User:
    user = snapshot.get_user(user_id)
    role = snapshot.get_role(role_id)
    user.assign_role(role.id)
    log.info(f"Role {role.name!r} assigned to user {user.id}")
    return user


def unassign_role(
    snapshot: AccessSnapshot,
    user_id: Union[UserId, str],
    role_id: Union[RoleId, str],
) -> User:
    user = snapshot.get_user(user_id)
    user.unassign_role(RoleId.coerce(role_id))
    return user


def sync_user_roles(
    snapshot: AccessSnapshot,
    user_id: Union[UserId, str],
    role_ids: Iterable[Union[RoleId, str]],
) -> User:
    """
    Replace the user's roles with exactly ``role_ids``.

    Every role is looked up before the user is touched, so a missing role
    leaves the assignment unchanged.
    """
    user = snapshot.get_user(user_id)
    roles = [snapshot.get_role(role_id) for role_id in role_ids]
    user.sync_roles(role.id for role in roles)
    return user


def get_user_roles(snapshot: AccessSnapshot, user_id: Union[UserId, str]) -> List[Role]:
    """Directly assigned roles of a user, ordered by id."""
    user = snapshot.get_user(user_id)
    return [snapshot.get_role(role_id) for role_id in sorted(user.assigned_roles)]


def grant_direct_permission(
    snapshot: AccessSnapshot,
    user_id: Union[UserId, str],
    permission_id: Union[PermissionId, str],
) -> User:
    """Grant a permission straight to a user, clearing any denial of it."""
    user = snapshot.get_user(user_id)
    permission = snapshot.get_permission(permission_id)
    user.grant_direct_permission(permission.id)
    log.info(f"Direct grant of {permission.id} to user {user.id}")
    return user


def deny_direct_permission(
    snapshot: AccessSnapshot,
    user_id: Union[UserId, str],
    permission_id: Union[PermissionId, str],
) -> User:
    """Deny a permission to a user, clearing any direct grant of it."""
    user = snapshot.get_user(user_id)
    permission = snapshot.get_permission(permission_id)
    user.deny_direct_permission(permission.id)
    log.info(f"Direct denial of {permission.id} for user {user.id}")
    return user


def revoke_direct_permission(
    snapshot: AccessSnapshot,
    user_id: Union[UserId, str],
    permission_id: Union[PermissionId, str],
) -> User:
    user = snapshot.get_user(user_id)
    permission = snapshot.get_permission(permission_id)
    user.revoke_direct_permission(permission.id)
    return user
