import pytest
from pydantic import ValidationError

from accessgraph.core.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    EntityValidationError,
    HierarchyIntegrityError,
)
from accessgraph.core.identifiers import RoleId
from accessgraph.core.snapshot import AccessSnapshot
from accessgraph.features.permissions import service as permission_service
from accessgraph.features.permissions.models import ScopeLevel, Scoped, Specific, Wildcard
from accessgraph.features.permissions.schemas import PermissionCreate, PermissionUpdate
from accessgraph.features.roles import service as role_service
from accessgraph.features.roles.schemas import RoleCreate, RoleUpdate
from accessgraph.features.users import service as user_service
from accessgraph.features.users.schemas import UserCreate, UserResponse


# ============================================================================
# Permissions
# ============================================================================

def test_create_permission_with_target(snapshot):
    permission = permission_service.create_permission(
        snapshot, PermissionCreate(action="Read", resource_type="Report", target_id="*")
    )
    assert permission.key == ("read", "report", Wildcard())
    assert snapshot.get_permission(permission.id) is permission


def test_create_permission_requires_exactly_one_of_target_and_scope():
    with pytest.raises(ValidationError):
        PermissionCreate(action="read", resource_type="report")
    with pytest.raises(ValidationError):
        PermissionCreate(action="read", resource_type="report", target_id="*", scope="own")


def test_create_duplicate_permission_rejected(snapshot):
    data = PermissionCreate(action="read", resource_type="document", target_id="*")
    with pytest.raises(DuplicateEntityError):
        permission_service.create_permission(snapshot, data)


def test_update_target_replaces_scope(snapshot, update_own_documents):
    permission_service.update_permission(
        snapshot, update_own_documents.id, PermissionUpdate(target_id="doc-7")
    )
    assert update_own_documents.target == Specific("doc-7")
    assert update_own_documents.scope is None


def test_update_scope_replaces_target(snapshot, read_documents):
    permission_service.update_permission(
        snapshot, read_documents.id, PermissionUpdate(scope=ScopeLevel.TEAM)
    )
    assert read_documents.target == Scoped(ScopeLevel.TEAM)
    assert read_documents.target_id is None


def test_update_cannot_clear_the_only_target(snapshot, read_documents, update_own_documents):
    with pytest.raises(EntityValidationError):
        permission_service.update_permission(
            snapshot, read_documents.id, PermissionUpdate(target_id=None)
        )
    with pytest.raises(EntityValidationError):
        permission_service.update_permission(
            snapshot, update_own_documents.id, PermissionUpdate(scope=None)
        )
    assert read_documents.target == Wildcard()


def test_update_into_duplicate_rejected(snapshot, read_documents, update_own_documents):
    with pytest.raises(DuplicateEntityError):
        permission_service.update_permission(
            snapshot,
            update_own_documents.id,
            PermissionUpdate(action="read", target_id="*"),
        )
    assert update_own_documents.action == "update"


def test_update_keeps_omitted_fields(snapshot, read_documents):
    permission_service.update_permission(
        snapshot, read_documents.id, PermissionUpdate(description="Readers")
    )
    assert read_documents.description == "Readers"
    assert read_documents.action == "read"
    assert read_documents.target == Wildcard()


def test_delete_permission_strips_references(
    snapshot, make_user, viewer, read_documents, update_own_documents
):
    user = make_user("alice@example.com")
    user.deny_direct_permission(read_documents.id)
    update_own_documents.add_parent_permission(read_documents.id)

    permission_service.delete_permission(snapshot, read_documents.id)

    assert read_documents.id not in snapshot.permissions
    assert not viewer.has_permission(read_documents.id)
    assert not user.has_direct_denial(read_documents.id)
    assert update_own_documents.parent_permissions == frozenset()


def test_permission_hierarchy(snapshot, read_documents, update_own_documents, manage_everything):
    permission_service.set_permission_parent(snapshot, update_own_documents.id, read_documents.id)
    permission_service.set_permission_parent(snapshot, manage_everything.id, update_own_documents.id)

    hierarchy = permission_service.get_permission_hierarchy(snapshot, update_own_documents.id)

    assert [p.id for p in hierarchy.ancestors] == [str(read_documents.id)]
    assert [p.id for p in hierarchy.descendants] == [str(manage_everything.id)]

    with pytest.raises(HierarchyIntegrityError):
        permission_service.set_permission_parent(snapshot, read_documents.id, manage_everything.id)

    permission_service.remove_permission_parent(snapshot, update_own_documents.id, read_documents.id)
    assert update_own_documents.parent_permissions == frozenset()


# ============================================================================
# Roles
# ============================================================================

def test_create_role_rejects_duplicate_name_case_insensitively(snapshot):
    with pytest.raises(DuplicateEntityError):
        role_service.create_role(snapshot, RoleCreate(name="viewer"))


def test_create_role_rejects_blank_name():
    with pytest.raises(ValidationError):
        RoleCreate(name="   ")


def test_update_role(snapshot, viewer, editor):
    role_service.update_role(snapshot, viewer.id, RoleUpdate(name="Reader", description="Reads"))
    assert viewer.name == "Reader"
    assert viewer.description == "Reads"

    with pytest.raises(DuplicateEntityError):
        role_service.update_role(snapshot, viewer.id, RoleUpdate(name="EDITOR"))


def test_set_role_parent_rejects_cycle(snapshot, viewer, admin):
    with pytest.raises(HierarchyIntegrityError):
        role_service.set_role_parent(snapshot, viewer.id, admin.id)
    assert viewer.parent_roles == frozenset()


def test_set_role_parent_unknown_role(snapshot, viewer):
    with pytest.raises(EntityNotFoundError):
        role_service.set_role_parent(snapshot, viewer.id, RoleId.generate())


def test_delete_role_strips_references(snapshot, make_user, viewer, editor):
    user = make_user("alice@example.com", viewer)

    role_service.delete_role(snapshot, viewer.id)

    assert viewer.id not in snapshot.roles
    assert editor.parent_roles == frozenset()
    assert not user.has_role(viewer.id)


def test_role_hierarchy(snapshot, viewer, editor, admin):
    hierarchy = role_service.get_role_hierarchy(snapshot, editor.id)
    assert hierarchy.role.name == "Editor"
    assert [r.id for r in hierarchy.ancestors] == [str(viewer.id)]
    assert [r.id for r in hierarchy.descendants] == [str(admin.id)]


def test_grant_and_revoke_role_permission(snapshot, viewer, manage_everything):
    role_service.grant_permission_to_role(snapshot, viewer.id, manage_everything.id)
    assert manage_everything in role_service.get_role_permissions(snapshot, viewer.id)

    role_service.revoke_permission_from_role(snapshot, viewer.id, manage_everything.id)
    assert manage_everything not in role_service.get_role_permissions(snapshot, viewer.id)


def test_get_role_permissions_includes_inherited(
    snapshot, admin, read_documents, update_own_documents, manage_everything
):
    permissions = role_service.get_role_permissions(snapshot, admin.id)
    assert set(permissions) == {read_documents, update_own_documents, manage_everything}


# ============================================================================
# Users
# ============================================================================

def test_create_user_rejects_duplicate_email():
    snapshot = AccessSnapshot()
    user_service.create_user(snapshot, UserCreate(name="Alice", email="alice@example.com"))
    with pytest.raises(DuplicateEntityError):
        user_service.create_user(snapshot, UserCreate(name="Alice 2", email="ALICE@example.com"))


def test_assign_and_unassign_role(snapshot, viewer):
    user = user_service.create_user(snapshot, UserCreate(name="Alice", email="alice@example.com"))

    user_service.assign_role(snapshot, user.id, viewer.id)
    assert user_service.get_user_roles(snapshot, user.id) == [viewer]

    user_service.unassign_role(snapshot, user.id, viewer.id)
    assert user_service.get_user_roles(snapshot, user.id) == []


def test_assign_unknown_role(snapshot, make_user):
    user = make_user("alice@example.com")
    with pytest.raises(EntityNotFoundError):
        user_service.assign_role(snapshot, user.id, RoleId.generate())


def test_sync_roles_is_all_or_nothing(snapshot, make_user, viewer, editor, admin):
    user = make_user("alice@example.com", viewer)

    with pytest.raises(EntityNotFoundError):
        user_service.sync_user_roles(snapshot, user.id, [editor.id, RoleId.generate()])
    assert user.assigned_roles == {viewer.id}

    user_service.sync_user_roles(snapshot, user.id, [str(editor.id), admin.id])
    assert user.assigned_roles == {editor.id, admin.id}


def test_direct_permission_use_cases(snapshot, make_user, read_documents):
    user = make_user("alice@example.com")

    user_service.grant_direct_permission(snapshot, user.id, read_documents.id)
    assert user.has_direct_grant(read_documents.id)

    user_service.deny_direct_permission(snapshot, user.id, read_documents.id)
    assert user.has_direct_denial(read_documents.id)
    assert not user.has_direct_grant(read_documents.id)

    user_service.revoke_direct_permission(snapshot, user.id, read_documents.id)
    assert not user.has_direct_denial(read_documents.id)

    response = UserResponse.from_entity(user)
    assert response.direct_permission_grants == []
    assert response.direct_permission_denials == []
