import pytest

from accessgraph.core.exceptions import EntityValidationError, HierarchyIntegrityError
from accessgraph.core.identifiers import PermissionId, RoleId, UserId
from accessgraph.features.permissions.models import (
    Permission,
    ScopeLevel,
    Scoped,
    Specific,
    Wildcard,
    target_from_fields,
)
from accessgraph.features.roles.models import Role
from accessgraph.features.users.models import User


# ============================================================================
# Permission
# ============================================================================

def test_permission_normalizes_action_and_resource_type():
    permission = Permission.create("  READ ", "Document", Wildcard())
    assert permission.action == "read"
    assert permission.resource_type == "document"


@pytest.mark.parametrize("action,resource_type", [("", "document"), ("read", "  ")])
def test_permission_rejects_blank_tokens(action, resource_type):
    with pytest.raises(EntityValidationError):
        Permission.create(action, resource_type, Wildcard())


def test_permission_requires_a_target():
    with pytest.raises(EntityValidationError):
        Permission.create("read", "document", None)
    with pytest.raises(EntityValidationError):
        Permission.create("read", "document", "*")


def test_target_from_fields_is_exclusive():
    with pytest.raises(EntityValidationError):
        target_from_fields(target_id="doc-1", scope="own")
    with pytest.raises(EntityValidationError):
        target_from_fields()


def test_target_from_fields_parses_shapes():
    assert target_from_fields(target_id="*") == Wildcard()
    assert target_from_fields(target_id="doc-1") == Specific("doc-1")
    assert target_from_fields(scope="TEAM") == Scoped(ScopeLevel.TEAM)


def test_invalid_scope_level_rejected():
    with pytest.raises(EntityValidationError):
        Scoped("planet")


def test_specific_target_rejects_blank_and_wildcard():
    with pytest.raises(EntityValidationError):
        Specific("")
    with pytest.raises(EntityValidationError):
        Specific("*")
    with pytest.raises(EntityValidationError):
        Specific(" * ")


def test_target_values_are_stripped():
    assert Specific("  doc-1 ") == Specific("doc-1")
    assert target_from_fields(target_id=" * ") == Wildcard()
    assert target_from_fields(target_id=" doc-1 ") == Specific("doc-1")


def test_legacy_target_views():
    scoped = Permission.create("read", "document", Scoped(ScopeLevel.ORG))
    assert scoped.target_id is None
    assert scoped.scope is ScopeLevel.ORG

    wildcard = Permission.create("read", "document", Wildcard())
    assert wildcard.target_id == "*"
    assert wildcard.scope is None


def test_permission_cannot_be_its_own_parent():
    permission = Permission.create("read", "document", Wildcard())
    with pytest.raises(HierarchyIntegrityError):
        permission.add_parent_permission(permission.id)
    assert permission.parent_permissions == frozenset()

    pid = PermissionId.generate()
    with pytest.raises(HierarchyIntegrityError):
        Permission(pid, "read", "document", Wildcard(), parent_permissions=[pid])


def test_permission_parent_set_is_idempotent():
    permission = Permission.create("share", "report", Wildcard())
    parent_id = PermissionId.generate()

    permission.add_parent_permission(parent_id)
    permission.add_parent_permission(str(parent_id))
    assert len(permission.parent_permissions) == 1

    permission.remove_parent_permission(PermissionId.generate())
    assert permission.parent_permissions == {parent_id}

    permission.remove_parent_permission(parent_id)
    permission.remove_parent_permission(parent_id)
    assert permission.parent_permissions == frozenset()


def test_permission_update_replaces_target_atomically():
    permission = Permission.create("read", "document", Wildcard())
    with pytest.raises(EntityValidationError):
        permission.update(action="write", target="bogus")
    assert permission.action == "read"
    assert permission.target == Wildcard()

    permission.update(target=Scoped(ScopeLevel.TEAM))
    assert permission.scope is ScopeLevel.TEAM
    assert permission.target_id is None


def test_permissions_equal_by_id():
    pid = PermissionId.generate()
    a = Permission(pid, "read", "document", Wildcard())
    b = Permission(str(pid), "update", "report", Scoped(ScopeLevel.OWN))
    assert a == b
    assert len({a, b}) == 1


# ============================================================================
# Role
# ============================================================================

def test_role_create_and_rename():
    role = Role.create("  Viewer ", "Read-only")
    assert role.name == "Viewer"
    role.rename("Reader")
    assert role.name == "Reader"
    with pytest.raises(EntityValidationError):
        role.rename(" ")


def test_role_rejects_self_parent():
    role = Role.create("Viewer")
    with pytest.raises(HierarchyIntegrityError):
        role.add_parent_role(role.id)
    assert role.parent_roles == frozenset()


def test_role_parent_and_permission_sets_are_idempotent():
    role = Role.create("Editor")
    parent_id = RoleId.generate()
    permission_id = PermissionId.generate()

    role.add_parent_role(parent_id)
    role.add_parent_role(str(parent_id))
    role.grant_permission(permission_id)
    role.grant_permission(permission_id)

    assert role.parent_roles == {parent_id}
    assert role.permissions == {permission_id}

    role.remove_parent_role(parent_id)
    role.revoke_permission(permission_id)
    role.revoke_permission(permission_id)
    assert not role.has_parent_role(parent_id)
    assert not role.has_permission(permission_id)


def test_role_collections_are_read_only_views():
    role = Role.create("Viewer")
    with pytest.raises(AttributeError):
        role.permissions.add(PermissionId.generate())


# ============================================================================
# User
# ============================================================================

def test_user_email_is_validated_and_lower_cased():
    user = User.create("Alice", "Alice@Example.com")
    assert user.email == "alice@example.com"
    with pytest.raises(EntityValidationError):
        User.create("Bob", "not-an-email")


def test_user_grant_and_deny_are_mutually_exclusive():
    user = User.create("Alice", "alice@example.com")
    pid = PermissionId.generate()

    user.grant_direct_permission(pid)
    assert user.has_direct_grant(pid)

    user.deny_direct_permission(pid)
    assert user.has_direct_denial(pid)
    assert not user.has_direct_grant(pid)

    user.grant_direct_permission(pid)
    assert user.has_direct_grant(pid)
    assert not user.has_direct_denial(pid)

    user.revoke_direct_permission(pid)
    assert not user.has_direct_grant(pid)
    assert not user.has_direct_denial(pid)


def test_user_constructor_rejects_overlap():
    pid = PermissionId.generate()
    with pytest.raises(EntityValidationError):
        User(
            UserId.generate(),
            "Alice",
            "alice@example.com",
            direct_permission_grants=[pid],
            direct_permission_denials=[pid],
        )


def test_user_role_assignment():
    user = User.create("Alice", "alice@example.com")
    first, second = RoleId.generate(), RoleId.generate()

    user.assign_role(first)
    user.assign_role(first)
    assert user.assigned_roles == {first}

    user.sync_roles([second])
    assert user.assigned_roles == {second}
    assert not user.has_role(first)

    user.unassign_role(second)
    assert user.assigned_roles == frozenset()
