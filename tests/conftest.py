"""
Shared fixtures: a small Viewer <- Editor <- Admin snapshot.

Viewer grants read on documents (wildcard target), Editor adds update on
the user's own documents and Admin adds manage on every resource type.
"""
import pytest

from accessgraph.core.snapshot import AccessSnapshot
from accessgraph.features.authorization.service import AuthorizationService
from accessgraph.features.permissions.models import (
    Permission,
    ScopeLevel,
    Scoped,
    Wildcard,
)
from accessgraph.features.roles.models import Role
from accessgraph.features.users.models import User


@pytest.fixture
def read_documents():
    return Permission.create("read", "document", Wildcard(), "Read any document")


@pytest.fixture
def update_own_documents():
    return Permission.create("update", "document", Scoped(ScopeLevel.OWN), "Update own documents")


@pytest.fixture
def manage_everything():
    return Permission.create("manage", "*", Wildcard(), "Full access")


@pytest.fixture
def viewer(read_documents):
    role = Role.create("Viewer")
    role.grant_permission(read_documents.id)
    return role


@pytest.fixture
def editor(viewer, update_own_documents):
    role = Role.create("Editor")
    role.add_parent_role(viewer.id)
    role.grant_permission(update_own_documents.id)
    return role


@pytest.fixture
def admin(editor, manage_everything):
    role = Role.create("Admin")
    role.add_parent_role(editor.id)
    role.grant_permission(manage_everything.id)
    return role


@pytest.fixture
def snapshot(viewer, editor, admin, read_documents, update_own_documents, manage_everything):
    return AccessSnapshot.from_entities(
        roles=[viewer, editor, admin],
        permissions=[read_documents, update_own_documents, manage_everything],
    )


@pytest.fixture
def make_user(snapshot):
    """Create a user, add it to the snapshot and assign the given roles."""

    def _make_user(email, *roles):
        user = User.create(email.split("@")[0].title(), email)
        for role in roles:
            user.assign_role(role.id)
        snapshot.add_user(user)
        return user

    return _make_user


@pytest.fixture
def authz():
    return AuthorizationService()
