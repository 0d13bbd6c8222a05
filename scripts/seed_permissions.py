"""
Seed script to build a demo access snapshot.

Creates, through the public use cases:
- Default permissions
- Default roles and the role hierarchy
- Role-permission assignments
- A handful of demo users

Usage:
    python -m scripts.seed_permissions
"""
from accessgraph.core.snapshot import AccessSnapshot
from accessgraph.features.authorization.service import AuthorizationService
from accessgraph.features.permissions.schemas import PermissionCreate
from accessgraph.features.permissions.service import create_permission, permission_graph
from accessgraph.features.roles.schemas import RoleCreate
from accessgraph.features.roles.service import (
    create_role,
    grant_permission_to_role,
    role_graph,
    set_role_parent,
)
from accessgraph.features.users.schemas import UserCreate
from accessgraph.features.users.service import (
    assign_role,
    create_user,
    deny_direct_permission,
    grant_direct_permission,
)
from accessgraph.utils import get_logger


log = get_logger(__name__)


# (key, resource_type, action, target_id, scope, description)
DEFAULT_PERMISSIONS = [
    # User management
    ("users:create", "users", "create", "*", None, "Create new users"),
    ("users:read", "users", "read", "*", None, "View user details"),
    ("users:update", "users", "update", "*", None, "Update user information"),
    ("users:update_own", "users", "update", None, "own", "Update your own profile"),
    ("users:delete", "users", "delete", "*", None, "Delete users"),
    ("users:list", "users", "list", "*", None, "List all users"),

    # Project management
    ("projects:create", "projects", "create", "*", None, "Create new projects"),
    ("projects:read", "projects", "read", "*", None, "View project details"),
    ("projects:update", "projects", "update", None, "team", "Update projects of your team"),
    ("projects:delete", "projects", "delete", "*", None, "Delete projects"),
    ("projects:list", "projects", "list", "*", None, "List all projects"),
    ("projects:assign", "projects", "assign", "*", None, "Assign team members to projects"),

    # Code repositories
    ("repositories:create", "repositories", "create", "*", None, "Create new repositories"),
    ("repositories:read", "repositories", "read", "*", None, "View repository code"),
    ("repositories:write", "repositories", "write", None, "team", "Push code to team repositories"),
    ("repositories:delete", "repositories", "delete", "*", None, "Delete repositories"),
    ("repositories:merge", "repositories", "merge", "*", None, "Merge pull requests"),
    ("repositories:review", "repositories", "review", "*", None, "Review code changes"),

    # Deployments
    ("deployments:create", "deployments", "create", "*", None, "Create deployments"),
    ("deployments:read", "deployments", "read", "*", None, "View deployment status"),
    ("deployments:production", "deployments", "production", "*", None, "Deploy to production"),
    ("deployments:staging", "deployments", "staging", "*", None, "Deploy to staging"),
    ("deployments:rollback", "deployments", "rollback", "*", None, "Rollback deployments"),

    # Infrastructure
    ("infrastructure:read", "infrastructure", "read", "*", None, "View infrastructure"),
    ("infrastructure:manage", "infrastructure", "manage", None, "org", "Manage organization infrastructure"),

    # Design assets
    ("designs:create", "designs", "create", "*", None, "Create design assets"),
    ("designs:read", "designs", "read", "*", None, "View design assets"),
    ("designs:update", "designs", "update", None, "own", "Update your own design assets"),

    # Analytics & reports
    ("analytics:read", "analytics", "read", "*", None, "View analytics"),
    ("analytics:export", "analytics", "export", "*", None, "Export analytics data"),
    ("reports:create", "reports", "create", "*", None, "Create reports"),
    ("reports:read", "reports", "read", "*", None, "View reports"),

    # Billing & settings
    ("billing:manage", "billing", "manage", "*", None, "Manage billing and payments"),
    ("settings:update", "settings", "update", "*", None, "Update system settings"),

    # Roles & permissions
    ("roles:manage", "roles", "manage", None, "global", "Manage roles"),
    ("permissions:manage", "permissions", "manage", None, "global", "Manage permissions"),
]


# Roles in creation order; parents must appear before their children
DEFAULT_ROLES = {
    "Viewer": {
        "description": "Read-only access to projects and resources",
        "parent": None,
        "permissions": [
            "projects:read", "projects:list", "repositories:read", "deployments:read",
            "designs:read", "analytics:read", "reports:read", "users:read",
            "users:list", "users:update_own",
        ],
    },
    "Junior Developer": {
        "description": "Entry-level developer",
        "parent": "Viewer",
        "permissions": ["repositories:write", "deployments:staging"],
    },
    "Developer": {
        "description": "Software developer with code access",
        "parent": "Junior Developer",
        "permissions": ["repositories:review", "projects:update"],
    },
    "Senior Developer": {
        "description": "Experienced developer with deployment rights",
        "parent": "Developer",
        "permissions": [
            "repositories:merge", "repositories:create",
            "deployments:create", "deployments:rollback",
        ],
    },
    "Tech Lead": {
        "description": "Technical leadership and architecture decisions",
        "parent": "Senior Developer",
        "permissions": [
            "projects:create", "projects:assign", "repositories:delete", "users:update",
        ],
    },
    "Engineering Manager": {
        "description": "Manages engineering teams and projects",
        "parent": "Tech Lead",
        "permissions": [
            "users:create", "projects:delete", "analytics:export", "reports:create",
        ],
    },
    "CTO": {
        "description": "Chief Technology Officer - full system access",
        "parent": "Engineering Manager",
        "permissions": [
            "users:delete", "infrastructure:read", "infrastructure:manage",
            "billing:manage", "settings:update", "roles:manage",
            "permissions:manage", "deployments:production",
        ],
    },
    "Designer": {
        "description": "Creates and updates design assets",
        "parent": "Viewer",
        "permissions": ["designs:create", "designs:update"],
    },
}


# (name, email, roles, direct grants, direct denials)
DEMO_USERS = [
    ("Alice Chen", "alice@example.com", ["CTO"], [], []),
    ("Bob Martin", "bob@example.com", ["Developer"], ["deployments:production"], []),
    ("Carol Diaz", "carol@example.com", ["Designer"], [], []),
    ("Dan Okafor", "dan@example.com", ["Junior Developer"], [], ["deployments:staging"]),
    ("Eve Novak", "eve@example.com", [], ["reports:read"], []),
]


def seed_permissions(snapshot: AccessSnapshot) -> dict:
    """
    Create default permissions.

    Returns:
        Dictionary mapping permission keys to Permission objects
    """
    log.info("Creating default permissions...")
    permissions_map = {}

    for key, resource_type, action, target_id, scope, description in DEFAULT_PERMISSIONS:
        permissions_map[key] = create_permission(
            snapshot,
            PermissionCreate(
                action=action,
                resource_type=resource_type,
                target_id=target_id,
                scope=scope,
                description=description,
            ),
        )

    log.info(f"Created {len(permissions_map)} permissions")
    return permissions_map


def seed_roles(snapshot: AccessSnapshot, permissions_map: dict) -> dict:
    """
    Create default roles, link the hierarchy and assign permissions.

    Args:
        snapshot: Snapshot to seed
        permissions_map: Dictionary of permission key -> Permission object
    """
    log.info("Creating default roles...")
    roles_map = {}

    for role_name, role_config in DEFAULT_ROLES.items():
        role = create_role(snapshot, RoleCreate(name=role_name, description=role_config["description"]))
        roles_map[role_name] = role

        if role_config["parent"]:
            set_role_parent(snapshot, role.id, roles_map[role_config["parent"]].id)

        for key in role_config["permissions"]:
            grant_permission_to_role(snapshot, role.id, permissions_map[key].id)
        log.info(f"Created role '{role_name}' with {len(role_config['permissions'])} permissions")

    return roles_map


def seed_users(snapshot: AccessSnapshot, roles_map: dict, permissions_map: dict) -> dict:
    """Create demo users with their roles, grants and denials."""
    users_map = {}

    for name, email, role_names, grants, denials in DEMO_USERS:
        user = create_user(snapshot, UserCreate(name=name, email=email))
        for role_name in role_names:
            assign_role(snapshot, user.id, roles_map[role_name].id)
        for key in grants:
            grant_direct_permission(snapshot, user.id, permissions_map[key].id)
        for key in denials:
            deny_direct_permission(snapshot, user.id, permissions_map[key].id)
        users_map[email] = user

    log.info(f"Created {len(users_map)} demo users")
    return users_map


def build_demo_snapshot() -> AccessSnapshot:
    """Build a fully seeded snapshot."""
    snapshot = AccessSnapshot()
    permissions_map = seed_permissions(snapshot)
    roles_map = seed_roles(snapshot, permissions_map)
    seed_users(snapshot, roles_map, permissions_map)
    return snapshot


def main():
    """Main function to seed the demo snapshot and print a summary."""
    log.info("Starting demo seeding...")

    try:
        snapshot = build_demo_snapshot()
    except Exception as e:
        log.error(f"Error seeding demo data: {e}", exc_info=True)
        raise

    if not role_graph.validate_integrity(snapshot.roles):
        raise SystemExit("Role hierarchy contains a cycle")
    if not permission_graph.validate_integrity(snapshot.permissions):
        raise SystemExit("Permission hierarchy contains a cycle")

    log.info("Demo seeding completed successfully!")
    log.info("")
    log.info("Default roles created:")
    for role_name, role_config in DEFAULT_ROLES.items():
        log.info(f"  - {role_name}: {role_config['description']}")

    authz = AuthorizationService()
    log.info("")
    log.info("Sample decisions:")
    for user in sorted(snapshot.users.values(), key=lambda u: u.email):
        decision = authz.check(snapshot, user.id, "staging", "deployments")
        log.info(f"  - {user.email} staging deployments: {decision.allowed} ({decision.reason.value})")


if __name__ == "__main__":
    main()
