"""
Error taxonomy for the authorization core.

Every error is raised before any mutation happens, so the entity or snapshot
involved is left exactly as it was.
"""


class AccessGraphError(Exception):
    """Base class for all errors raised by accessgraph."""


class EntityValidationError(AccessGraphError, ValueError):
    """Malformed identifier, empty required field or invalid target/scope combination."""


class HierarchyIntegrityError(AccessGraphError):
    """Self-parenting or a parent link that would close a cycle."""


class EntityNotFoundError(AccessGraphError, LookupError):
    """A referenced role, permission or user is absent from the snapshot."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} with id {identifier} not found")


class DuplicateEntityError(AccessGraphError):
    """A role name, user email or permission definition already exists."""
