"""
Identifier value objects for roles, permissions and users.

Identifiers are compared by value, never by instance: two ids built
independently from the same canonical string are equal, hash the same and
are interchangeable as set members or dict keys. New ids are ULIDs; UUIDs
coming from other stores are accepted as well.
"""
import uuid
from dataclasses import dataclass
from typing import TypeVar, Union

from ulid import ULID

from accessgraph.core.exceptions import EntityValidationError


IdT = TypeVar("IdT", bound="EntityId")


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def canonicalize_identifier(value: str) -> str:
    """
    Return the canonical form of an identifier string.

    ULIDs are upper-cased, UUIDs are lower-cased in their hyphenated form.

    Raises:
        EntityValidationError: If the value is neither a ULID nor a UUID
    """
    if not isinstance(value, str) or not value.strip():
        raise EntityValidationError("Identifier cannot be empty")
    candidate = value.strip()

    if len(candidate) == 26:
        try:
            return str(ULID.from_str(candidate.upper()))
        except ValueError:
            pass

    try:
        return str(uuid.UUID(candidate))
    except ValueError:
        raise EntityValidationError(f"Invalid identifier: {value!r}") from None


@dataclass(frozen=True, order=True)
class EntityId:
    """Base identifier. Subclasses never compare equal to each other."""

    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", canonicalize_identifier(self.value))

    @classmethod
    def generate(cls: type[IdT]) -> IdT:
        return cls(generate_ulid())

    @classmethod
    def from_string(cls: type[IdT], value: str) -> IdT:
        return cls(value)

    @classmethod
    def coerce(cls: type[IdT], value: Union[IdT, str]) -> IdT:
        """Accept either an identifier of this type or its string form."""
        if isinstance(value, cls):
            return value
        if isinstance(value, EntityId):
            raise EntityValidationError(
                f"Expected {cls.__name__}, got {type(value).__name__}"
            )
        return cls(value)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


@dataclass(frozen=True, order=True, repr=False)
class RoleId(EntityId):
    pass


@dataclass(frozen=True, order=True, repr=False)
class PermissionId(EntityId):
    pass


@dataclass(frozen=True, order=True, repr=False)
class UserId(EntityId):
    pass
