"""
Catalog entities.

Value objects identified by their ``value`` slug; labels are display-only
and do not take part in equality.
"""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Operation:
    """An action kind, e.g. read, edit, create."""

    value: str
    label: str = field(default="", compare=False)


@dataclass(frozen=True)
class ObjectType:
    """A resource kind, e.g. invoice, customer."""

    value: str
    label: str = field(default="", compare=False)


@dataclass(frozen=True)
class Permission:
    """An (operation, object) pair, the atomic grantable unit."""

    operation: Operation
    object_type: ObjectType
    description: str = field(default="", compare=False)

    @property
    def key(self) -> str:
        return f"{self.operation.value}:{self.object_type.value}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class Profile:
    """A developer-defined user type, e.g. "Lawn Care Administrator"."""

    value: str
    label: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.value


def permission_key(operation: str, object_type: str) -> str:
    return f"{operation}:{object_type}"
