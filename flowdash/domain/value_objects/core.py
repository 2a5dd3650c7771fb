"""Identifier value objects.

Identifiers are immutable wrappers around positive integers assigned by
the persistence layer. They validate on construction and compare by value.
"""

from dataclasses import dataclass


def _validate_positive_int(value: object, type_name: str) -> None:
    """Raise ValueError unless value is a positive int (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{type_name} must be a positive number")


@dataclass(frozen=True)
class WorkflowId:
    """Identity of a Workflow aggregate."""

    value: int

    def __post_init__(self) -> None:
        _validate_positive_int(self.value, "WorkflowId")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class UserId:
    """Identity of a user (owner of workflows and connected apps)."""

    value: int

    def __post_init__(self) -> None:
        _validate_positive_int(self.value, "UserId")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ConnectedAppId:
    """Identity of a ConnectedApp aggregate."""

    value: int

    def __post_init__(self) -> None:
        _validate_positive_int(self.value, "ConnectedAppId")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TemplateId:
    """Identity of a Template aggregate."""

    value: int

    def __post_init__(self) -> None:
        _validate_positive_int(self.value, "TemplateId")

    def __str__(self) -> str:
        return str(self.value)
