"""Result types for store boundaries that must not raise.

A query that can fail returns ``Success(value)`` or ``Failure(error)`` and the
caller decides what a failure means, instead of relying on a broad ``except``
somewhere up the stack.

Usage:
    result = await service.has_active_permission(7, "/roles", Permission.VIEW)
    match result:
        case Success(value=granted):
            ...
        case Failure(error=reason):
            ...
"""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Represents a successful operation result."""

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Represents a failed operation result."""

    error: E


Result = Union[Success[T], Failure[E]]
