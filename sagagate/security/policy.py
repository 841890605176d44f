"""Scope policy for sagagate endpoints."""

from __future__ import annotations

from typing import Iterable

from ..constants import ADMIN_SCOPE
from .context import Principal


def parse_scope(scope: str | Iterable[str] | None) -> list[str]:
    """Split a space separated scope string into its parts."""
    if scope is None:
        return []
    if isinstance(scope, str):
        return [part for part in scope.split(" ") if part]
    return [part for part in scope if part]


def has_scope(principal: Principal, required: str) -> bool:
    """Return ``True`` if ``principal`` holds ``required`` or the admin scope."""
    return required in principal.scopes or ADMIN_SCOPE in principal.scopes
