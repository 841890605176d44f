"""Workflow context storage for sagagate."""

from __future__ import annotations

from typing import Optional

from ..config import SagaGateConfig, load_config
from .inmemory import InMemoryContextStore
from .models import StockUpdateRecord, WorkflowRecord
from .repository import WorkflowContextStore


def get_context_store(config: Optional[SagaGateConfig] = None) -> WorkflowContextStore:
    """Factory function to obtain the configured context store."""

    config = config or load_config()
    settings = config.context_store
    if settings.backend == "inmemory":
        return InMemoryContextStore(
            ttl_seconds=settings.ttl_seconds,
            terminal_retention_seconds=settings.terminal_retention_seconds,
        )
    raise ValueError(f"Unsupported context store backend: {settings.backend}")


__all__ = [
    "InMemoryContextStore",
    "StockUpdateRecord",
    "WorkflowContextStore",
    "WorkflowRecord",
    "get_context_store",
]
