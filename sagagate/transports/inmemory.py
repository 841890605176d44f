"""In-memory transport for testing."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict, deque
from typing import AsyncIterator, Deque, Dict, List, Optional, Tuple, Type

from pydantic import ValidationError

from ..contracts import Contract
from .base import BaseTransport, ContractT

logger = logging.getLogger(__name__)


class InMemoryTransport(BaseTransport[Tuple[str, bytes]]):
    """Simple in-process queues for unit tests.

    Bodies are stored encoded so consumers see exactly what a broker would
    deliver.
    """

    def __init__(self) -> None:
        self._queues: Dict[str, Deque[Tuple[str, bytes]]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self.acked: List[Tuple[str, bytes]] = []

    async def publish(self, queue: str, message: Contract) -> None:
        """Publish message to in-memory queue."""
        raw = (queue, message.to_json().encode("utf-8"))
        async with self._lock:
            self._queues[queue].append(raw)

    def pending(self, queue: str) -> List[bytes]:
        """Return bodies still waiting on ``queue``."""
        return [body for _, body in self._queues[queue]]

    async def subscribe(
        self,
        queue: str,
        model: Type[ContractT],
        lifespan: Optional[float] = None,
    ) -> AsyncIterator[Tuple[Tuple[str, bytes], ContractT]]:
        """Subscribe to messages from queue.

        Args:
            queue: The queue to consume from
            model: Contract type the body is decoded into
            lifespan: Maximum time in seconds to keep consuming. If None, runs indefinitely.
        """
        start_time = asyncio.get_event_loop().time() if lifespan else None

        while True:
            if lifespan and start_time:
                elapsed = asyncio.get_event_loop().time() - start_time
                if elapsed >= lifespan:
                    break

            raw_message = None
            async with self._lock:
                if self._queues[queue]:
                    raw_message = self._queues[queue].popleft()

            if raw_message is None:
                await asyncio.sleep(0.05)
                continue

            try:
                payload = model.from_json(raw_message[1])
            except ValidationError as e:
                logger.error(f"Dropping undecodable message on {queue}: {e}")
                continue
            yield raw_message, payload

    async def ack(self, raw_message: Tuple[str, bytes]) -> None:
        """Record acknowledgment for inspection in tests."""
        self.acked.append(raw_message)
