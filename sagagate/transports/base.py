"""Base transport interface for sagagate messaging."""

from __future__ import annotations

import abc
from typing import AsyncIterator, Generic, Iterable, Optional, Tuple, Type, TypeVar

from ..contracts import Contract

RawMessageT = TypeVar("RawMessageT")
ContractT = TypeVar("ContractT", bound=Contract)


class BaseTransport(Generic[RawMessageT], metaclass=abc.ABCMeta):
    """Abstract base transport for durable named queues."""

    @property
    def is_connected(self) -> bool:
        """Whether publishing is currently possible."""
        return True

    async def connect(self) -> None:
        """Open connection to broker (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to broker (no-op by default)."""
        pass

    async def declare_queues(self, queues: Iterable[str]) -> None:
        """Ensure the named durable queues exist (no-op by default)."""
        pass

    @abc.abstractmethod
    async def publish(self, queue: str, message: Contract) -> None:
        """Send a JSON payload to a queue."""
        raise NotImplementedError

    @abc.abstractmethod
    def subscribe(
        self,
        queue: str,
        model: Type[ContractT],
        lifespan: Optional[float] = None,
    ) -> AsyncIterator[Tuple[RawMessageT, ContractT]]:
        """Yield raw transport message and decoded payload pairs.

        Args:
            queue: The queue to consume from
            model: Contract type the JSON body is decoded into
            lifespan: Maximum time in seconds to keep consuming. If None, runs indefinitely.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def ack(self, raw_message: RawMessageT) -> None:
        """Acknowledge successful processing."""
        raise NotImplementedError
