from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..transports import BaseTransport

logger = logging.getLogger(__name__)


async def connect_with_retry(
    transport: "BaseTransport", attempts: int = 5, delay: float = 5.0
) -> bool:
    """Connect ``transport`` with a fixed number of attempts and fixed delay.

    Returns ``False`` once every attempt has failed; the caller keeps running
    without consuming.
    """
    remaining = attempts
    while remaining:
        try:
            await transport.connect()
            return True
        except Exception as e:
            remaining -= 1
            logger.error(
                f"Failed to connect to message broker. Retries left: {remaining} ({e})"
            )
            if remaining:
                await asyncio.sleep(delay)
    logger.critical(
        f"Giving up on message broker after {attempts} attempts; consumers stay inactive"
    )
    return False
