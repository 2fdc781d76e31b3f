"""Single-flight pool coordinating concurrent pulls and loads."""

import asyncio
import logging
from dataclasses import dataclass

from ..exceptions import PoolError

logger = logging.getLogger(__name__)

POOL_KINDS = ("pull", "push")


@dataclass
class Admitted:
    """The caller owns the key and must release it with ``remove``."""

    key: str


@dataclass
class AlreadyInFlight:
    """Another worker owns the key; ``event`` is set when it finishes."""

    key: str
    event: asyncio.Event
    message: str

    async def wait(self) -> None:
        await self.event.wait()


@dataclass
class Failed:
    """Admission was refused outright."""

    key: str
    error: PoolError


AdmissionResult = Admitted | AlreadyInFlight | Failed


class SingleFlightPool:
    """Admit at most one in-flight worker per key, across pull and push kinds.

    Admission never awaits, so the check-and-insert in ``add`` is atomic on
    the event loop. Every admitted worker must call ``remove`` on every exit
    path, otherwise waiters are never released.
    """

    def __init__(self) -> None:
        self._pools: dict[str, dict[str, asyncio.Event]] = {
            kind: {} for kind in POOL_KINDS
        }

    def add(self, kind: str, key: str) -> AdmissionResult:
        """Try to take ownership of key.

        Args:
            kind: Pool kind ("pull" or "push")
            key: Operation key, e.g. "layer:<id>"

        Returns:
            Admitted, AlreadyInFlight or Failed
        """
        for held_kind, pool in self._pools.items():
            event = pool.get(key)
            if event is not None:
                return AlreadyInFlight(
                    key=key,
                    event=event,
                    message=f"{held_kind} {key} is already in progress",
                )

        if kind not in self._pools:
            return Failed(key=key, error=PoolError(f"Unknown pool type: {kind}"))

        self._pools[kind][key] = asyncio.Event()
        logger.debug(f"Pool {kind} admitted {key}")
        return Admitted(key=key)

    def remove(self, kind: str, key: str) -> None:
        """Release key and wake every waiter."""
        pool = self._pools.get(kind)
        if pool is None:
            raise PoolError(f"Unknown pool type: {kind}")

        event = pool.pop(key, None)
        if event is not None:
            event.set()
            logger.debug(f"Pool {kind} released {key}")

    def in_flight(self, kind: str) -> list[str]:
        """Keys currently held under kind."""
        return list(self._pools.get(kind, {}))
