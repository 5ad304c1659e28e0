import logging
from contextlib import contextmanager
from typing import Iterator

from ..errors import GateBusyError

log = logging.getLogger("progressbot.gate")


class ProcessingGate:
    """
    Single-flight gate: at most one command runs at a time.

    Callers check ``busy`` and enter ``hold()`` without awaiting in between;
    under asyncio that makes check-and-set safe without a lock. Work that finds
    the gate busy is rejected, never queued.
    """

    def __init__(self) -> None:
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def hold(self) -> Iterator[None]:
        if self._busy:
            raise GateBusyError("processing gate is already held")
        self._busy = True
        log.debug("Processing gate acquired")
        try:
            yield
        finally:
            self._busy = False
            log.debug("Processing gate released")
