from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime

from ..acquisition.model import AcquisitionResult


@dataclass(frozen=True)
class ScrapeHandle:
    """What ``trigger`` hands back; the future always resolves with an AcquisitionResult."""

    identity: str
    future: "Future[AcquisitionResult]"
    started_at: datetime

    def done(self) -> bool:
        return self.future.done()


@dataclass
class ScrapeJob:
    """Registry entry, process-local. ``running`` flips to False when the work finishes."""

    identity: str
    handle: ScrapeHandle
    running: bool = True
