from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AcquisitionStage, FailureReason


@dataclass(frozen=True)
class AcquisitionResult:
    """Outcome of one acquisition cycle. Failures are values, never raised."""

    identity: str
    ok: bool
    stage: AcquisitionStage
    finished_at: datetime
    reason: Optional[FailureReason] = None
    message: str = ""
    record_count: int = 0
    upcoming_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.ok and self.record_count == 0

    @classmethod
    def success(
        cls, identity: str, *, finished_at: datetime, record_count: int, upcoming_count: int
    ) -> "AcquisitionResult":
        return cls(
            identity=identity,
            ok=True,
            stage=AcquisitionStage.DONE,
            finished_at=finished_at,
            record_count=record_count,
            upcoming_count=upcoming_count,
        )

    @classmethod
    def failure(
        cls, identity: str, *, stage: AcquisitionStage, reason: FailureReason, message: str, finished_at: datetime
    ) -> "AcquisitionResult":
        return cls(
            identity=identity,
            ok=False,
            stage=stage,
            finished_at=finished_at,
            reason=reason,
            message=message,
        )
