"""Per-stage and per-build outcome summaries."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


class StageReport(BaseModel):
    """Counts and errors collected while running one stage.

    Attributes:
        stage: Stage name (``scan``, ``enrich``, ``categorize``, ``materialize``, ``translate``).
        processed: Records the stage did work for.
        skipped: Records the stage had nothing to do for.
        failed: Records whose work raised a per-record error.
        counts: Stage-specific counters such as ``added`` or ``evicted``.
        errors: Human-readable error messages, one per failure.
    """

    stage: str
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    counts: Dict[str, int] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)

    def bump(self, counter: str, amount: int = 1) -> None:
        self.counts[counter] = self.counts.get(counter, 0) + amount

    def record_failure(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)


class BuildReport(BaseModel):
    """Ordered stage reports for one pipeline invocation."""

    stages: List[StageReport] = Field(default_factory=list)

    def stage(self, name: str) -> StageReport:
        """Return the report of the named stage.

        Raises:
            KeyError: If the stage did not run.
        """
        for report in self.stages:
            if report.stage == name:
                return report
        raise KeyError(name)

    @property
    def failed(self) -> int:
        return sum(report.failed for report in self.stages)

    @property
    def errors(self) -> List[str]:
        return [message for report in self.stages for message in report.errors]


__all__ = ["StageReport", "BuildReport"]
