"""Build orchestration."""

from hashpress.reports import BuildReport, StageReport

from .orchestrator import BuildPipeline

__all__ = ["BuildPipeline", "BuildReport", "StageReport"]
