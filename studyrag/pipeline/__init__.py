"""Upload job tracking for background ingestion."""

from studyrag.pipeline.job_tracker import JobTracker

__all__ = ["JobTracker"]
