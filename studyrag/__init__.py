"""studyrag -- document ingestion and retrieval for a study assistant."""

__version__ = "0.1.0"
