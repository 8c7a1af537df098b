"""Usage log implementations."""

from studyrag.providers.usage_log.sqlite_usage_log_provider import SQLiteUsageLogProvider

__all__ = ["SQLiteUsageLogProvider"]
