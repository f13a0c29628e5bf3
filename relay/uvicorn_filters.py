"""Custom filters for uvicorn access logging."""

import logging

from relay.settings import app_settings


class ExcludeMetricsFilter(logging.Filter):
    """
    Drops access log lines for monitoring endpoints.

    Health probes and Prometheus scrapes hit /health and /metrics every few
    seconds; the paths are configurable via LOG_EXCLUDED_PATHS.
    """

    def __init__(self, excluded_paths: list[str] | None = None) -> None:
        super().__init__()
        if excluded_paths is None:
            excluded_paths = app_settings.LOG_EXCLUDED_PATHS
        self.excluded_paths = excluded_paths

    def filter(self, record: logging.LogRecord) -> bool:
        # uvicorn.access records carry (client, method, path, version, status)
        if isinstance(record.args, tuple) and len(record.args) >= 3:
            path = str(record.args[2]).split("?", 1)[0]
            return path not in self.excluded_paths

        message = record.getMessage()
        return not any(f" {path} " in message for path in self.excluded_paths)


def install_access_log_filter() -> ExcludeMetricsFilter:
    """Attach ExcludeMetricsFilter to uvicorn's access logger once."""
    access_logger = logging.getLogger("uvicorn.access")
    for existing in access_logger.filters:
        if isinstance(existing, ExcludeMetricsFilter):
            return existing

    access_filter = ExcludeMetricsFilter()
    access_logger.addFilter(access_filter)
    return access_filter
