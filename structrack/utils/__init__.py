from .logging import configure_logging, get_logger, log_event

__all__ = [
    "configure_logging",
    "get_logger",
    "log_event",
]
