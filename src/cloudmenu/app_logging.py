"""Logging configuration helpers."""

import logging

CONTEXT_FIELDS = ("menu_id", "dish_name", "image_url")


class ContextFilter(logging.Filter):
    """Render known ``extra`` fields as a ``[key=value ...]`` suffix."""

    def filter(self, record: logging.LogRecord) -> bool:
        pairs = [
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        ]
        record.context = f" [{' '.join(pairs)}]" if pairs else ""
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure the cloudmenu logger with a single stream handler."""
    logger = logging.getLogger("cloudmenu")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.addFilter(ContextFilter())
    handler.setFormatter(
        logging.Formatter("%(levelname)s: %(name)s: %(message)s%(context)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
