import json
import logging
from datetime import datetime, timezone

from worktime.core.config import log_level

_STANDARD_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
    "relativeCreated", "thread", "threadName", "processName", "process", "taskName",
}

# ids searched on most often; lifted out of "extra" to the top level
_CONTEXT_FIELDS = ("client_id", "worker_id", "contractor_id", "entry_id")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # logger.info(..., extra={"entry_id": ...}) lands on the record itself
        extras = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        for key in _CONTEXT_FIELDS:
            if key in extras:
                payload[key] = extras.pop(key)
        if extras:
            payload["extra"] = extras

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        if record.stack_info:
            payload["stack_info"] = record.stack_info

        return json.dumps(payload, default=str)


def configure_logging() -> None:
    level = log_level()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        handler.setFormatter(JsonFormatter())
