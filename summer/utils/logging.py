import json
import logging
import sys

LOG_FORMAT = "%(levelname)s:     %(message)s"

# Chatty at INFO; only their warnings are worth seeing.
QUIET_LOGGERS = ("googleapiclient.discovery_cache", "httpx", "httpcore", "urllib3")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log collectors."""

    def format(self, record):
        payload = {
            "ts": self.formatTime(record),
            "severity": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Points the root logger at stdout, replacing any handlers already installed."""
    formatter = JSONFormatter() if json_output else logging.Formatter(LOG_FORMAT)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
