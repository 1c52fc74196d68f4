import json
import logging
import os
from datetime import datetime, timezone


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Unknown LOG_LEVEL values fall back to INFO
logging.basicConfig(level=_LEVELS.get(os.environ.get("LOG_LEVEL", "INFO").strip().lower(), logging.INFO))

logger = logging.getLogger("news_api")


def log_event(event: str, *, level: str = "info", **fields):
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        **fields,
    }

    logger.log(_LEVELS.get(level, logging.INFO), json.dumps(payload, default=str))
