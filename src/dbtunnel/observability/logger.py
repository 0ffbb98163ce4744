import logging
import json
import os
import re
import sys
import time
import uuid


class _C:
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    MAGENTA = "\033[35m"


# Payload keys whose values are never written to the log.
SECRET_KEYS = frozenset({"connection_string", "connectionstring", "password", "accountkey"})

# AccountKey=...; / Password=...; fragments inside free text (driver errors).
_SECRET_FRAGMENT = re.compile(r"(?i)\b(accountkey|password|pwd)\s*=\s*[^;\s]+")


def _use_color() -> bool:
    return os.getenv("LOG_COLOR", "0") == "1" and sys.stdout.isatty()


def _event_color(event_type: str) -> str:
    et = (event_type or "").upper()
    if "FAILED" in et:
        return _C.RED
    if "REWRITTEN" in et:
        return _C.YELLOW
    if "STARTED" in et or "COMPLETED" in et:
        return _C.GREEN
    if "AUDIT" in et:
        return _C.CYAN
    return _C.MAGENTA


def get_logger():
    logger = logging.getLogger("dbtunnel")
    if logger.handlers:
        return logger

    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


logger = get_logger()


def generate_request_id():
    return str(uuid.uuid4())


def redact(value):
    """
    Mask secrets in a log payload: whole values under SECRET_KEYS,
    key=value fragments inside strings.
    """
    if isinstance(value, dict):
        return {
            k: "***" if str(k).lower() in SECRET_KEYS else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    if isinstance(value, str):
        return _SECRET_FRAGMENT.sub(lambda m: f"{m.group(1)}=***", value)
    return value


# Structured Log Event
def log_event(event_type: str, payload: dict):
    record = {"event_type": event_type, **redact(payload)}
    text = json.dumps(record, default=str)

    if _use_color():
        logger.info(f"{_event_color(event_type)}{text}{_C.RESET}")
    else:
        logger.info(text)


class RequestTimer:
    """
    Wall-clock timer for one request.
    """
    def __init__(self):
        self.start_time = time.perf_counter()

    def duration(self):
        return round(time.perf_counter() - self.start_time, 4)

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.start_time) * 1000)
