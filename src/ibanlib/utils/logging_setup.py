from __future__ import annotations

import json
import logging
import os
import threading
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict

_ROOT_CONFIGURED = False
_ROOT_CONFIG_LOCK = threading.Lock()

_FALSY = {"0", "false", "False", "FALSE", "no", "NO"}
_TRUTHY = {"1", "true", "TRUE", "yes", "YES"}

MAX_DETAIL_REPR = 400


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, for machine reading of validation runs."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "event_name": getattr(record, "event_name", None),
        }

        extra_obj = getattr(record, "extra_payload", None)
        if extra_obj:
            payload["extra"] = extra_obj

        if record.exc_info:
            payload["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, ensure_ascii=False, default=str)


def _detail_enabled_from_env() -> bool:
    return str(os.environ.get("IBANLIB_LOG_DETAIL", "1")).strip() not in _FALSY


def setup_logging(log_dir: Path, name: str = "ibanlib") -> logging.Logger:
    """
    Configures, once per process:
      <log_dir>/ibanlib.log            plain text
      <log_dir>/ibanlib_events.jsonl   JSON lines (JsonLineFormatter)

    Console output is off by default. Enable via IBANLIB_LOG_CONSOLE=1.
    """
    global _ROOT_CONFIGURED

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)

    with _ROOT_CONFIG_LOCK:
        if not _ROOT_CONFIGURED:
            root = logging.getLogger()
            root.setLevel(logging.DEBUG)

            fmt = logging.Formatter(
                "%(asctime)s.%(msecs)03d %(levelname)s "
                "pid=%(process)d [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

            fh = logging.FileHandler(log_dir / "ibanlib.log", encoding="utf-8", errors="backslashreplace")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(fmt)
            root.addHandler(fh)

            fh_json = logging.FileHandler(log_dir / "ibanlib_events.jsonl", encoding="utf-8")
            fh_json.setLevel(logging.INFO)
            fh_json.setFormatter(JsonLineFormatter())
            root.addHandler(fh_json)

            if os.environ.get("IBANLIB_LOG_CONSOLE", "").strip() in _TRUTHY:
                ch = logging.StreamHandler()
                ch.setLevel(logging.DEBUG)
                ch.setFormatter(fmt)
                root.addHandler(ch)

            setattr(root, "_ibanlib_log_detail", _detail_enabled_from_env())
            _ROOT_CONFIGURED = True

    logger.setLevel(logging.DEBUG)
    logger.propagate = True
    logger.info("Logging initialised: log_dir=%s pid=%s", log_dir, os.getpid())
    return logger


def log_event(logger: logging.Logger, event_name: str, message: str, **extra: Any) -> None:
    """
    Structured logging helper:
    - attaches event_name and extra_payload for the JSON handler
    - appends a readable key=value suffix to the text message
    """
    extra_payload: Dict[str, Any] = extra or {}
    detail_enabled = bool(getattr(logging.getLogger(), "_ibanlib_log_detail", True))

    if not detail_enabled:
        extra_payload = {k: v for k, v in extra_payload.items() if len(repr(v)) <= MAX_DETAIL_REPR}

    suffix = ""
    if extra_payload:
        suffix = " | " + " ".join(f"{k}={extra_payload[k]!r}" for k in sorted(extra_payload.keys()))
    logger.info(
        f"{message}{suffix}",
        extra={
            "event_name": event_name,
            "extra_payload": extra_payload,
        },
    )
