# operator_repo/infra/logging.py
from __future__ import annotations

import logging

_LEVELS: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def resolve_level(name: str | None) -> int:
    return _LEVELS.get((name or "").strip().upper(), logging.INFO)


def setup_logging(service_name: str = "analytics-operator-repo", level_name: str | None = "INFO") -> None:
    """
    One consistent line format for the service and its dependencies.
    """
    level = resolve_level(level_name)
    logging.basicConfig(
        level=level,
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | "
            f"svc={service_name} | %(message)s"
        ),
    )
    logging.getLogger("operator_repo").setLevel(level)
    # quiet noisy deps
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
