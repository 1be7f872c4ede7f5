"""Load adapter options from JSON files and environment variables."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from auction_signal.constants import LOG_PREFIX
from auction_signal.payload import PageEnvironment


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)

CONFIG_PATH_ENV = "AUCTION_SIGNAL_CONFIG"
SEND_TIMEOUT_ENV = "AUCTION_SIGNAL_SEND_TIMEOUT"
SEND_WORKERS_ENV = "AUCTION_SIGNAL_SEND_WORKERS"

SEND_TIMEOUT_DEFAULT = 5.0
SEND_WORKERS_DEFAULT = 4


def env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s Invalid float for %s: %s; using default %.2f", LOG_PREFIX, name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s Invalid int for %s: %s; using default %d", LOG_PREFIX, name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def send_timeout() -> float:
    return env_float(SEND_TIMEOUT_ENV, SEND_TIMEOUT_DEFAULT, clamp_min=0.1)


def send_workers() -> int:
    return env_int(SEND_WORKERS_ENV, SEND_WORKERS_DEFAULT, min_value=1)


@dataclass
class AdapterOptionsFile:
    """Adapter options plus the page environment, as stored on disk.

    ``options`` is passed unvalidated to the adapter so per-entry drops are
    logged in one place.
    """

    options: Dict[str, Any]
    page: Dict[str, str] = field(default_factory=dict)
    ortb2: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "AdapterOptionsFile":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            options=data.get("options", {}),
            page=data.get("page", {}),
            ortb2=data.get("ortb2", {}),
        )

    @classmethod
    def from_env(cls) -> Optional["AdapterOptionsFile"]:
        raw = os.getenv(CONFIG_PATH_ENV)
        if not raw:
            return None
        return cls.load(Path(raw))

    def save(self, path: Path) -> None:
        payload = {"options": self.options, "page": self.page, "ortb2": self.ortb2}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def environment(self) -> PageEnvironment:
        page: Dict[str, str] = {}
        raw_page = self.page if isinstance(self.page, dict) else {}
        if raw_page is not self.page:
            logger.warning("%s Page settings must be an object, ignoring %r", LOG_PREFIX, self.page)
        for key, value in raw_page.items():
            if not isinstance(value, str):
                logger.warning("%s Page value %s must be a string, ignoring %r", LOG_PREFIX, key, value)
                continue
            page[key] = value
        return PageEnvironment(
            domain=page.get("domain", ""),
            page_path=page.get("pageUrl", "/"),
            user_agent=page.get("userAgent", ""),
            host_version=page.get("pbjsVersion", "unknown"),
        )
