"""Runtime configuration for the order desk."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .domain import DEFAULT_DELIVERY_TIME, normalize_time

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_TIMEOUT = 15.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settings:
    """Values read from ``ORDER_DESK_*`` environment variables."""

    remote_url: str = ""
    request_timeout: float = DEFAULT_TIMEOUT
    default_delivery_time: str = DEFAULT_DELIVERY_TIME
    log_level: str = "INFO"

    @property
    def uses_remote(self) -> bool:
        return bool(self.remote_url)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        raw_timeout = env.get("ORDER_DESK_TIMEOUT")
        timeout = DEFAULT_TIMEOUT
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                timeout = -1.0
            if timeout <= 0:
                logger.warning(
                    "Ignoring ORDER_DESK_TIMEOUT=%r, using %ss", raw_timeout, DEFAULT_TIMEOUT
                )
                timeout = DEFAULT_TIMEOUT
        return cls(
            remote_url=env.get("ORDER_DESK_REMOTE_URL", "").strip(),
            request_timeout=timeout,
            default_delivery_time=normalize_time(
                env.get("ORDER_DESK_DEFAULT_DELIVERY_TIME"), DEFAULT_DELIVERY_TIME
            ),
            log_level=env.get("ORDER_DESK_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


__all__ = ["Settings", "configure_logging", "LOG_FORMAT"]
