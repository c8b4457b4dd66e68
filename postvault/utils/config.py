"""Run configuration and environment parsing."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from postvault.core.errors import ConfigError
from postvault.core.models import CrawlBoundary
from postvault.utils.validators import parse_bool, parse_post_id, validate_creator_id


RENDER_MODES = ("local", "url")


@dataclass
class RunConfig:
    creator_id: str
    output_dir: str = "out"
    lower_bound_id: Optional[int] = None  # TO_ID: stop once reached
    upper_bound_id: Optional[int] = None  # FROM_ID: skip anything newer
    page_size: int = 10
    render_mode: str = "local"  # 'local' file or live 'url'
    screenshot: bool = False
    request_timeout: float = 30.0
    navigation_timeout: float = 30.0
    log_dir: str = "logs"
    log_level: str = "INFO"

    def __post_init__(self):
        ok, creator, err = validate_creator_id(self.creator_id)
        if not ok:
            raise ConfigError(err)
        self.creator_id = creator
        if self.render_mode not in RENDER_MODES:
            raise ConfigError(f"RENDER_MODE must be one of {', '.join(RENDER_MODES)}, got {self.render_mode!r}")
        if self.page_size <= 0:
            raise ConfigError("page_size must be positive")
        if self.request_timeout <= 0 or self.navigation_timeout <= 0:
            raise ConfigError("timeouts must be positive")
        if (self.lower_bound_id is not None and self.upper_bound_id is not None
                and self.lower_bound_id >= self.upper_bound_id):
            raise ConfigError(f"TO_ID ({self.lower_bound_id}) must be below FROM_ID ({self.upper_bound_id})")

    @property
    def boundary(self) -> CrawlBoundary:
        return CrawlBoundary(lower_bound_id=self.lower_bound_id, upper_bound_id=self.upper_bound_id)

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RunConfig":
        """
        Build a config from environment variables.

        CREATOR_ID is required. TO_ID and FROM_ID set the lower and upper post
        id bounds; the rest tune output, rendering and logging.

        Raises:
            ConfigError: Missing CREATOR_ID or an unparsable value.
        """
        env = os.environ if environ is None else environ
        creator = env.get("CREATOR_ID", "").strip()
        if not creator:
            raise ConfigError("Set your creator ID to environment variable CREATOR_ID")
        try:
            return cls(
                creator_id=creator,
                output_dir=env.get("OUTPUT_DIR") or "out",
                lower_bound_id=parse_post_id(env.get("TO_ID")),
                upper_bound_id=parse_post_id(env.get("FROM_ID")),
                render_mode=(env.get("RENDER_MODE") or "local").strip().lower(),
                screenshot=parse_bool(env.get("SCREENSHOT")),
                request_timeout=float(env.get("REQUEST_TIMEOUT") or 30.0),
                navigation_timeout=float(env.get("NAVIGATION_TIMEOUT") or 30.0),
                log_dir=env.get("LOG_DIR") or "logs",
                log_level=env.get("LOG_LEVEL") or "INFO",
            )
        except ValueError as e:
            raise ConfigError(str(e)) from e
