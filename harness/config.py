"""
Environment-driven configuration for browser harness sessions.

This module provides an immutable configuration type, the centralized
per-browser launch arguments and URL resolution against the served page root.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Final, List, Literal, Mapping, Optional, Tuple
from urllib.parse import urljoin

from harness.errors import ConfigError

BrowserName = Literal["chromium", "firefox", "webkit"]

SUPPORTED_BROWSERS: Final[Tuple[BrowserName, ...]] = ("chromium", "firefox", "webkit")

# Defaults (milliseconds unless noted)
DEFAULT_BASE_URL: Final[str] = "http://127.0.0.1:5500"
DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 5500
DEFAULT_HTML_DIR: Final[str] = "html"
NAVIGATION_TIMEOUT: Final[int] = 30000
ACTION_TIMEOUT: Final[int] = 10000
WAIT_TIMEOUT: Final[int] = 5000
POLL_INTERVAL: Final[int] = 50
DEFAULT_VIEWPORT: Final[Tuple[int, int]] = (1280, 720)

# Browser-specific launch arguments
# Chromium needs sandbox disabling in containerized environments
BROWSER_LAUNCH_ARGS: Dict[str, List[str]] = {
    "chromium": [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-background-timer-throttling",
        "--disable-backgrounding-occluded-windows",
        "--disable-renderer-backgrounding",
    ],
    "firefox": [],
    "webkit": [],
}

# URL schemes that are never joined onto the base URL
_ABSOLUTE_PREFIXES: Final[Tuple[str, ...]] = (
    "http://",
    "https://",
    "file://",
    "about:",
    "data:",
)


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _env_int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}", e) from e
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_browsers(env: Mapping[str, str]) -> Tuple[BrowserName, ...]:
    raw = env.get("HARNESS_BROWSERS", "chromium")
    names = [n.strip().lower() for n in raw.split(",") if n.strip()]
    if not names:
        raise ConfigError("HARNESS_BROWSERS must name at least one browser")

    browsers: List[BrowserName] = []
    for name in names:
        match name:
            case "chromium" | "firefox" | "webkit":
                browsers.append(name)
            case _:
                raise ConfigError(
                    f"HARNESS_BROWSERS contains unknown browser {name!r}; "
                    f"expected one of {', '.join(SUPPORTED_BROWSERS)}"
                )
    return tuple(browsers)


def _env_viewport(env: Mapping[str, str]) -> Tuple[int, int]:
    raw = env.get("HARNESS_VIEWPORT")
    if raw is None:
        return DEFAULT_VIEWPORT
    parts = raw.lower().split("x")
    if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
        raise ConfigError(f"HARNESS_VIEWPORT must look like 1280x720, got {raw!r}")
    return int(parts[0]), int(parts[1])


@dataclass(frozen=True)
class HarnessConfig:
    """Immutable harness configuration."""

    base_url: str = DEFAULT_BASE_URL
    html_dir: Path = Path(DEFAULT_HTML_DIR)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    browsers: Tuple[BrowserName, ...] = ("chromium",)
    headless: bool = True
    slow_mo: int = 0
    navigation_timeout: int = NAVIGATION_TIMEOUT
    action_timeout: int = ACTION_TIMEOUT
    wait_timeout: int = WAIT_TIMEOUT
    poll_interval: int = POLL_INTERVAL
    viewport: Tuple[int, int] = DEFAULT_VIEWPORT

    @classmethod
    def from_environment(cls, env: Optional[Mapping[str, str]] = None) -> HarnessConfig:
        """
        Create config from HARNESS_* environment variables.

        Raises ConfigError naming the offending variable on invalid input.
        """
        source: Mapping[str, str] = os.environ if env is None else env

        return cls(
            base_url=source.get("HARNESS_BASE_URL", DEFAULT_BASE_URL),
            html_dir=Path(source.get("HARNESS_HTML_DIR", DEFAULT_HTML_DIR)),
            host=source.get("HARNESS_HOST", DEFAULT_HOST),
            port=_env_int(source, "HARNESS_PORT", DEFAULT_PORT, minimum=0),
            browsers=_env_browsers(source),
            headless=_env_bool(source, "HARNESS_HEADLESS", True),
            slow_mo=_env_int(source, "HARNESS_SLOW_MO", 0),
            navigation_timeout=_env_int(
                source, "HARNESS_NAVIGATION_TIMEOUT", NAVIGATION_TIMEOUT
            ),
            action_timeout=_env_int(source, "HARNESS_ACTION_TIMEOUT", ACTION_TIMEOUT),
            wait_timeout=_env_int(source, "HARNESS_WAIT_TIMEOUT", WAIT_TIMEOUT),
            poll_interval=_env_int(
                source, "HARNESS_POLL_INTERVAL", POLL_INTERVAL, minimum=1
            ),
            viewport=_env_viewport(source),
        )

    @property
    def viewport_size(self) -> Dict[str, int]:
        """Viewport in the shape Playwright's new_context expects."""
        return {"width": self.viewport[0], "height": self.viewport[1]}

    def launch_args(self, browser_name: str) -> List[str]:
        """Launch arguments for a browser; unknown browsers fail loudly."""
        return list(BROWSER_LAUNCH_ARGS[browser_name])

    def resolve_url(self, path_or_url: str) -> str:
        """Join a relative page path onto the base URL."""
        if path_or_url.startswith(_ABSOLUTE_PREFIXES):
            return path_or_url
        return urljoin(self.base_url.rstrip("/") + "/", path_or_url.lstrip("/"))
