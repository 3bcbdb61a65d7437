"""Tests for environment-driven harness configuration."""

from pathlib import Path

import pytest

from harness.config import (
    ACTION_TIMEOUT,
    BROWSER_LAUNCH_ARGS,
    DEFAULT_BASE_URL,
    HarnessConfig,
)
from harness.errors import ConfigError
from tests.pytest_marks import unit


@unit
class TestFromEnvironment:
    def test_defaults(self) -> None:
        config = HarnessConfig.from_environment({})
        assert config.base_url == DEFAULT_BASE_URL
        assert config.browsers == ("chromium",)
        assert config.headless is True
        assert config.action_timeout == ACTION_TIMEOUT
        assert config.viewport == (1280, 720)

    def test_overrides(self) -> None:
        config = HarnessConfig.from_environment(
            {
                "HARNESS_BASE_URL": "http://localhost:9000",
                "HARNESS_HTML_DIR": "demo",
                "HARNESS_BROWSERS": "firefox, webkit",
                "HARNESS_HEADLESS": "false",
                "HARNESS_SLOW_MO": "25",
                "HARNESS_WAIT_TIMEOUT": "1500",
                "HARNESS_POLL_INTERVAL": "20",
                "HARNESS_VIEWPORT": "800x600",
            }
        )
        assert config.base_url == "http://localhost:9000"
        assert config.html_dir == Path("demo")
        assert config.browsers == ("firefox", "webkit")
        assert config.headless is False
        assert config.slow_mo == 25
        assert config.wait_timeout == 1500
        assert config.poll_interval == 20
        assert config.viewport_size == {"width": 800, "height": 600}

    @pytest.mark.parametrize(
        "env,variable",
        [
            ({"HARNESS_BROWSERS": "chrome"}, "HARNESS_BROWSERS"),
            ({"HARNESS_BROWSERS": " , "}, "HARNESS_BROWSERS"),
            ({"HARNESS_HEADLESS": "maybe"}, "HARNESS_HEADLESS"),
            ({"HARNESS_ACTION_TIMEOUT": "soon"}, "HARNESS_ACTION_TIMEOUT"),
            ({"HARNESS_WAIT_TIMEOUT": "-1"}, "HARNESS_WAIT_TIMEOUT"),
            ({"HARNESS_POLL_INTERVAL": "0"}, "HARNESS_POLL_INTERVAL"),
            ({"HARNESS_VIEWPORT": "wide"}, "HARNESS_VIEWPORT"),
        ],
    )
    def test_invalid_values_name_the_variable(self, env: dict, variable: str) -> None:
        with pytest.raises(ConfigError, match=variable):
            HarnessConfig.from_environment(env)

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HARNESS_NAVIGATION_TIMEOUT", "1234")
        assert HarnessConfig.from_environment().navigation_timeout == 1234


@unit
class TestUrlsAndLaunchArgs:
    def test_resolve_relative_paths(self) -> None:
        config = HarnessConfig(base_url="http://127.0.0.1:5500/")
        assert config.resolve_url("bars.html") == "http://127.0.0.1:5500/bars.html"
        assert config.resolve_url("/demo/heap.html") == "http://127.0.0.1:5500/demo/heap.html"

    def test_resolve_keeps_absolute_urls(self) -> None:
        config = HarnessConfig()
        assert config.resolve_url("https://example.com/x") == "https://example.com/x"
        assert config.resolve_url("about:blank") == "about:blank"
        assert config.resolve_url("data:text/html,<p>hi</p>") == "data:text/html,<p>hi</p>"

    def test_base_url_with_path(self) -> None:
        config = HarnessConfig(base_url="http://host/pages")
        assert config.resolve_url("a.html") == "http://host/pages/a.html"

    def test_launch_args(self) -> None:
        config = HarnessConfig()
        args = config.launch_args("chromium")
        assert "--no-sandbox" in args
        args.append("--mutated")
        assert "--mutated" not in BROWSER_LAUNCH_ARGS["chromium"]
        assert config.launch_args("firefox") == []
        with pytest.raises(KeyError):
            config.launch_args("opera")

    def test_config_is_frozen(self) -> None:
        config = HarnessConfig()
        with pytest.raises(AttributeError):
            config.port = 1  # type: ignore[misc]
