#!/usr/bin/env python3
"""
Install the Playwright browsers named by HARNESS_BROWSERS.
"""

import subprocess
import sys
from typing import List, NoReturn

from harness.config import HarnessConfig
from harness.errors import ConfigError


def install_command(browsers: List[str], with_deps: bool = False) -> List[str]:
    command = [sys.executable, "-m", "playwright", "install"]
    if with_deps:
        command.append("--with-deps")
    return command + browsers


def main() -> NoReturn:
    """Install Playwright browsers."""
    try:
        browsers = list(HarnessConfig.from_environment().browsers)
    except ConfigError as e:
        print(f"❌ {e}")
        sys.exit(2)

    command = install_command(browsers, with_deps="--with-deps" in sys.argv[1:])
    try:
        result = subprocess.run(command, check=True, capture_output=True, text=True)
        print(f"✅ Playwright browsers installed: {', '.join(browsers)}")
        print(result.stdout)
        sys.exit(0)
    except subprocess.CalledProcessError as e:
        print(f"❌ Failed to install Playwright browsers: {e}")
        print(f"stdout: {e.stdout}")
        print(f"stderr: {e.stderr}")
        sys.exit(1)


if __name__ == "__main__":
    main()
