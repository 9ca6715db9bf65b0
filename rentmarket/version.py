from __future__ import annotations

"""
rentmarket.version — semantic version string.

If RENTMARKET_VERSION is set in the environment, that wins; otherwise
BASE_VERSION is reported.
"""

import os

# Bump this on intentional releases.
BASE_VERSION = "0.1.0"


def get_version() -> str:
    env = os.getenv("RENTMARKET_VERSION")
    return env.strip() if env and env.strip() else BASE_VERSION


__version__ = get_version()

__all__ = ["BASE_VERSION", "get_version", "__version__"]
