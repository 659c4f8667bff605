"""
Subprocess Utilities - Windows-safe subprocess spawning.

On Windows every subprocess.Popen() call opens a visible console window
for a split second. MCP servers are long-lived children that talk over
stdio, so the flash would stay for the whole measurement.

This module provides a drop-in wrapper that automatically adds the
CREATE_NO_WINDOW creation flag on Windows, preventing the flash.

Usage:
    from chonkometer.core.utils.subprocess_utils import popen_subprocess

    proc = popen_subprocess(
        ["npx", "-y", "@modelcontextprotocol/server-memory"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
"""

import platform
import subprocess
from typing import Any


# Pre-compute the flag once at import time.
# subprocess.CREATE_NO_WINDOW = 0x08000000 (Windows only).
_IS_WINDOWS = platform.system() == "Windows"
_NO_WINDOW_FLAGS = getattr(subprocess, "CREATE_NO_WINDOW", 0) if _IS_WINDOWS else 0


def popen_subprocess(*args: Any, **kwargs: Any) -> subprocess.Popen:
    """
    Wrapper around subprocess.Popen() that suppresses console windows on Windows.

    The `creationflags` keyword is automatically set to CREATE_NO_WINDOW
    on Windows unless the caller explicitly provides a different value.

    Returns:
        subprocess.Popen instance.
    """
    if _IS_WINDOWS and "creationflags" not in kwargs:
        kwargs["creationflags"] = _NO_WINDOW_FLAGS

    return subprocess.Popen(*args, **kwargs)
