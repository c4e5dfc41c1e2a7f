"""Audio duration probing with ffprobe."""

import logging
import subprocess
from typing import Optional

from .config import config

logger = logging.getLogger(__name__)

def probe_duration(data: bytes, timeout: int = 30) -> Optional[int]:
    """Return the duration of an audio blob in whole seconds, or None if unknown."""
    cmd = [
        config.FFPROBE_BIN,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        "-i", "pipe:0",
    ]
    try:
        result = subprocess.run(cmd, input=data, capture_output=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"ffprobe failed: {e}")
        return None

    if result.returncode != 0:
        logger.warning(f"ffprobe exited with code {result.returncode}")
        return None

    try:
        seconds = round(float(result.stdout.decode().strip()))
    except ValueError:
        return None
    return seconds if seconds > 0 else None

def resolve_duration(probed: Optional[int], submitted, default: int) -> int:
    """Pick the probed duration, then a submitted one, then the default."""
    if probed:
        return probed
    try:
        submitted = int(submitted)
    except (TypeError, ValueError):
        return default
    return submitted if submitted > 0 else default
