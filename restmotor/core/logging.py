# restmotor/core/logging.py
import sys
from datetime import datetime
from typing import Any, Optional

from .config import settings


# ═══════════════════════════════════════════════════════════════════════════════
# LOG FILTERING
# ═══════════════════════════════════════════════════════════════════════════════
# INFO scopes are always printed, everything else only in debug mode

INFO_SCOPES = {
    "DB",           # Connection lifecycle
    "CONNECTOR",    # Swallowed / unhandled storage failures
}

DEBUG_SCOPES = {
    "SCHEMA",       # Schema builds
    "HANDLE",       # Storage handle creation and index setup
    "QUERY",        # Effective filters
}


def is_enabled(scope: str) -> bool:
    return settings.debug or scope in INFO_SCOPES


def log(scope: str, message: str, data: Any = None, model: Optional[str] = None) -> None:
    """
    Unified logging function for restmotor.

    Only INFO_SCOPES are shown by default.
    Set RESTMOTOR_DEBUG=true to see all scopes.
    """
    if not is_enabled(scope):
        return

    timestamp = datetime.now().strftime("%H:%M:%S")
    prefix = f"[{timestamp}] [{scope}]"

    if model:
        prefix += f" [{model}]"

    print(f"{prefix} {message}")

    if data:
        print(f"  Data: {data}")

    sys.stdout.flush()


def log_section(scope: str, title: str) -> None:
    """
    Log a section header with visual separator.
    """
    if not is_enabled(scope):
        return

    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"\n{'='*60}")
    print(f"[{timestamp}] [{scope}] {title}")
    print(f"{'='*60}")
    sys.stdout.flush()
