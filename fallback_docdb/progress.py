from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], None]


class Progress:
    """
    Thin wrapper around an optional user callback receiving
    {"phase": str, "pct": int, "msg": str} events.
    """
    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self._cb = callback

    def emit(self, phase: str, pct: float, msg: str = "") -> None:
        if self._cb is None:
            return
        evt = {"phase": phase, "pct": max(0, min(100, int(pct))), "msg": msg}
        try:
            self._cb(evt)
        except Exception:
            # a broken progress printer must not break the store
            logger.debug("progress callback failed for phase %s", phase, exc_info=True)
