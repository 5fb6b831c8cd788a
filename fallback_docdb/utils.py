from __future__ import annotations
import itertools
import json
import os
import threading
import time
from typing import Any

_counter = itertools.count()
_counter_lock = threading.Lock()


def new_token() -> str:
    """
    Timestamp-based identifier: milliseconds since epoch followed by the pid
    and a per-process sequence number, so ids made in the same millisecond differ.
    """
    with _counter_lock:
        seq = next(_counter)
    return f"{int(time.time() * 1000)}-{os.getpid():x}-{seq}"


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
