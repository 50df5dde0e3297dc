"""Deterministic luck function.

Maps a string key to a float in [0, 1). The value depends only on the key, so
it is stable across runs, processes and machines (unlike ``hash()``, which is
salted per process).
"""

import hashlib

_SCALE = float(1 << 64)


def luck(key: str) -> float:
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return int(digest[:16], 16) / _SCALE
