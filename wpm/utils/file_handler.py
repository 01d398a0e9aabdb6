from __future__ import annotations
from pathlib import Path
from typing import List, Optional
import logging
import random

_DEFAULT_FILE = Path(__file__).resolve().parent.parent / "assets" / "texts" / "practice_words.txt"

_FALLBACK = (
    "also sentence stop she men see been from we follow but mother too form "
    "this went to then show have only now around help family old write grow"
).split()


def load_words(path: Optional[Path] = None) -> List[str]:
    """Practice words, one per line. Falls back to a short built-in list."""
    src = Path(path) if path is not None else _DEFAULT_FILE
    try:
        words = [w.strip() for w in src.read_text(encoding="utf-8").splitlines()]
    except OSError as e:
        logging.warning("Failed to load word list %s: %s", src, e)
        return list(_FALLBACK)
    words = [w for w in words if w]
    return words or list(_FALLBACK)


def sample_words(count: int, rng: Optional[random.Random] = None, words: Optional[List[str]] = None) -> List[str]:
    """A random passage of ``count`` words (repeats allowed)."""
    pool = words if words is not None else load_words()
    rng = rng or random.Random()
    return [rng.choice(pool) for _ in range(count)]
