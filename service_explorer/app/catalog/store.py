"""
In-memory catalog store shared by the refresher and every stream session.
"""

import random
import threading
from typing import Iterable, Optional, Tuple

from .models import Game


class CatalogStore:
    """Holds the current catalog snapshot.

    A snapshot is an immutable tuple that is replaced wholesale. Writers take
    ``_write_lock`` only for the reference swap; readers never lock. Each read
    captures the snapshot reference once and works on that reference only, so
    a concurrent ``replace`` can never shift the length under an index.
    """

    def __init__(self, games: Optional[Iterable[Game]] = None, rng: Optional[random.Random] = None):
        self._write_lock = threading.Lock()
        self._games: Tuple[Game, ...] = tuple(games or ())
        self._rng = rng or _process_rng

    def replace(self, games: Iterable[Game]) -> int:
        """Install ``games`` as the current catalog and return its size."""
        snapshot = tuple(games)
        with self._write_lock:
            self._games = snapshot
        return len(snapshot)

    def sample_random(self) -> Tuple[Optional[Game], bool]:
        """Return one uniformly chosen game, or ``(None, False)`` when empty."""
        snapshot = self._games
        if not snapshot:
            return None, False
        return snapshot[self._rng.randrange(len(snapshot))], True

    def count(self) -> int:
        return len(self._games)


_process_rng = random.Random()
