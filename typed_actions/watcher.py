"""
Polling file watcher.

The watcher compares modification times of the Python files under a tree
between polls. Once changes have been quiet for the debounce period it hands
the batch of changed paths to a callback; every batch is handled on its own,
with no state carried over from the previous one.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Snapshot = Dict[Path, float]


def snapshot(root: Path) -> Snapshot:
    """Modification times of the watched files under ``root``.

    Hidden directories and ``__pycache__`` are skipped. Files that vanish
    while scanning are left out.
    """
    if root.is_file():
        candidates = [root]
    else:
        candidates = [
            p
            for p in root.rglob("*.py")
            if not any(part.startswith(".") or part == "__pycache__" for part in p.relative_to(root).parts[:-1])
        ]
    mtimes: Snapshot = {}
    for path in candidates:
        try:
            mtimes[path] = path.stat().st_mtime
        except OSError:
            continue
    return mtimes


def changed_paths(before: Snapshot, after: Snapshot) -> List[Path]:
    """Paths added, removed or modified between two snapshots, sorted."""
    changed = {p for p in after if before.get(p) != after[p]}
    changed |= {p for p in before if p not in after}
    return sorted(changed)


class Watcher:
    """
    Debounced change detector.

    Args:
        root: File or directory to watch.
        on_batch: Called with the changed paths of each debounced batch.
        debounce: Seconds without further changes before a batch fires.
        interval: Seconds between polls.
    """

    def __init__(
        self,
        root: Path,
        on_batch: Callable[[List[Path]], None],
        debounce: float = 0.5,
        interval: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.root = root
        self.on_batch = on_batch
        self.debounce = debounce
        self.interval = interval
        self.clock = clock
        self.batches = 0

    def run(self, cancel: threading.Event, max_batches: Optional[int] = None) -> int:
        """
        Poll until ``cancel`` is set.

        Args:
            cancel: Stops the loop between polls.
            max_batches: Stop after this many batches, for bounded runs.

        Returns:
            int: Number of batches handed to the callback.
        """
        current = snapshot(self.root)
        pending: List[Path] = []
        last_change = 0.0
        while not cancel.is_set():
            if cancel.wait(self.interval):
                break
            latest = snapshot(self.root)
            changes = changed_paths(current, latest)
            current = latest
            if changes:
                logger.debug("Detected %d changed files", len(changes))
                pending = sorted(set(pending) | set(changes))
                last_change = self.clock()
                continue
            if pending and self.clock() - last_change >= self.debounce:
                batch, pending = pending, []
                self.batches += 1
                self.on_batch(batch)
                if max_batches is not None and self.batches >= max_batches:
                    break
        return self.batches
