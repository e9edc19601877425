"""Unit tests for the polling watcher."""

import threading
from pathlib import Path
from unittest.mock import patch

from typed_actions.watcher import Watcher, changed_paths, snapshot


def clock(*times):
    ticks = iter(times)
    return lambda: next(ticks)


class TestSnapshots:
    """File modification snapshots."""

    def test_snapshot_skips_hidden_and_cache(self, tmp_path):
        (tmp_path / "a.py").write_text("")
        (tmp_path / ".venv").mkdir()
        (tmp_path / ".venv" / "b.py").write_text("")
        (tmp_path / "__pycache__").mkdir()
        (tmp_path / "__pycache__" / "c.py").write_text("")
        (tmp_path / "notes.txt").write_text("")
        assert list(snapshot(tmp_path)) == [tmp_path / "a.py"]

    def test_changed_paths(self):
        before = {Path("a.py"): 1.0, Path("b.py"): 1.0}
        after = {Path("a.py"): 2.0, Path("c.py"): 1.0}
        assert changed_paths(before, after) == [Path("a.py"), Path("b.py"), Path("c.py")]
        assert changed_paths(after, after) == []


class TestWatcher:
    """Debounced batches."""

    def test_batch_fires_after_quiet_period(self, tmp_path):
        batches = []
        snapshots = [
            {Path("a.py"): 1.0},
            {Path("a.py"): 2.0},
            {Path("a.py"): 2.0, Path("b.py"): 1.0},
            {Path("a.py"): 2.0, Path("b.py"): 1.0},
            {Path("a.py"): 2.0, Path("b.py"): 1.0},
        ]
        watcher = Watcher(tmp_path, batches.append, debounce=0.5, interval=0, clock=clock(0.0, 0.2, 0.4, 0.8))
        with patch("typed_actions.watcher.snapshot", side_effect=snapshots):
            count = watcher.run(threading.Event(), max_batches=1)
        assert count == 1
        assert batches == [[Path("a.py"), Path("b.py")]]

    def test_cancel_stops_without_batches(self, tmp_path):
        cancel = threading.Event()
        cancel.set()
        watcher = Watcher(tmp_path, lambda batch: None, interval=0)
        assert watcher.run(cancel) == 0
