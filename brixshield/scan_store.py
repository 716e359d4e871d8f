"""
scan_store.py

Bounded, persisted history of scan records with change notifications.

The whole history is one JSON array kept under a single key of a key/value
backend (see ``db.py``), newest record first. Every mutating call reads the
array, changes it, writes it back and then notifies subscribers, all under
one lock.

Storage problems never escape: reads degrade to an empty history and failed
writes are logged. Subscribers are notified even when the write failed, so a
listener can observe a state that was not persisted.
"""

import json
import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from brixshield.app.heuristics import clamp_score, status_for_score
from brixshield.config import MAX_SCANS, STORAGE_KEY
from brixshield.db import storage_from_env

logger = logging.getLogger("scan_store")

DAY_MS = 24 * 60 * 60 * 1000
WEEK_MS = 7 * DAY_MS
MONTH_MS = 30 * DAY_MS

# Set once by add_scan; update_scan refuses to touch them
IMMUTABLE_FIELDS = frozenset({"id", "type", "target", "score", "status", "threats", "timestamp"})
# records missing any of these are skipped on load
REQUIRED_FIELDS = frozenset({"id", "type", "target", "score", "status", "timestamp"})

Listener = Callable[[], None]


def _is_record(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and REQUIRED_FIELDS.issubset(item)
        and isinstance(item["score"], (int, float))
        and isinstance(item["timestamp"], (int, float))
    )


def compute_statistics(scans: List[Dict[str, Any]], now_ms: int) -> Dict[str, int]:
    """Aggregate counts over ``scans``; ages are measured against ``now_ms``."""
    total = len(scans)
    return {
        "total": total,
        "today": sum(1 for s in scans if now_ms - s["timestamp"] < DAY_MS),
        "this_week": sum(1 for s in scans if now_ms - s["timestamp"] < WEEK_MS),
        "this_month": sum(1 for s in scans if now_ms - s["timestamp"] < MONTH_MS),
        "safe": sum(1 for s in scans if s["status"] == "safe"),
        "warnings": sum(1 for s in scans if s["status"] == "warning"),
        "threats": sum(1 for s in scans if s["status"] == "threat"),
        "total_threats": sum(len(s.get("threats") or []) for s in scans),
        "average_score": round(sum(s["score"] for s in scans) / total) if total else 0,
        "url_scans": sum(1 for s in scans if s["type"] == "url"),
        "file_scans": sum(1 for s in scans if s["type"] == "file"),
    }


class ScanStore:
    """Scan history over a key/value ``storage`` backend."""

    def __init__(
        self,
        storage,
        key: str = STORAGE_KEY,
        capacity: int = MAX_SCANS,
        clock: Callable[[], float] = time.time,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.storage = storage
        self.key = key
        self.capacity = capacity
        self.clock = clock
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    # -- persistence ------------------------------------------------------

    def _load(self) -> List[Dict[str, Any]]:
        try:
            stored = self.storage.get_item(self.key)
        except Exception:
            logger.exception("Error reading scan history")
            return []
        if not stored:
            return []
        try:
            scans = json.loads(stored)
        except ValueError:
            logger.warning("Scan history under %r is corrupt, treating it as empty", self.key)
            return []
        if not isinstance(scans, list):
            logger.warning("Scan history under %r is not a list, treating it as empty", self.key)
            return []
        valid = [s for s in scans if _is_record(s)]
        if len(valid) != len(scans):
            logger.warning("Skipping %d malformed record(s) in scan history %r", len(scans) - len(valid), self.key)
        return valid

    def _save(self, scans: List[Dict[str, Any]]) -> None:
        try:
            self.storage.set_item(self.key, json.dumps(scans))
        except Exception:
            logger.exception("Error saving scan history")

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Scan store listener %r failed", listener)

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    # -- mutations --------------------------------------------------------

    def add_scan(self, scan: Dict[str, Any]) -> Dict[str, Any]:
        """
        Store a new record and return it with ``id`` and ``timestamp`` set.

        ``scan`` carries ``type``, ``target``, ``score``, ``threats``,
        ``details`` and optionally ``size``/``mime_type``. Any ``id`` or
        ``timestamp`` it holds is replaced, and ``status`` is re-derived from
        the clamped score.
        """
        score = clamp_score(scan.get("score", 0))
        record = dict(scan)
        record.update(
            id=uuid.uuid4().hex,
            timestamp=self._now_ms(),
            score=score,
            status=status_for_score(score),
            threats=list(scan.get("threats") or []),
            details=dict(scan.get("details") or {}),
        )
        with self._lock:
            scans = self._load()
            scans.insert(0, record)
            evicted = len(scans) - self.capacity
            if evicted > 0:
                del scans[self.capacity:]
                logger.debug("Evicted %d oldest scan(s)", evicted)
            self._save(scans)
            self._notify()
        return dict(record)

    def update_scan(self, scan_id: str, updates: Dict[str, Any]) -> None:
        """
        Shallow-merge ``updates`` into a record. Unknown ids are ignored.

        ``ai_recommendations`` is set at most once: a record that already
        carries recommendations keeps them. An update that ends up changing
        nothing neither writes nor notifies.
        """
        rejected = IMMUTABLE_FIELDS.intersection(updates)
        if rejected:
            logger.warning("Ignoring immutable field(s) %s in update of %s", sorted(rejected), scan_id)
        patch = {k: v for k, v in updates.items() if k not in IMMUTABLE_FIELDS}

        with self._lock:
            scans = self._load()
            for i, scan in enumerate(scans):
                if scan.get("id") == scan_id:
                    break
            else:
                return
            if scan.get("ai_recommendations") and "ai_recommendations" in patch:
                logger.warning("Scan %s already has AI recommendations, keeping them", scan_id)
                del patch["ai_recommendations"]
            if not patch:
                return
            merged = dict(scan, **patch)
            if "details" in patch:
                merged["details"] = dict(scan.get("details") or {}, **(patch["details"] or {}))
            scans[i] = merged
            self._save(scans)
            self._notify()

    def delete_scans(self, ids: Iterable[str]) -> None:
        """Remove every record whose id is in ``ids``; one write, one notification."""
        doomed = set(ids)
        with self._lock:
            scans = [s for s in self._load() if s.get("id") not in doomed]
            self._save(scans)
            self._notify()

    def clear_all(self) -> None:
        with self._lock:
            try:
                self.storage.remove_item(self.key)
            except Exception:
                logger.exception("Error clearing scan history")
            self._notify()

    # -- queries ----------------------------------------------------------

    def get_all(self) -> List[Dict[str, Any]]:
        """All records, most recent first."""
        with self._lock:
            return self._load()

    def get_recent(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self.get_all()[:max(0, limit)]

    def get_scan(self, scan_id: str) -> Optional[Dict[str, Any]]:
        return next((s for s in self.get_all() if s.get("id") == scan_id), None)

    def get_statistics(self) -> Dict[str, int]:
        return compute_statistics(self.get_all(), self._now_ms())

    # -- subscriptions ----------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener()`` after every change. Returns a function that
        removes this subscription; calling it twice is harmless.
        """
        with self._lock:
            self._listeners.append(listener)
        subscribed = [True]

        def unsubscribe() -> None:
            with self._lock:
                if subscribed[0]:
                    subscribed[0] = False
                    self._listeners.remove(listener)

        return unsubscribe


def create_store() -> ScanStore:
    """Store over the backend chosen by configuration."""
    return ScanStore(storage_from_env())
