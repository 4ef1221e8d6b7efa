import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, Tuple, Union

from .errors import StartupCorruption

logger = logging.getLogger(__name__)


class CodeStore:
    """
    identifier -> scanCount, held in memory and mirrored to a JSON file.

    The whole mapping is rewritten on every mutation; there is no append log.
    Entries are created lazily and never deleted.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def load(self) -> None:
        if not self.path.exists():
            logger.info("No scan counts at %s, starting empty", self.path)
            self._counts = {}
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StartupCorruption(f"Cannot read scan counts from {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StartupCorruption(f"Scan counts in {self.path} must be a JSON object")
        for key, value in data.items():
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise StartupCorruption(
                    f"Invalid scan count {value!r} for {key!r} in {self.path}"
                )

        self._counts = data
        logger.info("Loaded %d scan counts from %s", len(self._counts), self.path)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._counts, indent=2), encoding="utf-8")

    def ensure(self, identifier: str) -> None:
        with self._lock:
            if identifier in self._counts:
                return
            self._counts[identifier] = 0
            try:
                self.save()
            except OSError:
                del self._counts[identifier]
                raise

    def ensure_many(self, identifiers: Iterable[str]) -> None:
        # one flush per batch
        with self._lock:
            added = [i for i in dict.fromkeys(identifiers) if i not in self._counts]
            for identifier in added:
                self._counts[identifier] = 0
            try:
                self.save()
            except OSError:
                for identifier in added:
                    del self._counts[identifier]
                raise

    def get(self, identifier: str) -> int:
        return self._counts.get(identifier, 0)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._counts

    def record_scan(self, identifier: str) -> int:
        return self.record_scan_with_previous(identifier)[1]

    def record_scan_with_previous(self, identifier: str) -> Tuple[int, int]:
        """Increment and persist atomically; returns (previous, new) counts."""
        with self._lock:
            is_new = identifier not in self._counts
            previous = self._counts.get(identifier, 0)
            self._counts[identifier] = previous + 1
            try:
                self.save()
            except OSError:
                # a failed flush must not consume the redemption
                if is_new:
                    del self._counts[identifier]
                else:
                    self._counts[identifier] = previous
                raise
            return previous, previous + 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)
