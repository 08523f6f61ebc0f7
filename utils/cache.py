"""
Bounded in-memory cache of validation results keyed by invoice hash and date
Lets callers return the same result for a resubmitted invoice.
"""

import logging
import threading
from collections import OrderedDict
from typing import Optional

from models.validation import ValidationResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Insertion-ordered cache; the oldest entry is evicted past max_entries"""

    def __init__(self, max_entries: int = 1000):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._storage: "OrderedDict[str, ValidationResult]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ValidationResult]:
        with self._lock:
            return self._storage.get(key)

    def put(self, key: str, result: ValidationResult) -> None:
        with self._lock:
            self._storage[key] = result
            self._storage.move_to_end(key)
            while len(self._storage) > self.max_entries:
                evicted, _ = self._storage.popitem(last=False)
                logger.debug(f"Result cache evicted {evicted[:12]}")

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._storage
