"""Lazy record quality assessment.

`LazyQualityAssessor` defers the (comparatively expensive) five-dimension
scoring until `.assess()` is called and keeps a bounded cache keyed by caller
supplied keys. `QuickQualityAssessor` returns a single heuristic score and is
meant for large batches.

Records are plain mappings; the scorers look at `symbol`, `price`, `size`,
`bid`, `ask` and `timestamp` (epoch milliseconds).
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections import OrderedDict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from adapters.vault_files import ensure_vault, iter_vault_files, read_note, relative
from core.config import AppSettings
from core.domain.models import CacheStats, DataQuality
from core.services.markdown import parse_frontmatter

logger = logging.getLogger(__name__)

REQUIRED_RECORD_FIELDS: tuple[str, ...] = ("symbol", "price", "timestamp")
DEFAULT_CACHE_SIZE = 1000
DEFAULT_VOLUME_THRESHOLD = 1000

Clock = Callable[[], float]


def now_ms() -> float:
    return time.time() * 1000.0


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _as_number(value: Any) -> float | None:
    """`value` as a float when it is a number or a numeric string such as `"45000"`."""

    if _is_finite_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _get(data: Any, key: str) -> Any:
    return data.get(key) if isinstance(data, Mapping) else None


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class LazyQualityResult:
    """Handle on a pending assessment.

    `is_assessed` and `cached_result` reflect the cache state at creation time.
    """

    def __init__(
        self,
        data: Any,
        compute: Callable[[], DataQuality],
        cached_result: DataQuality | None = None,
    ) -> None:
        self.data = data
        self.cached_result = cached_result
        self.is_assessed = cached_result is not None
        self._compute = compute
        self._result = cached_result

    def assess(self) -> DataQuality:
        if self._result is None:
            self._result = self._compute()
        return self._result


class LazyQualityAssessor:
    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE, *, clock: Clock = now_ms) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self.clock = clock
        self._cache: OrderedDict[str, DataQuality] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def assess_lazy(self, data: Any, cache_key: str | None = None) -> LazyQualityResult:
        if cache_key is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                self._hits += 1
                return LazyQualityResult(data, lambda: cached, cached_result=cached)
            self._misses += 1

        def compute() -> DataQuality:
            result = self.compute_quality(data)
            if cache_key is not None:
                self._add_to_cache(cache_key, result)
            return result

        return LazyQualityResult(data, compute)

    def assess_batch_lazy(self, items: Iterable[tuple[Any, str | None]]) -> list[LazyQualityResult]:
        """`items` are `(data, cache_key)` pairs; the key may be `None`."""

        return [self.assess_lazy(data, key) for data, key in items]

    def preload_assessments(self, patterns: Iterable[Any]) -> None:
        for index, data in enumerate(patterns):
            self._add_to_cache(f"preload_{index}", self.compute_quality(data))

    def cache_stats(self) -> CacheStats:
        lookups = self._hits + self._misses
        return CacheStats(
            size=len(self._cache),
            max_size=self.max_size,
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / lookups if lookups else 0.0,
        )

    def clear_cache(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def compute_quality(self, data: Any) -> DataQuality:
        completeness = self.assess_completeness(data)
        accuracy = self.assess_accuracy(data)
        freshness = self.assess_freshness(data)
        consistency = self.assess_consistency(data)
        validity = self.assess_validity(data)
        return DataQuality(
            completeness=completeness,
            accuracy=accuracy,
            freshness=freshness,
            consistency=consistency,
            validity=validity,
            overall=(completeness + accuracy + freshness + consistency + validity) / 5,
        )

    @staticmethod
    def assess_completeness(data: Any) -> float:
        if not isinstance(data, Mapping):
            return 0.0
        present = sum(1 for name in REQUIRED_RECORD_FIELDS if data.get(name) is not None)
        return present / len(REQUIRED_RECORD_FIELDS)

    @staticmethod
    def assess_accuracy(data: Any) -> float:
        accuracy = 0.8
        price = _get(data, "price")
        size = _get(data, "size")
        price_value = _as_number(price)
        size_value = _as_number(size)
        if price and (price_value is None or price_value < 0):
            accuracy -= 0.3
        if size and (size_value is None or size_value < 0):
            accuracy -= 0.2
        return _clamp(accuracy)

    def assess_freshness(self, data: Any) -> float:
        timestamp = _get(data, "timestamp")
        if not timestamp or not _is_finite_number(timestamp):
            return 0.0

        age = (self.clock() - timestamp) / 1000.0
        if age < 1:
            return 1.0
        if age < 5:
            return 0.9
        if age < 30:
            return 0.7
        if age < 300:
            return 0.5
        return 0.3

    @staticmethod
    def assess_consistency(data: Any) -> float:
        consistency = 0.9
        bid = _get(data, "bid")
        ask = _get(data, "ask")
        if bid and ask and _is_finite_number(bid) and _is_finite_number(ask) and bid >= ask:
            consistency -= 0.4
        return _clamp(consistency)

    @staticmethod
    def assess_validity(data: Any) -> float:
        validity = 0.9
        if isinstance(data, Mapping):
            if "price" in data and not _is_finite_number(data["price"]):
                validity -= 0.5
            if "size" in data and not _is_finite_number(data["size"]):
                validity -= 0.3
        return _clamp(validity)

    def _add_to_cache(self, key: str, result: DataQuality) -> None:
        if key in self._cache:
            self._cache[key] = result
            return
        if len(self._cache) >= self.max_size:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug("Quality cache full, evicted %s", evicted)
        self._cache[key] = result


class QuickQualityAssessor:
    def __init__(self, *, clock: Clock = now_ms) -> None:
        self.clock = clock

    def assess_quick(self, data: Any) -> float:
        if data is None or (not data and not isinstance(data, Mapping)):
            return 0.0

        score = 0.5
        if _get(data, "symbol"):
            score += 0.1
        price = _get(data, "price")
        if _is_finite_number(price) and price > 0:
            score += 0.2
        size = _get(data, "size")
        if _is_finite_number(size) and size > 0:
            score += 0.1
        timestamp = _get(data, "timestamp")
        if timestamp and _is_finite_number(timestamp) and self.clock() - timestamp < 60_000:
            score += 0.1
        return min(1.0, score)

    def assess_batch_quick(self, items: Iterable[Any]) -> list[float]:
        return [self.assess_quick(data) for data in items]

    def filter_by_quality(self, items: Iterable[Any], threshold: float) -> list[Any]:
        return [data for data in items if self.assess_quick(data) >= threshold]


class QualityAssessorFactory:
    """Process-wide assessor instances."""

    _lazy: LazyQualityAssessor | None = None
    _quick: QuickQualityAssessor | None = None

    @classmethod
    def lazy(cls) -> LazyQualityAssessor:
        if cls._lazy is None:
            cls._lazy = LazyQualityAssessor()
        return cls._lazy

    @classmethod
    def quick(cls) -> QuickQualityAssessor:
        if cls._quick is None:
            cls._quick = QuickQualityAssessor()
        return cls._quick

    @classmethod
    def for_volume(
        cls, count: int, threshold: int = DEFAULT_VOLUME_THRESHOLD
    ) -> LazyQualityAssessor | QuickQualityAssessor:
        return cls.quick() if count > threshold else cls.lazy()

    @classmethod
    def configure(cls, settings: AppSettings) -> None:
        """Rebuild the lazy singleton with the configured cache size."""

        cls._lazy = LazyQualityAssessor(max_size=settings.quality_cache_size)

    @classmethod
    def reset(cls) -> None:
        cls._lazy = None
        cls._quick = None


def wrap_with_lazy_quality(data: Any, cache_key: str | None = None) -> LazyQualityResult:
    return QualityAssessorFactory.lazy().assess_lazy(data, cache_key)


def assess_if_needed(data: Any, condition: Callable[[Any], bool]) -> DataQuality | None:
    if condition(data):
        return QualityAssessorFactory.lazy().assess_lazy(data).assess()
    return None


def get_quick_score(data: Any) -> float:
    return QualityAssessorFactory.quick().assess_quick(data)


# --- record sources -------------------------------------------------------


def _to_epoch_ms(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * 1000.0
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp() * 1000.0
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        return _to_epoch_ms(parsed)
    return value


def normalize_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of `record` with dates turned into epoch ms.

    Notes carry `updated` rather than `timestamp`; it stands in when the latter
    is absent.
    """

    out = dict(record)
    if out.get("timestamp") is None and out.get("updated") is not None:
        out["timestamp"] = out["updated"]
    if "timestamp" in out:
        out["timestamp"] = _to_epoch_ms(out["timestamp"])
    return out


def load_records(path: Path) -> list[tuple[str, dict[str, Any]]]:
    """Read `(key, record)` pairs from a JSON array/object or a JSONL file."""

    text = path.read_text(encoding="utf-8")
    if path.suffix == ".jsonl":
        raw = [json.loads(line) for line in text.splitlines() if line.strip()]
    else:
        loaded = json.loads(text)
        raw = loaded if isinstance(loaded, list) else [loaded]

    records: list[tuple[str, dict[str, Any]]] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object record #%d in %s", index, path.name)
            continue
        records.append((f"{path.name}#{index}", normalize_record(item)))
    return records


def note_records(settings: AppSettings) -> list[tuple[str, dict[str, Any]]]:
    """Frontmatter of every note, keyed by vault-relative path."""

    root = ensure_vault(settings.vault_root())
    records: list[tuple[str, dict[str, Any]]] = []
    for path in iter_vault_files(root, skip_dirs=settings.skipped_dirs()):
        try:
            frontmatter = parse_frontmatter(read_note(path))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable note %s: %s", path, exc)
            continue
        if frontmatter:
            records.append((relative(path, root), normalize_record(frontmatter)))
    return records
