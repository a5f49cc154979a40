"""Attribute and shape filter composition.

The engine owns the *active* pricing dataset (the full upload, shrinking
after each export) and the comps dataset.  Two filters compose:

1. **Attribute filter**: acreage within ``[min, max]`` inclusive.  Always
   evaluated against the full live pricing dataset, never against a
   previous shape result.  Records with unknown acreage never match.
2. **Shape filter**: records inside a drawn region.  Its pricing base is
   the attribute-filtered set when that set is non-empty, otherwise the
   full live pricing dataset.  Comps are always tested in full.

Each shape filter *replaces* the previous combined result (last drawn
region defines the working selection).  Results are pure functions of
``(pricing version, comps version, attribute bounds, region)`` and are
memoised in a bounded LRU keyed by exactly that tuple; publishing a new
snapshot bumps its version, so stale entries are simply never hit again.

Evaluation and publication are separate steps: ``compute_shape_filter``
reads a captured snapshot and ``publish_result`` only installs a result
whose snapshot versions and bounds are still live, so a result computed
against a superseded snapshot is discarded.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from parcel_picker.core.config import EngineConfig
from parcel_picker.core.constants import DEFAULT_RESULT_CACHE_SIZE
from parcel_picker.core.exceptions import ValidationError
from parcel_picker.models.records import Dataset, DatasetKind
from parcel_picker.models.results import FilterMatch, FilterResult
from parcel_picker.spatial.predicates import contains_points

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parcel_picker.models.records import PointRecord
    from parcel_picker.models.region import Region

logger = logging.getLogger("parcel_picker.selection.filters")

AttributeBounds = tuple[float, float]
_CacheKey = tuple[int, int, "AttributeBounds | None", "Region"]


class AttributeRangeError(ValidationError):
    """Raised when acreage bounds are missing, non-numeric or inverted."""

    default_stage = "filters"
    default_code = "ATTRIBUTE_RANGE_INVALID"


@dataclass(frozen=True, slots=True)
class ShapeFilterInputs:
    """Snapshots one shape evaluation reads, captured together.

    Attributes:
        pricing: Live pricing snapshot.
        comps: Live comps snapshot.
        attribute_bounds: Bounds that produced ``attribute_filtered``
            (``None`` when the full pricing set is the base).
        attribute_filtered: The acreage-narrowed pricing records.
    """

    pricing: Dataset
    comps: Dataset
    attribute_bounds: AttributeBounds | None = None
    attribute_filtered: tuple[PointRecord, ...] = ()


class _ResultCache:
    """LRU-bounded cache of shape-filter results.

    Eviction policy:
        Least-recently-used.  On insert, if the cache exceeds ``maxsize``
        the entry that was neither read nor written for longest is evicted.
    """

    def __init__(self, maxsize: int = DEFAULT_RESULT_CACHE_SIZE) -> None:
        self._maxsize = maxsize
        self._data: OrderedDict[_CacheKey, FilterResult] = OrderedDict()
        self._eviction_count = 0
        self._lock = threading.Lock()

    def get(self, key: _CacheKey) -> FilterResult | None:
        with self._lock:
            value = self._data.get(key)
            if value is not None:
                self._data.move_to_end(key)
            return value

    def put(self, key: _CacheKey, value: FilterResult) -> None:
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = value
            while len(self._data) > self._maxsize:
                self._data.popitem(last=False)
                self._eviction_count += 1

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    @property
    def eviction_count(self) -> int:
        """Total number of entries evicted since construction."""
        return self._eviction_count


class FilterEngine:
    """Composes the acreage filter with the shape filter over live datasets.

    Example usage::

        engine = FilterEngine(pricing, comps)
        engine.apply_attribute_filter(4, 12)
        result = engine.apply_shape_filter(region)
    """

    def __init__(
        self,
        pricing: Dataset | None = None,
        comps: Dataset | None = None,
        *,
        config: EngineConfig | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._pricing = pricing if pricing is not None else Dataset.empty(DatasetKind.PRICING)
        self._comps = comps if comps is not None else Dataset.empty(DatasetKind.COMPS)
        self._attribute_bounds: AttributeBounds | None = None
        self._attribute_filtered: tuple[PointRecord, ...] = ()
        self._result = FilterResult.empty()
        self._cache = _ResultCache(self._config.result_cache_size)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def pricing(self) -> Dataset:
        """The active (live) pricing snapshot."""
        return self._pricing

    @property
    def comps(self) -> Dataset:
        return self._comps

    @property
    def attribute_bounds(self) -> AttributeBounds | None:
        """Last accepted ``(min, max)`` acreage bounds, kept across exports."""
        return self._attribute_bounds

    @property
    def attribute_filtered(self) -> tuple[PointRecord, ...]:
        """Pricing records narrowed by the acreage filter (may be empty)."""
        return self._attribute_filtered

    @property
    def result(self) -> FilterResult:
        """The current combined filter result."""
        return self._result

    @property
    def cache(self) -> _ResultCache:
        return self._cache

    def replace_pricing(self, dataset: Dataset) -> None:
        """Publish a new pricing snapshot.

        The derived attribute set and combined result refer to the old
        snapshot and are cleared; the raw bounds are kept.
        """
        self._check_kind(dataset, DatasetKind.PRICING)
        self._pricing = dataset
        self._attribute_filtered = ()
        self._result = FilterResult.empty()
        logger.info("Pricing snapshot published | version=%d | records=%d", dataset.version, len(dataset))

    def replace_comps(self, dataset: Dataset) -> None:
        """Publish a new comps snapshot and clear the combined result."""
        self._check_kind(dataset, DatasetKind.COMPS)
        self._comps = dataset
        self._result = FilterResult.empty()
        logger.info("Comps snapshot published | version=%d | records=%d", dataset.version, len(dataset))

    def commit_removal(self, pricing: Dataset, comps: Dataset) -> None:
        """Swap in post-export snapshots of both datasets at once.

        Clears the combined result and the derived attribute set so that
        nothing keeps referencing removed records.
        """
        self._check_kind(pricing, DatasetKind.PRICING)
        self._check_kind(comps, DatasetKind.COMPS)
        self._pricing, self._comps = pricing, comps
        self._attribute_filtered = ()
        self._result = FilterResult.empty()

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def apply_attribute_filter(self, min_value: object, max_value: object) -> tuple[PointRecord, ...]:
        """Narrow the live pricing dataset to acreage in ``[min, max]``.

        Args:
            min_value: Lower bound; a number or numeric string.
            max_value: Upper bound; a number or numeric string.

        Returns:
            The narrowed pricing records, in dataset order.

        Raises:
            AttributeRangeError: If a bound is not a finite number or
                ``min > max``.  State is unchanged.
        """
        low = _coerce_bound("min", min_value)
        high = _coerce_bound("max", max_value)
        if low > high:
            msg = f"Minimum acreage {low} is greater than maximum acreage {high}"
            raise AttributeRangeError(msg)

        narrowed = tuple(
            r for r in self._pricing.records if r.acreage is not None and low <= r.acreage <= high
        )
        self._attribute_bounds = (low, high)
        self._attribute_filtered = narrowed
        logger.info(
            "Attribute filter applied | min=%g | max=%g | matched=%d/%d",
            low,
            high,
            len(narrowed),
            len(self._pricing),
        )
        return narrowed

    def reapply_attribute_filter(self) -> tuple[PointRecord, ...]:
        """Re-run the last accepted bounds against the current snapshot."""
        if self._attribute_bounds is None:
            return ()
        return self.apply_attribute_filter(*self._attribute_bounds)

    def clear_filters(self) -> None:
        """Reset the attribute filter and the combined result."""
        self._attribute_bounds = None
        self._attribute_filtered = ()
        self._result = FilterResult.empty()
        logger.info("Filters cleared")

    def pricing_base(self) -> Sequence[PointRecord]:
        """Pricing records a shape filter is evaluated against."""
        return self._attribute_filtered or self._pricing.records

    def shape_inputs(self) -> ShapeFilterInputs:
        """Capture the snapshots a shape evaluation reads."""
        return ShapeFilterInputs(
            pricing=self._pricing,
            comps=self._comps,
            attribute_bounds=self._active_bounds(),
            attribute_filtered=self._attribute_filtered,
        )

    def compute_shape_filter(self, region: Region, inputs: ShapeFilterInputs | None = None) -> FilterResult:
        """Evaluate *region* against *inputs* without publishing the result.

        Args:
            region: The drawn region.
            inputs: Snapshots to evaluate against (default: the live ones).

        Returns:
            The combined result, stamped with the versions and bounds it
            was computed on.
        """
        if inputs is None:
            inputs = self.shape_inputs()
        pricing, comps, bounds = inputs.pricing, inputs.comps, inputs.attribute_bounds
        key: _CacheKey = (pricing.version, comps.version, bounds, region)

        result = self._cache.get(key)
        if result is None:
            started = time.perf_counter()
            matches = evaluate_region(
                region,
                inputs.attribute_filtered or pricing,
                comps,
                earth_radius_m=self._config.earth_radius_m,
            )
            result = FilterResult(
                matches=matches,
                pricing_version=pricing.version,
                comps_version=comps.version,
                attribute_bounds=bounds,
                region=region,
            )
            self._cache.put(key, result)
            logger.info(
                "Shape filter applied | kind=%s | pricing=%d | comps=%d | base=%s | elapsed=%.1f ms",
                region.kind.value,
                len(result.pricing),
                len(result.comps),
                "attribute" if bounds is not None else "full",
                (time.perf_counter() - started) * 1000,
            )
        return result

    def is_current(self, result: FilterResult) -> bool:
        """Whether *result* was computed on the live pricing and comps snapshots."""
        return result.pricing_version == self._pricing.version and result.comps_version == self._comps.version

    def publish_result(self, result: FilterResult) -> bool:
        """Make *result* the combined result unless its inputs were superseded.

        A result computed on a replaced snapshot or under different acreage
        bounds is discarded and the current result is kept.

        Returns:
            ``True`` if *result* was published.
        """
        if not self.is_current(result) or result.attribute_bounds != self._active_bounds():
            logger.info(
                "Stale shape result discarded | pricing_version=%d/%d | comps_version=%d/%d",
                result.pricing_version,
                self._pricing.version,
                result.comps_version,
                self._comps.version,
            )
            return False
        self._result = result
        return True

    def apply_shape_filter(self, region: Region) -> FilterResult:
        """Compute the combined pricing + comps matches for *region*.

        Replaces the current combined result.  Calling twice with the same
        region and unchanged snapshots returns an identical result.
        """
        result = self.compute_shape_filter(region)
        self._result = result
        return result

    def _active_bounds(self) -> AttributeBounds | None:
        return self._attribute_bounds if self._attribute_filtered else None

    @staticmethod
    def _check_kind(dataset: Dataset, kind: DatasetKind) -> None:
        if dataset.kind is not kind:
            msg = f"Expected a {kind.value} dataset, got {dataset.kind.value}"
            raise TypeError(msg)


def evaluate_region(
    region: Region,
    pricing: Dataset | Sequence[PointRecord],
    comps: Dataset | Sequence[PointRecord],
    *,
    earth_radius_m: float,
) -> tuple[FilterMatch, ...]:
    """Pure shape evaluation: pricing matches first, then comps, in order."""
    pricing_matches = [FilterMatch.from_pricing(r) for r in _inside(region, pricing, earth_radius_m)]
    comps_matches = [FilterMatch.from_comps(r) for r in _inside(region, comps, earth_radius_m)]
    return (*pricing_matches, *comps_matches)


def _inside(
    region: Region,
    records: Dataset | Sequence[PointRecord],
    earth_radius_m: float,
) -> list[PointRecord]:
    if isinstance(records, Dataset):
        mask = contains_points(region, records.lats, records.lngs, earth_radius_m=earth_radius_m)
        return records.take(mask)
    lats = np.fromiter((r.lat for r in records), dtype=np.float64, count=len(records))
    lngs = np.fromiter((r.lng for r in records), dtype=np.float64, count=len(records))
    mask = contains_points(region, lats, lngs, earth_radius_m=earth_radius_m)
    return [records[i] for i in np.flatnonzero(mask)]


def _coerce_bound(name: str, value: object) -> float:
    """Coerce a form value to a finite float.

    Raises:
        AttributeRangeError: If *value* is missing, boolean, non-numeric
            or non-finite.
    """
    if value is None or isinstance(value, bool):
        msg = f"Please enter a valid numeric {name} acreage (got {value!r})"
        raise AttributeRangeError(msg)
    try:
        number = float(value.strip() if isinstance(value, str) else value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        msg = f"Please enter a valid numeric {name} acreage (got {value!r})"
        raise AttributeRangeError(msg) from exc
    if not math.isfinite(number):
        msg = f"{name.capitalize()} acreage must be finite (got {value!r})"
        raise AttributeRangeError(msg)
    return number
