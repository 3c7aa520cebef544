# -*- coding: utf-8 -*-
"""
Emission Factor Store

In-memory factor index with region and unit fallback.

The store is built once from a flat list of factors and never mutated
afterwards, so concurrent lookups need no locking.

Resolution is a strict degrade-by-specificity chain:
    1. Exact (category, subtype, units) key with a region match
    2. Exact key, any region
    3. Synthetic zero factor for zero-emission modes (bicycle, walking)
    4. Same category with a compatible denominator unit
    5. Anything in the category
    6. None
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from footprint_engine.calculation.unit_converter import PER_MARKER, denominator_unit
from footprint_engine.exceptions import FactorNotFound, InvalidFactorTable

logger = logging.getLogger(__name__)

#: Modes that never emit; they fall back to a zero factor instead of borrowing one.
ZERO_EMISSION_SUBTYPES: FrozenSet[str] = frozenset({"bicycle", "walking"})

ZERO_FACTOR_ID = "zero"
ZERO_FACTOR_SOURCE = "Zero emissions"


def normalize_key(value: Optional[str]) -> str:
    """Single comparison key for index entries and queries."""
    return (value or "").strip().lower()


@dataclass(frozen=True)
class EmissionFactor:
    """
    One row of the factor table.

    Attributes:
        category: Engine category (transportation, energy, food, ...)
        subtype: Factor subtype within the category (e.g. 'bus')
        units: "<numerator>_per_<denominator>", e.g. "kgCO2e_per_kg"
        value: Factor magnitude
        region: Region the factor applies to (e.g. 'IN', 'Global')
        source: Publisher of the factor
        vintage: Factor year/version
        id: Stable identifier
    """
    category: str
    subtype: str
    units: str
    value: float
    region: Optional[str] = None
    source: Optional[str] = None
    vintage: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        if PER_MARKER not in (self.units or ""):
            raise InvalidFactorTable(
                f"Factor units must contain '{PER_MARKER}': {self.units!r}",
                entry={"category": self.category, "subtype": self.subtype, "units": self.units},
            )

    @property
    def denominator(self) -> Optional[str]:
        return denominator_unit(self.units)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmissionFactor":
        """Build a factor from a table row, raising InvalidFactorTable on bad rows."""
        missing = [name for name in ("category", "subtype", "units", "value") if data.get(name) is None]
        if missing:
            raise InvalidFactorTable(
                f"Factor entry missing required fields: {', '.join(missing)}",
                entry=dict(data),
            )
        try:
            value = float(data["value"])
        except (TypeError, ValueError) as e:
            raise InvalidFactorTable(
                f"Factor value is not numeric: {data['value']!r}",
                entry=dict(data),
            ) from e

        vintage = data.get("vintage")
        return cls(
            category=str(data["category"]),
            subtype=str(data["subtype"]),
            units=str(data["units"]),
            value=value,
            region=data.get("region"),
            source=data.get("source"),
            vintage=str(vintage) if vintage is not None else None,
            id=data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def zero_factor(category: str, subtype: str, units: Optional[str]) -> EmissionFactor:
    """Synthetic factor for modes that always report zero emission."""
    return EmissionFactor(
        category=category,
        subtype=subtype,
        units=units or "kgCO2e_per_unit",
        value=0.0,
        source=ZERO_FACTOR_SOURCE,
        id=ZERO_FACTOR_ID,
    )


class FactorStore:
    """
    Indexed, read-only view over a flat factor list.

    Indexes:
        by_key: "category::subtype::units" -> factors
        by_subtype: "category::subtype" -> factors (native-unit lookups)
        by_category: category -> factors
    """

    def __init__(self, factors: Iterable[Any]):
        """
        Build indexes.

        Args:
            factors: EmissionFactor instances or table rows (mappings)

        Raises:
            InvalidFactorTable: If factors is not a list-like of valid rows
        """
        if factors is None or isinstance(factors, (str, bytes, Mapping)):
            raise InvalidFactorTable("FactorStore: expected a list of factors")

        self.factors: Tuple[EmissionFactor, ...] = tuple(
            f if isinstance(f, EmissionFactor) else EmissionFactor.from_dict(f)
            for f in factors
        )

        by_key: Dict[str, List[EmissionFactor]] = {}
        by_subtype: Dict[str, List[EmissionFactor]] = {}
        by_category: Dict[str, List[EmissionFactor]] = {}

        for factor in self.factors:
            by_key.setdefault(self.key(factor.category, factor.subtype, factor.units), []).append(factor)
            by_subtype.setdefault(self.key(factor.category, factor.subtype), []).append(factor)
            by_category.setdefault(normalize_key(factor.category), []).append(factor)

        self.by_key: Dict[str, Tuple[EmissionFactor, ...]] = {k: tuple(v) for k, v in by_key.items()}
        self.by_subtype: Dict[str, Tuple[EmissionFactor, ...]] = {k: tuple(v) for k, v in by_subtype.items()}
        self.by_category: Dict[str, Tuple[EmissionFactor, ...]] = {k: tuple(v) for k, v in by_category.items()}

        logger.info(
            "FactorStore built: %d factors, %d categories, %d keys",
            len(self.factors), len(self.by_category), len(self.by_key),
        )

    @staticmethod
    def key(*parts: Optional[str]) -> str:
        return "::".join(normalize_key(p) for p in parts)

    def __len__(self) -> int:
        return len(self.factors)

    @property
    def categories(self) -> List[str]:
        return sorted(self.by_category)

    @staticmethod
    def _region_match(
        candidates: Sequence[EmissionFactor],
        region: Optional[str],
    ) -> Optional[EmissionFactor]:
        # No region requested: any entry qualifies
        if not region:
            return candidates[0] if candidates else None
        wanted = normalize_key(region)
        for factor in candidates:
            if factor.region and normalize_key(factor.region) == wanted:
                return factor
        return None

    def resolve(
        self,
        category: str,
        subtype: str,
        desired_units: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Optional[EmissionFactor]:
        """
        Resolve the most suitable factor for one region preference.

        Args:
            category: Engine category
            subtype: Factor subtype
            desired_units: Wanted factor units, or None for the native unit
            region: Preferred region (case-insensitive)

        Returns:
            EmissionFactor, or None if the category is absent
        """
        return self.resolve_preferring(category, subtype, desired_units, (region,))

    def resolve_preferring(
        self,
        category: str,
        subtype: str,
        desired_units: Optional[str],
        regions: Sequence[Optional[str]],
    ) -> Optional[EmissionFactor]:
        """
        Resolve with an ordered list of preferred regions.

        Each region is tried against the exact key before the chain
        relaxes to any region, then to other subtypes of the category.
        """
        # Blank regions impose no preference
        regions = tuple(r for r in (regions or ()) if normalize_key(r)) or (None,)

        if desired_units is None:
            exact = self.by_subtype.get(self.key(category, subtype), ())
        else:
            exact = self.by_key.get(self.key(category, subtype, desired_units), ())

        # 1. Exact key, region match (in preference order)
        for region in regions:
            hit = self._region_match(exact, region)
            if hit is not None:
                return hit

        # 2. Exact key, any region
        if exact:
            return exact[0]

        # 3. Zero-emission modes never borrow another subtype's factor
        if normalize_key(subtype) in ZERO_EMISSION_SUBTYPES:
            return zero_factor(category, subtype, desired_units)

        pool = self.by_category.get(normalize_key(category), ())

        # 4. Same category, compatible denominator
        wanted_denominator = denominator_unit(desired_units)
        if wanted_denominator is not None:
            compatible = [f for f in pool if f.denominator == wanted_denominator]
            if compatible:
                for region in regions:
                    hit = self._region_match(compatible, region)
                    if hit is not None:
                        return hit
                return compatible[0]

        # 5. Last resort: anything in the category
        if pool:
            logger.debug(
                "No unit-compatible factor for %s/%s (%s); using first %s factor",
                category, subtype, desired_units, category,
            )
            return pool[0]

        return None

    def require(
        self,
        category: str,
        subtype: str,
        desired_units: Optional[str] = None,
        regions: Sequence[Optional[str]] = (None,),
        label: Optional[str] = None,
    ) -> EmissionFactor:
        """
        Resolve or raise.

        Raises:
            FactorNotFound: If the fallback chain is exhausted
        """
        factor = self.resolve_preferring(category, subtype, desired_units, regions)
        if factor is None:
            raise FactorNotFound(
                f"{label or category.capitalize()} factor not found for {subtype}",
                category=category,
                subtype=subtype,
                desired_units=desired_units,
            )
        return factor


__all__ = [
    "EmissionFactor",
    "FactorStore",
    "ZERO_EMISSION_SUBTYPES",
    "normalize_key",
    "zero_factor",
]
