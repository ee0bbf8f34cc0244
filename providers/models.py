"""
Data model for tender records and the inputs/outputs of the engines.
All providers return lists of Tender objects.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from aggregator.errors import InvalidFilterError


class TenderStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    AWARDED = "awarded"
    CANCELLED = "cancelled"


@dataclass
class Location:
    city: str = ""
    state: str = ""
    province: str = ""
    region: str = ""
    country: str = ""

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match against city/state/province/region."""
        needle = needle.lower()
        return any(
            needle in part.lower()
            for part in (self.city, self.state, self.province, self.region)
            if part
        )


@dataclass
class Tender:
    # ── Identity ─────────────────────────────────────────────────────────────
    id: str = ""
    title: str = ""
    description: str = ""

    # ── Jurisdiction ─────────────────────────────────────────────────────────
    country: str = ""         # "USA" | "UK" | "CANADA" | "AUSTRALIA"
    region: str = ""
    location: Location = field(default_factory=Location)

    # ── Financials ───────────────────────────────────────────────────────────
    budget: Optional[float] = None       # None if not disclosed

    # ── Dates ────────────────────────────────────────────────────────────────
    deadline: Optional[datetime] = None

    # ── Classification ───────────────────────────────────────────────────────
    category: str = ""
    requirements: List[str] = field(default_factory=list)
    status: TenderStatus = TenderStatus.OPEN

    # ── Provenance ───────────────────────────────────────────────────────────
    source: str = ""
    source_url: str = ""
    contact_info: Dict[str, str] = field(default_factory=dict)

    # ── Annotations (set by the aggregator and engines, not providers) ───────
    similarity: float = 0.0           # 0-1; meaning depends on the engine
    bids_count: int = 0
    time_left: str = ""
    fetched_at: Optional[datetime] = None
    match_reasons: List[str] = field(default_factory=list)
    matching_requirements: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.budget is not None and self.budget < 0:
            raise ValueError(f"Tender {self.id!r}: budget must be non-negative, got {self.budget}")
        # Requirements are a tag set
        self.requirements = list(dict.fromkeys(r for r in self.requirements if r))
        self.similarity = min(max(self.similarity, 0.0), 1.0)

    def display_budget(self) -> str:
        if self.budget:
            return f"{self.budget:,.0f}"
        return "Not disclosed"

    def display_deadline(self) -> str:
        if self.deadline:
            return self.deadline.strftime("%d %b %Y %H:%M")
        return "—"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        data["deadline"] = self.deadline.isoformat() if self.deadline else None
        data["fetched_at"] = self.fetched_at.isoformat() if self.fetched_at else None
        return data


@dataclass
class CompanyProfile:
    """The requester's side of a recommendation: what they do and where."""

    capabilities: List[str] = field(default_factory=list)
    countries: List[str] = field(default_factory=list)
    total_revenue: Optional[float] = None
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CompanyProfile":
        revenue = data.get("total_revenue", data.get("totalRevenue"))
        return cls(
            capabilities=_as_list(data.get("capabilities")),
            countries=_as_list(data.get("countries")),
            total_revenue=_parse_number("total_revenue", revenue),
            name=str(data.get("name") or data.get("company_name") or ""),
        )


@dataclass
class SearchFilters:
    category: Optional[str] = None
    min_budget: Optional[float] = None
    max_budget: Optional[float] = None
    region: Optional[str] = None
    requirements: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SearchFilters":
        """
        Build filters from raw caller input (query-string values, CLI flags).
        Raises InvalidFilterError for a budget bound that is not a
        non-negative number.
        """
        data = data or {}
        return cls(
            category=data.get("category") or None,
            min_budget=_parse_number("min_budget", data.get("min_budget", data.get("minBudget"))),
            max_budget=_parse_number("max_budget", data.get("max_budget", data.get("maxBudget"))),
            region=data.get("region") or None,
            requirements=_as_list(data.get("requirements")),
        )


@dataclass
class TenderStats:
    total: int = 0
    by_country: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)
    by_region: Dict[str, int] = field(default_factory=dict)
    total_budget: float = 0.0
    average_budget: float = 0.0
    open_tenders: int = 0
    recent_tenders: int = 0
    top_categories: List[dict] = field(default_factory=list)
    top_regions: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _as_list(value) -> List[str]:
    """Accept a list or a comma-separated string."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


def _parse_number(name: str, value) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidFilterError(name, value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidFilterError(name, value) from None
    if not math.isfinite(number) or number < 0:
        raise InvalidFilterError(name, value)
    return number
