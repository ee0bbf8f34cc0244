"""
Base provider class — shared utilities used by all jurisdiction providers.

Every provider fetches in two steps: ``live_fetch`` calls the external
source and normalises its payload, ``fallback_data`` returns a fixed sample
batch.  ``fetch_with_fallback`` composes the two so the fallback policy is
the same for every jurisdiction.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

import requests
from bs4 import BeautifulSoup

from aggregator.errors import ProviderUnavailableError
from providers.models import Tender
import config

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _make_session() -> requests.Session:
    """Build a requests.Session with browser-like headers.

    No retry adapter is mounted: a failed live call falls back to sample
    data and the next cache refresh is the retry.
    """
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": "TenderAggregator/1.0",
            "Accept": "application/json,text/csv;q=0.9,*/*;q=0.8",
            "Accept-Language": "en;q=0.9",
        }
    )
    return session


@dataclass
class ProviderResult:
    """Outcome of one provider call: either live tenders or the error."""

    provider: str
    tenders: List[Tender] = field(default_factory=list)
    error: Optional[ProviderUnavailableError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, fallback: Callable[[], List[Tender]]) -> List[Tender]:
        if self.ok:
            return self.tenders
        return fallback()


def fetch_with_fallback(provider: "BaseProvider", filters: Optional[dict] = None) -> ProviderResult:
    """Run the provider's live fetch and capture any failure in the result."""
    if not provider.live_enabled:
        return ProviderResult(
            provider.code,
            error=ProviderUnavailableError(provider.code, "live fetch disabled"),
        )
    try:
        tenders = provider.live_fetch(filters or {})
    except ProviderUnavailableError as exc:
        return ProviderResult(provider.code, error=exc)
    except Exception as exc:
        return ProviderResult(
            provider.code,
            error=ProviderUnavailableError(provider.code, str(exc) or type(exc).__name__, exc),
        )
    if not tenders:
        return ProviderResult(
            provider.code,
            error=ProviderUnavailableError(provider.code, "live source returned no tenders"),
        )
    return ProviderResult(provider.code, tenders=tenders)


class BaseProvider(ABC):
    """All jurisdiction providers inherit from this class."""

    code: str = ""                 # registry key, e.g. "usa"
    display_name: str = "Unknown"
    flag: str = "🌐"
    source_name: str = ""
    source_url: str = ""

    # Keywords looked for in descriptions to infer requirement tags
    requirement_keywords: List[str] = []

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        now: Optional[Clock] = None,
        live: Optional[bool] = None,
    ) -> None:
        self.session = session or _make_session()
        self.now = now or utc_now
        self.live_enabled = config.LIVE_FETCH if live is None else live
        self.timeout = config.REQUEST_TIMEOUT

    # ── Public API ────────────────────────────────────────────────────────────

    def fetch_tenders(self, filters: Optional[dict] = None) -> ProviderResult:
        """Fetch live tenders; a failure is returned, never raised."""
        logger.info("▶  Fetching %s tenders from %s …", self.display_name, self.source_name)
        result = fetch_with_fallback(self, filters)
        if result.ok:
            logger.info("✓  %s: fetched %d live tender(s)", self.display_name, len(result.tenders))
        return result

    def run(self, filters: Optional[dict] = None) -> List[Tender]:
        """Fetch tenders, serving the fallback batch when the live source fails.

        The aggregator calls this once per jurisdiction on every cache miss.
        """
        result = self.fetch_tenders(filters)
        if not result.ok:
            logger.warning("✗  %s unavailable (%s) — using sample data", self.display_name, result.error)
        return result.unwrap_or(self.fallback_data)

    # ── Abstract methods (implement in each provider) ─────────────────────────

    @abstractmethod
    def live_fetch(self, filters: dict) -> List[Tender]:
        """Call the external source and return normalised Tender objects.

        Raise ProviderUnavailableError (or let a requests/parse error escape)
        when the source cannot be used.
        """
        ...

    @abstractmethod
    def fallback_data(self) -> List[Tender]:
        """Return the fixed sample batch for this jurisdiction."""
        ...

    # ── Shared helpers ────────────────────────────────────────────────────────

    def get(self, url: str, **kwargs) -> requests.Response:
        """GET with the provider timeout; HTTP errors become ProviderUnavailableError."""
        try:
            resp = self.session.get(url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
            return resp
        except requests.RequestException as exc:
            raise ProviderUnavailableError(self.code, f"GET {url} failed: {exc}", exc) from exc

    def get_json(self, url: str, **kwargs) -> dict:
        resp = self.get(url, **kwargs)
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderUnavailableError(self.code, "response is not valid JSON", exc) from exc

    def sample_id(self, n: int) -> str:
        """Sample ids embed the fetch time, so every refresh gets new ids."""
        return f"{self.id_prefix}-{n:03d}-{int(self.now().timestamp() * 1000)}"

    @property
    def id_prefix(self) -> str:
        return self.code

    def extract_requirements(self, text: Optional[str]) -> List[str]:
        """Requirement tags = vocabulary keywords found in the text."""
        if not text:
            return []
        text_lower = text.lower()
        return [kw for kw in self.requirement_keywords if kw.lower() in text_lower]

    @staticmethod
    def parse_amount(value) -> Optional[float]:
        """
        Extract a money amount from values like:
          2800000, "2800000", "$2,800,000.00", "GBP 4,200,000"
        Returns a float, or None if it can't parse or the amount is negative.
        """
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value) if value >= 0 else None
        text = str(value).strip()
        if re.match(r"^[^0-9]*-", text):
            return None  # negative amounts are not budgets
        num_str = re.sub(r"[^0-9.]", "", text)
        try:
            return float(num_str) if num_str else None
        except ValueError:
            return None

    @staticmethod
    def parse_datetime(raw) -> Optional[datetime]:
        """Parse an ISO-8601 date/datetime; naive values are taken as UTC."""
        if not raw:
            return None
        if isinstance(raw, datetime):
            dt = raw
        else:
            text = str(raw).strip().replace("Z", "+00:00")
            try:
                dt = datetime.fromisoformat(text)
            except ValueError:
                for fmt in ("%d/%m/%Y %I:%M %p", "%d/%m/%Y %H:%M", "%d/%m/%Y", "%d-%b-%Y"):
                    try:
                        dt = datetime.strptime(text, fmt)
                        break
                    except ValueError:
                        continue
                else:
                    return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    @staticmethod
    def clean_text(raw: Optional[str], default: str = "No description available") -> str:
        """Strip HTML markup some portals embed in descriptions."""
        if not raw:
            return default
        text = str(raw)
        if "<" in text and ">" in text:
            text = BeautifulSoup(text, "html.parser").get_text(" ", strip=True)
        text = " ".join(text.split())
        return text or default
