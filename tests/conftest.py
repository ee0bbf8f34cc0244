import random
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest
import requests

from aggregator.cache import TTLCache
from aggregator.errors import ProviderUnavailableError
from aggregator.orchestrator import TenderAggregator
from providers.base import BaseProvider
from providers.models import Location, Tender

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def frozen_now() -> datetime:
    return NOW


class FakeTimer:
    """Monotonic clock for the cache that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


def make_tender(**overrides) -> Tender:
    fields = dict(
        id="t-1",
        title="Road Resurfacing Works",
        description="Resurfacing of arterial roads.",
        country="USA",
        region="Federal",
        location=Location(city="Washington", state="DC", country="USA"),
        budget=1_000_000,
        deadline=NOW + timedelta(days=30),
        category="Construction",
        requirements=["Civil Works"],
        source="test",
        source_url="https://example.test/t-1",
        similarity=0.5,
    )
    fields.update(overrides)
    return Tender(**fields)


class FakeProvider(BaseProvider):
    """Provider whose live step is scripted by the test."""

    def __init__(
        self,
        code: str,
        live: Optional[Callable[[], List[Tender]]] = None,
        fallback: Optional[Callable[[], List[Tender]]] = None,
        fail: bool = False,
        block: Optional[threading.Event] = None,
    ) -> None:
        super().__init__(session=object(), now=frozen_now, live=True)
        self.code = code
        self.display_name = code.title()
        self.source_name = f"{code} portal"
        self._live = live or (lambda: [make_tender(id=f"{code}-live-1", title=f"{code} live tender")])
        self._fallback = fallback or (lambda: [make_tender(id=f"{code}-sample-1", title=f"{code} sample tender")])
        self.fail = fail
        self.block = block
        self.live_calls = 0

    def live_fetch(self, filters: dict) -> List[Tender]:
        self.live_calls += 1
        if self.block is not None:
            self.block.wait(5)
        if self.fail:
            raise ProviderUnavailableError(self.code, "scripted failure")
        return self._live()

    def fallback_data(self) -> List[Tender]:
        return self._fallback()


class FakeResponse:
    def __init__(self, payload=None, text: str = "", status: int = 200) -> None:
        self._payload = payload
        self.text = text
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; records every GET."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def cache(timer) -> TTLCache:
    return TTLCache(ttl_seconds=1800, clock=timer)


@pytest.fixture
def fake_providers():
    return {"usa": FakeProvider("usa"), "uk": FakeProvider("uk")}


@pytest.fixture
def aggregator(fake_providers, cache) -> TenderAggregator:
    return TenderAggregator(
        providers=fake_providers,
        cache=cache,
        now=frozen_now,
        rng=random.Random(7),
        provider_timeout=5,
    )
