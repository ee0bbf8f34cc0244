from datetime import timedelta

import pytest

from aggregator.errors import InvalidFilterError, UnsupportedJurisdictionError
from providers.models import CompanyProfile, Location, SearchFilters, TenderStatus
from conftest import NOW, make_tender


def test_negative_budget_rejected():
    with pytest.raises(ValueError):
        make_tender(budget=-1)


def test_requirements_deduplicated_in_order():
    tender = make_tender(requirements=["Cloud", "Security", "Cloud", ""])
    assert tender.requirements == ["Cloud", "Security"]


def test_similarity_clamped():
    assert make_tender(similarity=1.7).similarity == 1.0
    assert make_tender(similarity=-0.2).similarity == 0.0


def test_to_dict_serialises_dates_and_status():
    data = make_tender(status=TenderStatus.AWARDED).to_dict()
    assert data["status"] == "awarded"
    assert data["deadline"] == (NOW + timedelta(days=30)).isoformat()
    assert data["location"]["city"] == "Washington"
    assert data["fetched_at"] is None


def test_display_helpers():
    tender = make_tender(budget=None, deadline=None)
    assert tender.display_budget() == "Not disclosed"
    assert tender.display_deadline() == "—"
    assert make_tender(budget=2_500_000).display_budget() == "2,500,000"


def test_location_matches_any_part():
    location = Location(city="Toronto", province="Ontario", country="Canada")
    assert location.matches("TORONTO")
    assert location.matches("tario")
    assert not location.matches("canada")


@pytest.mark.parametrize(
    "raw, field",
    [
        ({"minBudget": "abc"}, "min_budget"),
        ({"min_budget": -10}, "min_budget"),
        ({"max_budget": "inf"}, "max_budget"),
        ({"maxBudget": True}, "max_budget"),
    ],
)
def test_invalid_budget_filters(raw, field):
    with pytest.raises(InvalidFilterError) as excinfo:
        SearchFilters.from_dict(raw)
    assert excinfo.value.field == field


def test_filters_from_query_string_values():
    filters = SearchFilters.from_dict(
        {"category": "", "minBudget": "1000", "max_budget": 5000, "requirements": "Cloud, Security ,"}
    )
    assert filters.category is None
    assert filters.min_budget == 1000.0
    assert filters.max_budget == 5000.0
    assert filters.requirements == ["Cloud", "Security"]


def test_empty_filters():
    assert SearchFilters.from_dict(None) == SearchFilters()


def test_company_profile_from_dict_accepts_both_spellings():
    a = CompanyProfile.from_dict({"capabilities": ["AI"], "totalRevenue": "1000000"})
    b = CompanyProfile.from_dict({"capabilities": "AI", "total_revenue": 1_000_000})
    assert a.total_revenue == b.total_revenue == 1_000_000
    assert a.capabilities == b.capabilities == ["AI"]


def test_unsupported_jurisdiction_message_lists_supported_codes():
    exc = UnsupportedJurisdictionError("france", ["usa", "uk"])
    assert str(exc) == "Unsupported country: france. Supported countries: uk, usa"
    assert isinstance(exc, ValueError)
