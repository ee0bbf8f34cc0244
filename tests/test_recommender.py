import pytest

from filters.recommender import (
    budget_match,
    capability_match,
    location_match,
    matching_requirements,
    recommend,
    score_tender,
)
from providers.models import CompanyProfile
from conftest import make_tender


@pytest.fixture
def ai_tender():
    return make_tender(
        id="ai",
        title="AI Platform",
        country="USA",
        budget=2_000_000,
        requirements=["AI/ML", "Cloud Computing"],
    )


@pytest.fixture
def profile():
    return CompanyProfile(
        name="Northwind",
        capabilities=["AI/ML", "Cloud"],
        countries=["usa"],
        total_revenue=10_000_000,
    )


def test_full_match_scores_high(ai_tender, profile):
    scored = score_tender(ai_tender, profile)
    assert scored.similarity >= 0.8
    assert scored.similarity == pytest.approx(1.0)
    assert scored.matching_requirements == ["AI/ML", "Cloud Computing"]


def test_half_capability_coverage_scores_075(ai_tender, profile):
    profile.capabilities = ["AI/ML"]
    # 0.5 * 0.5 + 0.3 * 1.0 + 0.2 * 1.0
    assert score_tender(ai_tender, profile).similarity == pytest.approx(0.75)


def test_match_reasons(ai_tender, profile):
    reasons = score_tender(ai_tender, profile).match_reasons
    assert reasons == [
        "Strong capability match: Your expertise in AI/ML, Cloud aligns well",
        "Project budget fits your company size and experience",
        "You have experience in USA",
    ]


def test_fallback_reason_when_nothing_stands_out(profile):
    tender = make_tender(country="UK", budget=None, requirements=["Catering"])
    assert score_tender(tender, profile).match_reasons == ["Potential opportunity based on market trends"]


def test_matching_requirements_is_bidirectional():
    tender = make_tender(requirements=["Healthcare IT", "Cloud Computing", "Catering"])
    assert matching_requirements(tender, ["Cloud", "Healthcare IT Systems"]) == ["Healthcare IT", "Cloud Computing"]


def test_capability_match_without_requirements_is_zero(profile):
    assert capability_match(make_tender(requirements=[]), profile) == 0.0


@pytest.mark.parametrize(
    "budget, revenue, expected",
    [
        (None, 10_000_000, 0.5),
        (1_000_000, None, 0.5),
        (500_000, 10_000_000, 0.8),
        (1_000_000, 10_000_000, 1.0),
        (5_000_000, 10_000_000, 1.0),
        (9_000_000, 10_000_000, 0.6),
    ],
)
def test_budget_match(budget, revenue, expected):
    assert budget_match(budget, CompanyProfile(capabilities=["x"], total_revenue=revenue)) == expected


def test_location_match(ai_tender):
    assert location_match(ai_tender, CompanyProfile()) == 0.5
    assert location_match(ai_tender, CompanyProfile(countries=["USA"])) == 1.0
    assert location_match(ai_tender, CompanyProfile(countries=["uk"])) == 0.3


def test_without_capabilities_first_twenty_returned_unscored():
    batch = [make_tender(id=f"t-{i}", similarity=0.42) for i in range(25)]
    results = recommend(batch, CompanyProfile(countries=["usa"]))
    assert [t.id for t in results] == [f"t-{i}" for i in range(20)]
    assert all(t.similarity == 0.42 for t in results)
    assert recommend(batch, None)[0].id == "t-0"


def test_results_sorted_and_limited(ai_tender, profile):
    batch = [
        make_tender(id="uk", country="UK", requirements=["Catering"]),
        ai_tender,
        make_tender(id="half", country="USA", budget=2_000_000, requirements=["AI/ML", "Welding"]),
    ]
    results = recommend(batch, profile, limit=2)
    assert [t.id for t in results] == ["ai", "half"]
    assert results[0].similarity >= results[1].similarity


def test_every_recommendation_clears_the_noise_floor(ai_tender, profile):
    batch = [ai_tender, make_tender(id="other", country="UK", budget=None, requirements=[])]
    assert all(t.similarity > 0.1 for t in recommend(batch, profile))


def test_recommend_does_not_mutate_input(ai_tender, profile):
    recommend([ai_tender], profile)
    assert ai_tender.similarity == 0.5
    assert ai_tender.match_reasons == []


def test_aggregator_recommendations_accept_raw_profile(aggregator):
    results = aggregator.get_recommendations(
        {"capabilities": "Civil Works", "countries": ["uk"], "totalRevenue": "4000000"}
    )
    assert [t.country for t in results] == ["UK", "USA"]
    assert results[0].match_reasons[-1] == "You have experience in UK"
