"""
USA provider — SAM.gov Opportunities API
API: https://api.sam.gov/prod/opportunities/v2/search

Needs an API key (SAM_GOV_API_KEY).  Without one the live call is skipped
and the sample batch is served.
"""

import logging
from datetime import timedelta
from typing import List

from aggregator.errors import ProviderUnavailableError
from providers.base import BaseProvider
from providers.models import Location, Tender
import config

logger = logging.getLogger(__name__)

SAM_SEARCH_URL = "https://api.sam.gov/prod/opportunities/v2/search"
SAM_OPP_URL = "https://sam.gov/opp/"

_PLACEHOLDER_KEYS = ("", "your-sam-gov-api-key")


class USAProvider(BaseProvider):
    code = "usa"
    display_name = "United States"
    flag = "🇺🇸"
    source_name = "SAM.gov"
    source_url = SAM_SEARCH_URL

    requirement_keywords = [
        "AI", "ML", "Cloud", "Software", "IT",
        "Security", "Data", "Analytics", "IoT", "DevOps",
    ]

    def __init__(self, *args, api_key: str = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.api_key = config.SAM_GOV_API_KEY if api_key is None else api_key

    def live_fetch(self, filters: dict) -> List[Tender]:
        if self.api_key in _PLACEHOLDER_KEYS:
            raise ProviderUnavailableError(self.code, "SAM_GOV_API_KEY is not set")

        now = self.now()
        params = {
            "limit": 50,
            "offset": 0,
            # SAM.gov wants MM/dd/yyyy
            "postedFrom": (now - timedelta(days=30)).strftime("%m/%d/%Y"),
            "postedTo": now.strftime("%m/%d/%Y"),
            "ptype": "o",
        }
        params.update(filters)

        data = self.get_json(SAM_SEARCH_URL, params=params, headers={"X-Api-Key": self.api_key})
        opportunities = data.get("opportunitiesData") or []
        logger.debug("SAM.gov returned %d opportunities (total %s)", len(opportunities), data.get("totalRecords", "?"))
        return [self._transform(opp) for opp in opportunities]

    def _transform(self, opp: dict) -> Tender:
        notice_id = opp.get("noticeId") or ""
        description = self.clean_text(opp.get("description") or opp.get("synopsis"))
        classification = opp.get("classificationCode") or {}
        award = opp.get("award") or {}
        contacts = opp.get("pointOfContact") or [{}]
        place = opp.get("placeOfPerformance") or {}
        city = (place.get("city") or {}).get("name") or opp.get("placeOfPerformanceCity") or "Washington"
        state = (place.get("state") or {}).get("code") or opp.get("placeOfPerformanceState") or "DC"

        return Tender(
            id=notice_id,
            title=opp.get("title") or "Untitled Opportunity",
            description=description,
            country="USA",
            region=opp.get("state") or "Federal",
            location=Location(city=city, state=state, country="USA"),
            budget=self.parse_amount(award.get("amount")),
            deadline=self.parse_datetime(opp.get("responseDeadLine")),
            category=(classification.get("description") if isinstance(classification, dict) else None) or "General",
            requirements=self.extract_requirements(description),
            source=self.source_name,
            source_url=f"{SAM_OPP_URL}{notice_id}/view" if notice_id else SAM_OPP_URL,
            contact_info={k: str(v) for k, v in (contacts[0] or {}).items() if v},
        )

    def fallback_data(self) -> List[Tender]:
        now = self.now()
        return [
            Tender(
                id=self.sample_id(1),
                title="AI-Powered Traffic Management System",
                description=(
                    "Develop and implement an AI-driven traffic management system for smart city "
                    "initiative including real-time optimization and predictive analytics capabilities."
                ),
                country="USA",
                region="National",
                location=Location(city="Washington", state="DC", country="USA"),
                budget=2_800_000,
                deadline=now + timedelta(days=45),
                category="Technology",
                requirements=["AI/ML", "IoT Integration", "Cloud Computing", "Real-time Systems"],
                source=self.source_name,
                source_url=SAM_OPP_URL,
                contact_info={
                    "department": "Department of Transportation",
                    "phone": "+1-555-0123",
                    "email": "procurement@dot.gov",
                },
            ),
            Tender(
                id=self.sample_id(2),
                title="Cybersecurity Framework Implementation",
                description=(
                    "Implementation of comprehensive cybersecurity framework for federal agencies "
                    "including threat detection, incident response, and compliance monitoring systems."
                ),
                country="USA",
                region="Federal",
                location=Location(city="Arlington", state="VA", country="USA"),
                budget=5_500_000,
                deadline=now + timedelta(days=60),
                category="Cybersecurity",
                requirements=["Cybersecurity", "Incident Response", "Compliance", "Risk Assessment"],
                source=self.source_name,
                source_url=SAM_OPP_URL,
                contact_info={
                    "department": "Department of Homeland Security",
                    "phone": "+1-555-0124",
                    "email": "cyber@dhs.gov",
                },
            ),
            Tender(
                id=self.sample_id(3),
                title="Cloud Infrastructure Modernization",
                description=(
                    "Modernization of legacy government systems to cloud-based infrastructure with "
                    "focus on scalability, security, and cost optimization."
                ),
                country="USA",
                region="Multi-State",
                location=Location(city="San Francisco", state="CA", country="USA"),
                budget=12_000_000,
                deadline=now + timedelta(days=75),
                category="Cloud Computing",
                requirements=["Cloud Computing", "System Migration", "Security", "DevOps"],
                source=self.source_name,
                source_url=SAM_OPP_URL,
                contact_info={
                    "department": "General Services Administration",
                    "phone": "+1-555-0125",
                    "email": "cloud@gsa.gov",
                },
            ),
        ]
