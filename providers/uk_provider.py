"""
UK provider — Find a Tender service
API: https://www.find-tender.service.gov.uk/api/1.0/tenders

The public listing endpoint is unauthenticated but frequently refuses
anonymous clients; the sample batch covers that case.
"""

import logging
from datetime import timedelta
from typing import List

from providers.base import BaseProvider
from providers.models import Location, Tender

logger = logging.getLogger(__name__)

FTS_BASE = "https://www.find-tender.service.gov.uk"
FTS_TENDERS_URL = f"{FTS_BASE}/api/1.0/tenders"


class UKProvider(BaseProvider):
    code = "uk"
    display_name = "United Kingdom"
    flag = "🇬🇧"
    source_name = "Find a Tender"
    source_url = FTS_TENDERS_URL

    requirement_keywords = [
        "Software", "IT", "Technology", "Digital", "Cloud",
        "Security", "Data", "Analytics", "AI", "IoT",
    ]

    def live_fetch(self, filters: dict) -> List[Tender]:
        params = {"format": "json", "limit": 50, "status": "open"}
        params.update(filters)
        data = self.get_json(FTS_TENDERS_URL, params=params)
        results = data.get("results") or []
        logger.debug("Find a Tender returned %d notices", len(results))
        return [self._transform(item) for item in results]

    def _transform(self, item: dict) -> Tender:
        description = self.clean_text(item.get("description"))
        location = item.get("location") or {}
        links = item.get("links") or {}
        organisation = item.get("organisation") or {}
        if not isinstance(organisation, dict):
            organisation = {"department": str(organisation)}

        return Tender(
            id=str(item.get("id") or ""),
            title=item.get("title") or "Untitled Tender",
            description=description,
            country="UK",
            region=item.get("region") or "England",
            location=Location(
                city=location.get("city") or "London",
                region=location.get("region") or "England",
                country="UK",
            ),
            budget=self.parse_amount(item.get("value")),
            deadline=self.parse_datetime(item.get("closingDate")),
            category=item.get("sector") or "General",
            requirements=self.extract_requirements(description),
            source=self.source_name,
            source_url=links.get("self") or FTS_BASE,
            contact_info={k: str(v) for k, v in organisation.items() if v},
        )

    def fallback_data(self) -> List[Tender]:
        now = self.now()
        return [
            Tender(
                id=self.sample_id(1),
                title="Digital Government Services Platform",
                description=(
                    "Development of a comprehensive digital platform for government services delivery, "
                    "including citizen portal, API management, and cloud infrastructure with focus on "
                    "accessibility and security."
                ),
                country="UK",
                region="England",
                location=Location(city="London", region="Greater London", country="UK"),
                budget=4_200_000,
                deadline=now + timedelta(days=50),
                category="Digital Services",
                requirements=["Digital Services", "API Development", "Cloud Computing", "Security", "Accessibility"],
                source=self.source_name,
                source_url=FTS_BASE,
                contact_info={
                    "department": "Government Digital Service",
                    "phone": "+44-20-7946-0123",
                    "email": "procurement@digital.cabinet-office.gov.uk",
                },
            ),
            Tender(
                id=self.sample_id(2),
                title="NHS Digital Health Records System",
                description=(
                    "Implementation of integrated digital health records system for NHS trusts across "
                    "England, including patient portal, clinical decision support, and interoperability features."
                ),
                country="UK",
                region="England",
                location=Location(city="Leeds", region="West Yorkshire", country="UK"),
                budget=8_900_000,
                deadline=now + timedelta(days=65),
                category="Healthcare Technology",
                requirements=["Healthcare IT", "Database Management", "API Integration", "Security", "Compliance"],
                source=self.source_name,
                source_url=FTS_BASE,
                contact_info={
                    "department": "NHS Digital",
                    "phone": "+44-113-825-0123",
                    "email": "procurement@nhs.net",
                },
            ),
            Tender(
                id=self.sample_id(3),
                title="Smart City IoT Infrastructure - Edinburgh",
                description=(
                    "Implementation of IoT sensor network and data analytics platform for Edinburgh smart "
                    "city initiative, including traffic management, environmental monitoring, and energy optimization."
                ),
                country="UK",
                region="Scotland",
                location=Location(city="Edinburgh", region="Scotland", country="UK"),
                budget=3_100_000,
                deadline=now + timedelta(days=40),
                category="Smart Infrastructure",
                requirements=["IoT", "Data Analytics", "Cloud Computing", "System Integration", "Environmental Monitoring"],
                source=self.source_name,
                source_url=FTS_BASE,
                contact_info={
                    "department": "City of Edinburgh Council",
                    "phone": "+44-131-200-0123",
                    "email": "procurement@edinburgh.gov.uk",
                },
            ),
            Tender(
                id=self.sample_id(4),
                title="Financial Services Regulatory Technology",
                description=(
                    "Development of regulatory technology platform for financial services compliance "
                    "monitoring, including real-time transaction analysis and automated reporting capabilities."
                ),
                country="UK",
                region="England",
                location=Location(city="London", region="Greater London", country="UK"),
                budget=6_500_000,
                deadline=now + timedelta(days=55),
                category="Financial Technology",
                requirements=["Financial Services", "Compliance", "Real-time Analytics", "Regulatory Technology", "Security"],
                source=self.source_name,
                source_url=FTS_BASE,
                contact_info={
                    "department": "Financial Conduct Authority",
                    "phone": "+44-20-7066-0123",
                    "email": "procurement@fca.org.uk",
                },
            ),
        ]
