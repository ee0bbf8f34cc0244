"""
Canada provider — Open Contracting Data Standard (OCDS) feed
Feed: https://buyandsell.gc.ca/cds/public/ocds/tenders.json

Each OCDS "release" carries a nested ``tender`` object; the province is not
given explicitly and is inferred from the delivery location description.
"""

import logging
from datetime import timedelta
from typing import List

from providers.base import BaseProvider
from providers.models import Location, Tender

logger = logging.getLogger(__name__)

BUYANDSELL_BASE = "https://buyandsell.gc.ca"
OCDS_TENDERS_URL = f"{BUYANDSELL_BASE}/cds/public/ocds/tenders.json"

# Province names looked for in the delivery location description
_PROVINCES = ["Ontario", "Quebec", "British Columbia", "Alberta"]


class CanadaProvider(BaseProvider):
    code = "canada"
    display_name = "Canada"
    flag = "🇨🇦"
    source_name = "Open Contracting Canada"
    source_url = OCDS_TENDERS_URL

    requirement_keywords = [
        "Digital", "Technology", "Software", "Cloud", "AI",
        "Data", "Security", "Healthcare", "IoT",
    ]

    @property
    def id_prefix(self) -> str:
        return "ca"

    def live_fetch(self, filters: dict) -> List[Tender]:
        data = self.get_json(OCDS_TENDERS_URL, params=filters or None)
        releases = data.get("releases") or []
        logger.debug("OCDS feed returned %d releases", len(releases))
        return [self._transform(release) for release in releases]

    @staticmethod
    def extract_region(release: dict) -> str:
        tender = release.get("tender") or {}
        location = tender.get("deliveryLocation") or release.get("location") or {}
        description = location.get("description") or ""
        for province in _PROVINCES:
            if province in description:
                return province
        return "Federal"

    def _transform(self, release: dict) -> Tender:
        tender = release.get("tender") or {}
        delivery = tender.get("deliveryLocation") or {}
        parties = release.get("parties") or [{}]
        description = self.clean_text(tender.get("description") or release.get("description"))

        return Tender(
            id=str(release.get("ocid") or release.get("id") or ""),
            title=tender.get("title") or release.get("title") or "Untitled Tender",
            description=description,
            country="Canada",
            region=self.extract_region(release),
            location=Location(
                city=delivery.get("city") or "Ottawa",
                province=delivery.get("province") or "Ontario",
                country="Canada",
            ),
            budget=self.parse_amount((tender.get("value") or {}).get("amount")),
            deadline=self.parse_datetime((tender.get("tenderPeriod") or {}).get("endDate")),
            category=tender.get("mainProcurementCategory") or "General",
            requirements=self.extract_requirements(tender.get("description")),
            source=self.source_name,
            source_url=release.get("uri") or BUYANDSELL_BASE,
            contact_info={k: str(v) for k, v in (parties[0] or {}).items() if isinstance(v, (str, int, float))},
        )

    def fallback_data(self) -> List[Tender]:
        now = self.now()
        return [
            Tender(
                id=self.sample_id(1),
                title="Digital Government Services Platform - Federal",
                description=(
                    "Development of a comprehensive digital platform for federal government services delivery, "
                    "including citizen portal, API management, cloud infrastructure, and bilingual support capabilities."
                ),
                country="Canada",
                region="Federal",
                location=Location(city="Ottawa", province="Ontario", country="Canada"),
                budget=7_200_000,
                deadline=now + timedelta(days=60),
                category="Digital Services",
                requirements=["Cloud Computing", "API Development", "Security", "Bilingual Support", "Accessibility"],
                source="BuyandSell.gc.ca",
                source_url=BUYANDSELL_BASE,
                contact_info={
                    "department": "Shared Services Canada",
                    "phone": "+1-613-555-0123",
                    "email": "procurement@ssc-spc.gc.ca",
                },
            ),
            Tender(
                id=self.sample_id(2),
                title="Healthcare Data Analytics Solution - Ontario",
                description=(
                    "Implementation of advanced analytics platform for healthcare data processing across Ontario, "
                    "including AI-powered insights, privacy compliance, and integration with existing health systems."
                ),
                country="Canada",
                region="Ontario",
                location=Location(city="Toronto", province="Ontario", country="Canada"),
                budget=4_800_000,
                deadline=now + timedelta(days=45),
                category="Healthcare Technology",
                requirements=["Healthcare IT", "Data Analytics", "AI/ML", "Privacy Compliance", "System Integration"],
                source="BuyandSell.gc.ca",
                source_url=BUYANDSELL_BASE,
                contact_info={
                    "department": "Health Canada",
                    "phone": "+1-416-555-0124",
                    "email": "procurement@hc-sc.gc.ca",
                },
            ),
            Tender(
                id=self.sample_id(3),
                title="Smart Transportation Infrastructure - Vancouver",
                description=(
                    "Development of intelligent transportation system for Greater Vancouver area, including "
                    "traffic optimization, public transit integration, and environmental impact monitoring."
                ),
                country="Canada",
                region="British Columbia",
                location=Location(city="Vancouver", province="British Columbia", country="Canada"),
                budget=9_500_000,
                deadline=now + timedelta(days=70),
                category="Transportation Technology",
                requirements=["IoT", "Transportation Systems", "Data Analytics", "Environmental Monitoring", "System Integration"],
                source="BuyandSell.gc.ca",
                source_url=BUYANDSELL_BASE,
                contact_info={
                    "department": "Transport Canada",
                    "phone": "+1-604-555-0125",
                    "email": "procurement@tc.gc.ca",
                },
            ),
            Tender(
                id=self.sample_id(4),
                title="Cybersecurity Operations Center - Quebec",
                description=(
                    "Establishment of provincial cybersecurity operations center for Quebec government agencies, "
                    "including threat monitoring, incident response, and security awareness training programs."
                ),
                country="Canada",
                region="Quebec",
                location=Location(city="Montreal", province="Quebec", country="Canada"),
                budget=5_600_000,
                deadline=now + timedelta(days=55),
                category="Cybersecurity",
                requirements=["Cybersecurity", "Incident Response", "Security Monitoring", "Bilingual Support", "Training"],
                source="BuyandSell.gc.ca",
                source_url=BUYANDSELL_BASE,
                contact_info={
                    "department": "Government of Quebec",
                    "phone": "+1-514-555-0126",
                    "email": "approvisionnement@quebec.ca",
                },
            ),
        ]
