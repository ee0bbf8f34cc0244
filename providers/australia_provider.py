"""
Australia provider — AusTender
Export: https://www.tenders.gov.au/Search/ExportSearchResultsToCSV

AusTender has no JSON API for open Approaches to Market (ATMs); the search
page exports CSV.  State and category are often missing from the export
and are inferred from the agency name and the title.
"""

import csv
import io
import logging
import re
from datetime import timedelta
from typing import Dict, List, Optional

from aggregator.errors import ProviderUnavailableError
from providers.base import BaseProvider
from providers.models import Location, Tender

logger = logging.getLogger(__name__)

AUSTENDER_BASE = "https://www.tenders.gov.au"
AUSTENDER_CSV_URL = f"{AUSTENDER_BASE}/Search/ExportSearchResultsToCSV"

STATES = {
    "NSW": "New South Wales",
    "VIC": "Victoria",
    "QLD": "Queensland",
    "WA": "Western Australia",
    "SA": "South Australia",
    "TAS": "Tasmania",
    "ACT": "Australian Capital Territory",
    "NT": "Northern Territory",
}

STATE_CAPITALS = {
    "New South Wales": "Sydney",
    "Victoria": "Melbourne",
    "Queensland": "Brisbane",
    "Western Australia": "Perth",
    "South Australia": "Adelaide",
    "Tasmania": "Hobart",
    "Australian Capital Territory": "Canberra",
    "Northern Territory": "Darwin",
}

# First category whose keywords appear in the title wins
TITLE_CATEGORIES = {
    "Technology": ["IT", "Software", "Digital", "Technology", "System"],
    "Healthcare": ["Health", "Medical", "Hospital", "Clinical"],
    "Infrastructure": ["Infrastructure", "Construction", "Building", "Road"],
    "Education": ["Education", "School", "University", "Training"],
    "Defense": ["Defense", "Military", "Security"],
    "Environment": ["Environment", "Water", "Energy", "Climate"],
}


def _has_word(text: str, keyword: str) -> bool:
    """Whole-word, case-insensitive match ("IT" must not match "Security")."""
    return re.search(r"\b" + re.escape(keyword.lower()) + r"\b", text.lower()) is not None


def extract_region(agency: Optional[str]) -> str:
    """Map an agency name to a state via abbreviation or full name."""
    if not agency:
        return "National"
    for abbr, full_name in STATES.items():
        if re.search(r"\b" + abbr + r"\b", agency.upper()) or full_name.lower() in agency.lower():
            return full_name
    return "National"


def categorize_from_title(title: Optional[str]) -> str:
    if not title:
        return "General"
    for category, keywords in TITLE_CATEGORIES.items():
        if any(_has_word(title, kw) for kw in keywords):
            return category
    return "General"


class AustraliaProvider(BaseProvider):
    code = "australia"
    display_name = "Australia"
    flag = "🇦🇺"
    source_name = "AusTender"
    source_url = AUSTENDER_CSV_URL

    requirement_keywords = [
        "Technology", "Software", "Digital", "Cloud", "Security",
        "Data", "AI", "IoT", "Infrastructure",
    ]

    @property
    def id_prefix(self) -> str:
        return "au"

    def live_fetch(self, filters: dict) -> List[Tender]:
        params = {"Status": "Open", "Type": "ATM", "PageSize": 50}
        params.update(filters)
        resp = self.get(AUSTENDER_CSV_URL, params=params)
        return self.parse_csv(resp.text)

    def parse_csv(self, text: str) -> List[Tender]:
        """Parse the CSV export; rows without an ATM id are dropped."""
        if not text or not text.strip():
            return []
        try:
            reader = csv.DictReader(io.StringIO(text.strip()))
            rows = [
                {(k or "").strip(): (v or "").strip() for k, v in row.items()}
                for row in reader
            ]
        except csv.Error as exc:
            raise ProviderUnavailableError(self.code, f"CSV export could not be parsed: {exc}", exc) from exc

        tenders = [self._transform(row) for row in rows]
        kept = [t for t in tenders if t.id]
        if len(kept) < len(tenders):
            logger.debug("AusTender export: skipped %d row(s) without an ATM id", len(tenders) - len(kept))
        return kept

    def _transform(self, row: Dict[str, str]) -> Tender:
        atm_id = row.get("ATMID") or row.get("id") or ""
        title = row.get("Title") or row.get("title") or "Untitled Tender"
        state = row.get("State", "")
        region = STATES.get(state.upper(), state) or extract_region(row.get("Agency"))
        description = self.clean_text(row.get("Description") or row.get("description"))

        return Tender(
            id=atm_id,
            title=title,
            description=description,
            country="Australia",
            region=region,
            location=Location(
                city=STATE_CAPITALS.get(region, "Canberra"),
                state=region,
                country="Australia",
            ),
            budget=self.parse_amount(row.get("EstimatedValue") or row.get("Value")),
            deadline=self.parse_datetime(row.get("ClosingDate") or row.get("deadline")),
            category=row.get("Category") or categorize_from_title(row.get("Title")),
            requirements=self.extract_requirements(row.get("Description") or row.get("title")),
            source=self.source_name,
            source_url=f"{AUSTENDER_BASE}/Atm/Show/{atm_id}" if atm_id else AUSTENDER_BASE,
            contact_info={
                k: v for k, v in (
                    ("agency", row.get("Agency", "")),
                    ("contact_officer", row.get("ContactOfficer", "")),
                ) if v
            },
        )

    def fallback_data(self) -> List[Tender]:
        now = self.now()
        return [
            Tender(
                id=self.sample_id(1),
                title="Smart Cities Infrastructure Development - Sydney",
                description=(
                    "Implementation of IoT sensors, smart traffic management, and data analytics platform for "
                    "Sydney metropolitan area, including integration with existing city systems and citizen services."
                ),
                country="Australia",
                region="New South Wales",
                location=Location(city="Sydney", state="New South Wales", country="Australia"),
                budget=12_500_000,
                deadline=now + timedelta(days=75),
                category="Smart Infrastructure",
                requirements=["IoT", "Data Analytics", "Cloud Computing", "System Integration", "Traffic Management"],
                source=self.source_name,
                source_url=AUSTENDER_BASE,
                contact_info={
                    "department": "Department of Infrastructure, Transport, Regional Development and Communications",
                    "phone": "+61-2-6274-0123",
                    "email": "procurement@infrastructure.gov.au",
                },
            ),
            Tender(
                id=self.sample_id(2),
                title="Cybersecurity Framework for Government Agencies",
                description=(
                    "Design and implementation of comprehensive cybersecurity framework for Australian government "
                    "agencies, including threat detection, incident response, compliance monitoring, and security training."
                ),
                country="Australia",
                region="Australian Capital Territory",
                location=Location(city="Canberra", state="Australian Capital Territory", country="Australia"),
                budget=8_200_000,
                deadline=now + timedelta(days=55),
                category="Cybersecurity",
                requirements=["Cybersecurity", "Incident Response", "Compliance", "Risk Assessment", "Security Training"],
                source=self.source_name,
                source_url=AUSTENDER_BASE,
                contact_info={
                    "department": "Australian Cyber Security Centre",
                    "phone": "+61-2-6234-0124",
                    "email": "procurement@cyber.gov.au",
                },
            ),
            Tender(
                id=self.sample_id(3),
                title="Digital Health Records Platform - National",
                description=(
                    "Development of national digital health records system with integration capabilities for "
                    "hospitals, clinics, and healthcare providers across Australia, ensuring privacy and interoperability."
                ),
                country="Australia",
                region="National",
                location=Location(city="Melbourne", state="Victoria", country="Australia"),
                budget=15_300_000,
                deadline=now + timedelta(days=90),
                category="Healthcare Technology",
                requirements=["Healthcare IT", "Database Management", "API Integration", "Security", "Privacy Compliance"],
                source=self.source_name,
                source_url=AUSTENDER_BASE,
                contact_info={
                    "department": "Department of Health",
                    "phone": "+61-2-6289-0125",
                    "email": "procurement@health.gov.au",
                },
            ),
            Tender(
                id=self.sample_id(4),
                title="Environmental Monitoring System - Queensland",
                description=(
                    "Implementation of comprehensive environmental monitoring system for Queensland, including air "
                    "quality sensors, water quality monitoring, and climate data analysis with real-time reporting capabilities."
                ),
                country="Australia",
                region="Queensland",
                location=Location(city="Brisbane", state="Queensland", country="Australia"),
                budget=6_800_000,
                deadline=now + timedelta(days=65),
                category="Environmental Technology",
                requirements=["Environmental Monitoring", "IoT Sensors", "Data Analytics", "Real-time Systems", "Reporting"],
                source=self.source_name,
                source_url=AUSTENDER_BASE,
                contact_info={
                    "department": "Department of Agriculture, Water and the Environment",
                    "phone": "+61-7-3842-0126",
                    "email": "procurement@environment.gov.au",
                },
            ),
            Tender(
                id=self.sample_id(5),
                title="Education Technology Platform - Western Australia",
                description=(
                    "Development of comprehensive education technology platform for Western Australian schools, "
                    "including learning management system, student assessment tools, and parent communication portal."
                ),
                country="Australia",
                region="Western Australia",
                location=Location(city="Perth", state="Western Australia", country="Australia"),
                budget=4_200_000,
                deadline=now + timedelta(days=50),
                category="Education Technology",
                requirements=["Education Technology", "Learning Management", "Assessment Tools", "Communication Systems", "Cloud Computing"],
                source=self.source_name,
                source_url=AUSTENDER_BASE,
                contact_info={
                    "department": "Department of Education, Skills and Employment",
                    "phone": "+61-8-9224-0127",
                    "email": "procurement@education.gov.au",
                },
            ),
        ]
