"""
webapp.py — JSON API over the tender aggregator.

Run:  python webapp.py
Open: http://localhost:5000/api/tenders/search?q=cloud
"""

import logging
from typing import List, Optional

from flask import Blueprint, Flask, current_app, jsonify, request

import config
from aggregator.errors import InvalidFilterError, UnsupportedJurisdictionError
from aggregator.orchestrator import TenderAggregator
from providers.models import CompanyProfile, Tender

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s — %(message)s")
log = logging.getLogger("webapp")

api = Blueprint("api", __name__, url_prefix="/api/tenders")


def _aggregator() -> TenderAggregator:
    return current_app.config["AGGREGATOR"]


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidFilterError(name, raw) from None
    if value < 1:
        raise InvalidFilterError(name, raw)
    return value


def _split(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def _page(tenders: List[Tender], limit: int, page: int) -> dict:
    offset = (page - 1) * limit
    return {
        "data": [t.to_dict() for t in tenders[offset:offset + limit]],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": len(tenders),
            "hasMore": offset + limit < len(tenders),
        },
    }


# ── Routes ────────────────────────────────────────────────────────────────────

@api.get("/search")
def search():
    query = request.args.get("q", "")
    countries = _split(request.args.get("countries")) or _split(request.args.get("country")) or None
    filters = {
        "category": request.args.get("category"),
        "min_budget": request.args.get("minBudget"),
        "max_budget": request.args.get("maxBudget"),
        "region": request.args.get("region"),
        "requirements": request.args.get("requirements"),
    }
    limit = _int_arg("limit", 10)
    page = _int_arg("page", 1)

    tenders = _aggregator().search_tenders(query, countries, filters)
    body = _page(tenders, limit, page)
    body.update(success=True, countries=countries or config.DEFAULT_JURISDICTIONS)
    return jsonify(body)


@api.route("/recommendations", methods=["GET", "POST"])
def recommendations():
    if request.method == "POST":
        data = request.get_json(force=True, silent=True) or {}
    else:
        data = {
            "name": request.args.get("name", ""),
            "capabilities": request.args.get("capabilities"),
            "countries": request.args.get("countries"),
            "total_revenue": request.args.get("totalRevenue"),
        }
    profile = CompanyProfile.from_dict(data)
    limit = _int_arg("limit", 10)

    tenders = _aggregator().get_recommendations(profile)[:limit]
    return jsonify({
        "success": True,
        "data": [t.to_dict() for t in tenders],
        "company_profile": {
            "name": profile.name,
            "capabilities": profile.capabilities,
            "countries": profile.countries,
        },
    })


@api.get("/stats")
def stats():
    return jsonify({"success": True, "data": _aggregator().get_stats().to_dict()})


@api.get("/country/<country>")
def by_country(country: str):
    limit = _int_arg("limit", 50)
    tenders = _aggregator().get_tenders_by_country(country)
    return jsonify({
        "success": True,
        "data": {
            "country": country.upper(),
            "tenders": [t.to_dict() for t in tenders[:limit]],
            "count": min(limit, len(tenders)),
            "total": len(tenders),
        },
    })


@api.get("/location/<location>")
def by_location(location: str):
    limit = _int_arg("limit", 50)
    tenders = _aggregator().get_tenders_by_location(location)
    return jsonify({
        "success": True,
        "data": {
            "location": location,
            "tenders": [t.to_dict() for t in tenders[:limit]],
            "count": min(limit, len(tenders)),
            "total": len(tenders),
        },
    })


@api.get("/countries")
def countries():
    supported = _aggregator().get_supported_jurisdictions()
    return jsonify({"success": True, "data": {"countries": supported, "count": len(supported)}})


@api.post("/cache/clear")
def clear_cache():
    _aggregator().clear_cache()
    return jsonify({"success": True})


@api.errorhandler(UnsupportedJurisdictionError)
@api.errorhandler(InvalidFilterError)
def bad_request(exc):
    return jsonify({"success": False, "message": str(exc)}), 400


def create_app(aggregator: Optional[TenderAggregator] = None) -> Flask:
    app = Flask(__name__)
    app.config["AGGREGATOR"] = aggregator or TenderAggregator()
    app.register_blueprint(api)
    return app


if __name__ == "__main__":
    create_app().run(host=config.WEB_HOST, port=config.WEB_PORT, debug=False)
