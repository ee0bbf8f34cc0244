"""
config.py — reads all settings from settings.yaml and exposes them
as the constants that the rest of the application uses.

Edit settings.yaml (or point TENDER_SETTINGS at another file) instead
of this module.
"""

import os
import sys

import yaml

# ── Load settings.yaml ────────────────────────────────────────────────────────

_HERE = os.path.dirname(os.path.abspath(__file__))
_SETTINGS_FILE = os.environ.get("TENDER_SETTINGS") or os.path.join(_HERE, "settings.yaml")

if not os.path.exists(_SETTINGS_FILE):
    print(
        "ERROR: settings.yaml not found.\n"
        f"Expected it at: {_SETTINGS_FILE}\n"
        "Please make sure the file exists and try again."
    )
    sys.exit(1)

with open(_SETTINGS_FILE, encoding="utf-8") as _f:
    _s = yaml.safe_load(_f) or {}


def _flag(value) -> bool:
    return str(value).strip().lower() in ("yes", "true", "1", "on")


# ── Aggregation ───────────────────────────────────────────────────────────────

DEFAULT_JURISDICTIONS = [str(c).lower() for c in _s.get("jurisdictions", ["usa", "uk", "canada", "australia"])]

CACHE_TTL_SECONDS = int(float(_s.get("cache_ttl_minutes", 30)) * 60)
PROVIDER_TIMEOUT  = float(_s.get("provider_timeout_seconds", 15))
REQUEST_TIMEOUT   = float(_s.get("request_timeout_seconds", 10))
LIVE_FETCH        = _flag(_s.get("live_fetch", "yes"))

# ── Credentials ───────────────────────────────────────────────────────────────

SAM_GOV_API_KEY = os.environ.get("SAM_GOV_API_KEY") or str(_s.get("sam_gov_api_key") or "")

# ── Recommendations ───────────────────────────────────────────────────────────

RECOMMENDATION_LIMIT = int(_s.get("recommendation_limit", 50))

# ── Output ────────────────────────────────────────────────────────────────────

OUTPUT_DIR      = str(_s.get("output_dir", "reports"))
OUTPUT_FILENAME = "tenders_{date}.xlsx"

# ── Scheduler ─────────────────────────────────────────────────────────────────

SCHEDULE_TIME     = str(_s.get("run_every_day_at", "07:30"))
SCHEDULE_TIMEZONE = str(_s.get("timezone", "UTC"))

# ── Web API ───────────────────────────────────────────────────────────────────

_web = _s.get("web", {}) or {}
WEB_HOST = str(_web.get("host", "127.0.0.1"))
WEB_PORT = int(_web.get("port", 5000))
