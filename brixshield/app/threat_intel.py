"""
threat_intel.py

Optional reputation lookups fed into ``score_url``.

Each lookup is a callable taking the URL and returning:
    {
        "url": "<input URL>",
        "found": True/False,
        "source": "Google Safe Browsing",
        ...
    }

Lookups raise ``TransientLookupFailure`` when the service cannot answer; the
scorer logs that and carries on with the local heuristics.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from brixshield.config import REPUTATION_TIMEOUT, SAFE_BROWSING_API_KEY
from brixshield.errors import TransientLookupFailure

logger = logging.getLogger("threat_intel")

SAFE_BROWSING_ENDPOINT = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
SAFE_BROWSING_THREAT_TYPES = ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE"]
CLIENT_ID = "brixshield"
CLIENT_VERSION = "1.0.0"


class SafeBrowsingLookup:
    """Ask Google Safe Browsing whether a URL is a known threat."""

    source = "Google Safe Browsing"

    def __init__(self, api_key: str, timeout: float = REPUTATION_TIMEOUT, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def __repr__(self) -> str:
        return "SafeBrowsingLookup()"

    def _payload(self, url: str) -> Dict[str, Any]:
        return {
            "client": {"clientId": CLIENT_ID, "clientVersion": CLIENT_VERSION},
            "threatInfo": {
                "threatTypes": SAFE_BROWSING_THREAT_TYPES,
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }

    def __call__(self, url: str) -> Dict[str, Any]:
        try:
            resp = self.session.post(
                SAFE_BROWSING_ENDPOINT,
                params={"key": self.api_key},
                json=self._payload(url),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise TransientLookupFailure(f"Safe Browsing lookup failed: {e}") from e
        if not isinstance(data, dict):
            raise TransientLookupFailure("Safe Browsing returned an unexpected body")

        matches = data.get("matches") or []
        return {
            "url": url,
            "found": bool(matches),
            "source": self.source,
            "matches": matches,
        }


def reputation_checks_from_env() -> List[Callable[[str], Dict[str, Any]]]:
    """Build the lookups enabled by configuration (may be empty)."""
    if SAFE_BROWSING_API_KEY:
        return [SafeBrowsingLookup(SAFE_BROWSING_API_KEY)]
    logger.info("No reputation services configured, using local analysis only")
    return []
