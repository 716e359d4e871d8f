"""
ai_recommendations.py

Ask a text-completion service (OpenRouter chat completions API) for
follow-up advice on a stored scan and attach the answer to the record.
"""

import logging
from typing import Any, Dict, Optional

import requests

from brixshield.config import OPENROUTER_API_KEY, OPENROUTER_MODEL, SITE_URL
from brixshield.errors import RecommendationError

logger = logging.getLogger("ai_recommendations")

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
REQUEST_TIMEOUT = 60  # seconds

SYSTEM_PROMPT = (
    "You are a cybersecurity expert providing clear, actionable security recommendations. "
    "Be specific and practical in your advice. Provide responses in a professional yet accessible tone."
)


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def build_prompt(record: Dict[str, Any]) -> str:
    """User prompt for a url- or file-typed scan record."""
    details = record.get("details") or {}
    threats = ", ".join(record.get("threats") or []) or "None"

    if record["type"] == "url":
        return (
            "As a cybersecurity expert, analyze this URL scan result and provide specific security recommendations:\n\n"
            f"URL: {record['target']}\n"
            f"Security Score: {record['score']}%\n"
            f"Status: {record['status']}\n"
            f"SSL: {'Enabled' if details.get('ssl') else 'Disabled'}\n"
            f"Reputation: {details.get('reputation', record['score'])}%\n"
            f"Malware Detected: {_yes_no(details.get('malware'))}\n"
            f"Phishing Risk: {_yes_no(details.get('phishing'))}\n"
            f"Suspicious Activity: {_yes_no(details.get('suspicious'))}\n"
            f"Threats Found: {threats}\n\n"
            "Provide 3-5 specific, actionable security recommendations to improve the security posture "
            "of this website. Focus on practical steps that can be implemented."
        )

    if record["type"] == "file":
        return (
            "As a cybersecurity expert, analyze this file scan result and provide specific security recommendations:\n\n"
            f"File: {record['target']}\n"
            f"File Type: {record.get('mime_type') or 'unknown'}\n"
            f"Size: {record.get('size')} bytes\n"
            f"Security Score: {record['score']}%\n"
            f"Status: {record['status']}\n"
            f"Virus Detected: {_yes_no(details.get('virus'))}\n"
            f"Malware Detected: {_yes_no(details.get('malware'))}\n"
            f"Suspicious Content: {_yes_no(details.get('suspicious'))}\n"
            f"Encrypted: {_yes_no(details.get('encrypted'))}\n"
            f"Threats Found: {threats}\n\n"
            "Provide 3-5 specific, actionable security recommendations for handling this file safely. "
            "Include best practices for file security and threat mitigation."
        )

    raise ValueError(f"unknown scan type {record['type']!r}")


class OpenRouterClient:
    """Minimal chat-completions client; ``complete(prompt)`` returns the reply text."""

    def __init__(
        self,
        api_key: Optional[str] = OPENROUTER_API_KEY,
        model: str = OPENROUTER_MODEL,
        site_url: str = SITE_URL,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.site_url = site_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise RecommendationError("OPENROUTER_API_KEY is not configured")
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.site_url,
            "X-Title": "BrixShield Security Scanner",
        }
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.7,
            "max_tokens": 1000,
        }
        try:
            resp = self.session.post(OPENROUTER_URL, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise RecommendationError(f"OpenRouter request failed: {e}") from e
        if not resp.ok:
            logger.error("OpenRouter API error: %s %s", resp.status_code, resp.text[:500])
            raise RecommendationError(f"OpenRouter API failed: {resp.status_code}")
        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RecommendationError("Malformed completion response") from e
        if not content or not content.strip():
            raise RecommendationError("No recommendations generated")
        return content.strip()


def attach_recommendations(store, scan_id: str, client: OpenRouterClient) -> Optional[str]:
    """
    Generate recommendations for a stored scan and save them on the record.

    Returns the text, or None when ``scan_id`` is unknown. Recommendations
    are generated once per record; later calls return the stored text
    without contacting the service. A failed completion raises
    RecommendationError and leaves the record untouched.
    """
    record = store.get_scan(scan_id)
    if record is None:
        return None
    if record.get("ai_recommendations"):
        return record["ai_recommendations"]
    text = client.complete(build_prompt(record))
    store.update_scan(scan_id, {"ai_recommendations": text})
    logger.info("Attached AI recommendations to scan %s", scan_id)
    return text
