"""
rules.py

Heuristic rule tables for the URL and file analyzers.

The tables are plain data so a deployment can swap or extend them without
touching the scoring code. ``load_rules(path)`` overlays a JSON file on top of
the defaults; keys missing from the file keep their default value.

Example override file:
    {
      "version": "2025.03-local",
      "url": {"known_malicious_domains": ["evil.example"]},
      "file": {"suspicious_tokens": ["stealer"]}
    }
"""

import copy
import json
import logging
from typing import Any, Dict

logger = logging.getLogger("rules")

RULES_VERSION = "2024.1"

URL_RULES: Dict[str, Any] = {
    "known_malicious_domains": (
        "malware-test.com", "phishing-test.com", "virus-download.com",
        "fake-bank.com", "scam-site.org", "malicious-download.net",
    ),
    # matched against the full URL and the hostname
    "high_risk_keywords": (
        # phishing
        "paypal-security", "amazon-verify", "netflix-billing", "microsoft-security",
        "google-security", "apple-id-suspended", "facebook-security",
        # malware
        "free-download", "urgent-update", "virus-detected", "system-infected",
        "pc-cleaner", "driver-update", "codec-pack",
        # scams
        "make-money-fast", "work-from-home", "lottery-winner", "inheritance",
        "crypto-investment", "bitcoin-doubler", "easy-money",
        # pressure wording
        "verify-account", "suspended-account", "confirm-identity", "update-payment",
        "click-here-now", "limited-time", "act-now", "congratulations",
    ),
    # matched against the hostname only
    "suspicious_keywords": (
        "phishing", "scam", "malware", "virus", "hack", "steal", "fraud",
        "fake", "counterfeit", "replica", "generator", "cracked", "keygen",
    ),
    # (target, regex) pairs; target is "url" or "host"
    "structure_patterns": (
        ("url", r"\b(?:bit\.ly|tinyurl|t\.co|goo\.gl|short\.link)\b"),
        ("url", r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}"),
        ("url", r"-[a-z]{10,}"),
        ("url", r"[a-z0-9]{20,}"),
        ("url", r"\d{4,}"),
    ),
    "high_risk_tlds": (
        ".tk", ".ml", ".cf", ".ga", ".icu", ".top", ".click", ".download",
        ".stream", ".science", ".work", ".date", ".review", ".country",
    ),
    "legitimate_domains": (
        "google.com", "facebook.com", "amazon.com", "microsoft.com", "apple.com",
        "paypal.com", "netflix.com", "instagram.com", "twitter.com", "linkedin.com",
    ),
    "typosquat_threshold": 0.7,
    "max_host_length": 25,
    "max_subdomains": 2,
}

FILE_RULES: Dict[str, Any] = {
    "dangerous_extensions": (
        ".exe", ".bat", ".com", ".cmd", ".scr", ".pif", ".vbs", ".js",
        ".jar", ".app", ".deb", ".pkg", ".dmg", ".iso",
    ),
    "suspicious_tokens": (
        "crack", "keygen", "patch", "hack", "virus", "trojan",
        "malware", "ransomware", "backdoor",
    ),
    "archive_extensions": (".zip", ".rar", ".7z", ".tar", ".gz"),
    "macro_extensions": (".doc", ".docm", ".xls", ".xlsm", ".ppt", ".pptm"),
    "encrypted_tokens": ("encrypted", "password"),
    "small_executable_bytes": 100,
    "large_file_bytes": 100 * 1024 * 1024,
}

DEFAULT_RULES: Dict[str, Any] = {
    "version": RULES_VERSION,
    "url": URL_RULES,
    "file": FILE_RULES,
}


def _as_table(value: Any) -> Any:
    """JSON has no tuples; keep sequences immutable like the defaults."""
    if isinstance(value, list):
        return tuple(tuple(v) if isinstance(v, list) else v for v in value)
    return value


def merge_rules(overrides: Dict[str, Any], base: Dict[str, Any] = DEFAULT_RULES) -> Dict[str, Any]:
    """Return a copy of ``base`` with ``overrides`` applied per section and key."""
    rules = copy.deepcopy(base)
    for section in ("url", "file"):
        for key, value in (overrides.get(section) or {}).items():
            if key not in rules[section]:
                logger.warning("Ignoring unknown %s rule %r", section, key)
                continue
            rules[section][key] = _as_table(value)
    if overrides.get("version"):
        rules["version"] = str(overrides["version"])
    return rules


def load_rules(path: str) -> Dict[str, Any]:
    """Load a JSON rule override from ``path`` and merge it over the defaults."""
    with open(path, "r", encoding="utf-8") as fh:
        overrides = json.load(fh)
    rules = merge_rules(overrides)
    logger.info("Loaded rule set %s from %s", rules["version"], path)
    return rules
