"""
heuristics.py

Explainable URL risk scoring.

Public functions:
    score_url(url: str, ...) -> dict
    status_for_score(score: int) -> str
    clamp_score(score: int) -> int

The score starts at 100 (higher is safer) and every rule that fires deducts
a fixed penalty and records a human readable threat. Rule tables live in
``rules.py``.

Example:
    >>> from brixshield.app.heuristics import score_url
    >>> score_url("http://example.com")["score"]
    75
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as LookupTimeout
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from brixshield.app.rules import DEFAULT_RULES
from brixshield.app.similarity import similarity
from brixshield.config import REPUTATION_TIMEOUT

logger = logging.getLogger("heuristics")

# Status thresholds shared by the URL and file analyzers
SAFE_THRESHOLD = 70
WARNING_THRESHOLD = 40

# Penalties
PENALTY_HIGH_RISK_KEYWORD = 60
PENALTY_SUSPICIOUS_KEYWORD = 40
PENALTY_STRUCTURE = 30
PENALTY_NO_HTTPS = 25
PENALTY_RISKY_TLD = 20
PENALTY_TYPOSQUAT = 35
PENALTY_LONG_HOST = 10
PENALTY_SUBDOMAINS = 15

ReputationCheck = Callable[[str], Dict[str, Any]]

# Reputation lookups run here so a slow service cannot stall scoring
_lookup_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="reputation")


def clamp_score(score: float) -> int:
    return int(max(0, min(100, round(score))))


def status_for_score(score: int) -> str:
    """Map a 0..100 score to safe / warning / threat."""
    if score >= SAFE_THRESHOLD:
        return "safe"
    if score >= WARNING_THRESHOLD:
        return "warning"
    return "threat"


def _hostname(url: str) -> str:
    """Lowercased hostname, IDNs converted to their punycode form."""
    host = urlparse(url).hostname or ""
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError:
        # not representable as IDNA (e.g. over-long label); score the raw form
        return host


def _domain_stem(host: str) -> str:
    """Label left of the top-level domain: ``login.paypa1.com`` -> ``paypa1``.

    The typosquat check compares stems, so ``www.`` prefixes and the shared
    ``.com`` suffix do not count toward the similarity ratio.
    """
    labels = [label for label in host.split(".") if label]
    if len(labels) >= 2:
        return labels[-2]
    return labels[0] if labels else ""


def _compile_patterns(patterns: Iterable) -> List:
    return [(target, re.compile(rx, re.IGNORECASE)) for target, rx in patterns]


def _run_reputation_check(check: ReputationCheck, url: str, timeout: float) -> Optional[Dict[str, Any]]:
    """Run one reputation check with a time limit. Never raises."""
    future = _lookup_pool.submit(check, url)
    try:
        return future.result(timeout=timeout)
    except LookupTimeout:
        future.cancel()
        logger.warning("Reputation check %r timed out after %.1fs, using local analysis", check, timeout)
    except Exception:
        logger.exception("Reputation check %r failed, using local analysis", check)
    return None


def score_url(
    url: str,
    rules: Optional[Dict[str, Any]] = None,
    reputation_checks: Iterable[ReputationCheck] = (),
    lookup_timeout: float = REPUTATION_TIMEOUT,
) -> Dict[str, Any]:
    """
    Score an absolute, already validated URL.

    Returns a dict:
    {
      "score": 45,                       # 0..100, higher is safer
      "status": "warning",               # safe | warning | threat
      "threats": ["Insecure connection (no HTTPS)", ...],
      "recommendations": ["Exercise extreme caution", ...],
      "details": {"ssl": False, "reputation": 45, "malware": False,
                  "phishing": False, "suspicious": True},
      "rules_version": "2024.1"
    }

    A known malicious domain pins the score at 0 but the remaining rules still
    run, so their threats and recommendations are reported too.
    """
    rules = rules or DEFAULT_RULES
    url_rules = rules["url"]
    host = _hostname(url)
    url_lower = url.lower()

    score = 100
    threats: List[str] = []
    recommendations: List[str] = []

    has_ssl = url_lower.startswith("https://")

    # 1) Known malicious domains
    if any(domain in host for domain in url_rules["known_malicious_domains"]):
        score = 0
        threats.append("Known malicious domain")
        threats.append("Domain appears in threat intelligence databases")
        recommendations.append("DO NOT visit this website - confirmed threat")
        recommendations.append("Report this URL to your security team")

    # 2) Phishing / scam / malware wording
    high_risk = any(kw in url_lower or kw in host for kw in url_rules["high_risk_keywords"])
    if high_risk:
        score -= PENALTY_HIGH_RISK_KEYWORD
        threats.append("High-risk pattern detected in URL")
        threats.append("Possible phishing or scam attempt")
        recommendations.append("This appears to be a phishing or scam website")

    # 3) Suspicious words in the hostname
    suspicious_kw = any(kw in host for kw in url_rules["suspicious_keywords"])
    if suspicious_kw:
        score -= PENALTY_SUSPICIOUS_KEYWORD
        threats.append("Suspicious keywords in domain name")
        recommendations.append("Domain name contains suspicious terms")

    # 4) Structural patterns (shorteners, IP literals, random tokens, digit runs)
    targets = {"url": url, "host": host}
    if any(rx.search(targets[target]) for target, rx in _compile_patterns(url_rules["structure_patterns"])):
        score -= PENALTY_STRUCTURE
        threats.append("Suspicious URL structure detected")
        recommendations.append("URL structure appears suspicious - use caution")

    # 5) Transport
    if not has_ssl:
        score -= PENALTY_NO_HTTPS
        threats.append("Insecure connection (no HTTPS)")
        recommendations.append("Website does not use secure HTTPS encryption")

    # 6) Top-level domain
    if any(host.endswith(tld) for tld in url_rules["high_risk_tlds"]):
        score -= PENALTY_RISKY_TLD
        threats.append("High-risk domain extension")
        recommendations.append("Domain uses a high-risk extension often used by malicious sites")

    # 7) Typosquatting: close to, but not exactly, a well-known domain
    threshold = url_rules["typosquat_threshold"]
    typosquat = False
    stem = _domain_stem(host)
    for legit in url_rules["legitimate_domains"]:
        sim = similarity(stem, _domain_stem(legit))
        if threshold < sim < 1.0:
            typosquat = True
            logger.debug("%s resembles %s (similarity %.2f)", host, legit, sim)
            break
    if typosquat:
        score -= PENALTY_TYPOSQUAT
        threats.append("Possible typosquatting detected")
        recommendations.append("Domain appears to mimic a legitimate website")

    # 8) Host length
    if len(host) > url_rules["max_host_length"]:
        score -= PENALTY_LONG_HOST
        threats.append("Unusually long domain name")

    # 9) Subdomain depth
    if len(host.split(".")) - 2 > url_rules["max_subdomains"]:
        score -= PENALTY_SUBDOMAINS
        threats.append("Excessive subdomain usage")
        recommendations.append("Multiple subdomains can be used to deceive users")

    # 10) Optional reputation services (best effort)
    for check in reputation_checks:
        result = _run_reputation_check(check, url, lookup_timeout)
        if result and result.get("found"):
            score = 0
            threats.append(f"Confirmed threat by {result.get('source') or 'reputation service'}")

    score = clamp_score(score)
    status = status_for_score(score)

    if status == "threat":
        recommendations.insert(0, "DO NOT visit this website")
        recommendations.append("Block this URL in your security software")
    elif status == "warning":
        recommendations.insert(0, "Exercise extreme caution")
        recommendations.append("Verify website legitimacy before proceeding")
    else:
        recommendations.append("Keep your browser and security software updated")
        recommendations.append("Be cautious when entering personal information")

    return {
        "score": score,
        "status": status,
        "threats": threats,
        "recommendations": recommendations,
        "details": {
            "ssl": has_ssl,
            "reputation": score,
            "malware": score < 30,
            "phishing": high_risk or suspicious_kw or typosquat,
            "suspicious": score < 50,
        },
        "rules_version": rules.get("version"),
    }


# Simple CLI / quick tests
if __name__ == "__main__":
    test_urls = [
        "http://example.com",
        "https://paypa1.com/signin",
        "http://192.168.0.1/verify-account",
        "https://malware-test.com/payload.tk",
    ]
    for u in test_urls:
        res = score_url(u)
        print("=" * 80)
        print("URL:", u)
        print("Score:", res["score"], "Status:", res["status"])
        for t in res["threats"]:
            print("-", t)
