"""
scanner.py
Main orchestration of the scan pipeline: validate input, score it, and hand
the verdict to the scan history.
"""

import functools
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from brixshield.app.file_heuristics import score_file
from brixshield.app.heuristics import score_url
from brixshield.app.rules import DEFAULT_RULES, load_rules
from brixshield.app.threat_intel import reputation_checks_from_env
from brixshield.config import RULES_FILE
from brixshield.errors import InputFormatError

logger = logging.getLogger("scanner")


@functools.lru_cache(maxsize=1)
def active_rules() -> Dict[str, Any]:
    """Default rules, or the JSON override named by BRIXSHIELD_RULES_FILE."""
    if RULES_FILE:
        return load_rules(RULES_FILE)
    return DEFAULT_RULES


@functools.lru_cache(maxsize=1)
def default_reputation_checks() -> tuple:
    return tuple(reputation_checks_from_env())


def validate_url(url: Optional[str]) -> str:
    """Return the stripped URL, or raise InputFormatError if it is not absolute."""
    url = (url or "").strip()
    if not url:
        raise InputFormatError("URL is required")
    try:
        parsed = urlparse(url)
        parsed.port  # raises on a malformed port
    except ValueError as e:
        raise InputFormatError(f"Invalid URL format: {e}") from e
    if not parsed.scheme or not parsed.hostname:
        raise InputFormatError("Invalid URL format: an absolute URL with a host is required")
    return url


def validate_file(name: Optional[str], size: Any) -> Tuple[str, int]:
    name = (name or "").strip()
    if not name:
        raise InputFormatError("File name is required")
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise InputFormatError("File size must be a non-negative integer")
    return name, size


def scan_url(url: str, rules: Optional[Dict[str, Any]] = None, reputation_checks=None) -> Dict[str, Any]:
    """Validate and score a URL. Reputation lookups default to the configured ones."""
    url = validate_url(url)
    if reputation_checks is None:
        reputation_checks = default_reputation_checks()
    return score_url(url, rules=rules or active_rules(), reputation_checks=reputation_checks)


def scan_file(name: str, mime_type: str, size: int, rules: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    name, size = validate_file(name, size)
    return score_file(name, mime_type, size, rules=rules or active_rules())


def verdict_to_record(kind: str, target: str, verdict: Dict[str, Any], size: Optional[int] = None) -> Dict[str, Any]:
    """Shape a verdict into the record ``ScanStore.add_scan`` expects."""
    if kind not in ("url", "file"):
        raise ValueError(f"unknown scan type {kind!r}")
    record = {
        "type": kind,
        "target": target,
        "score": verdict["score"],
        "status": verdict["status"],
        "threats": list(verdict["threats"]),
        "details": dict(verdict["details"]),
    }
    if kind == "file":
        record["size"] = size
        record["mime_type"] = verdict.get("mime_type")
    return record


def scan_and_record_url(store, url: str, **kwargs) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Score ``url`` and persist the result. Returns (verdict, stored record).

    Nothing is stored when validation or scoring raises.
    """
    verdict = scan_url(url, **kwargs)
    record = store.add_scan(verdict_to_record("url", url.strip(), verdict))
    logger.info("Scanned URL %s: score=%d status=%s", url.strip(), verdict["score"], verdict["status"])
    return verdict, record


def scan_and_record_file(store, name: str, mime_type: str, size: int, **kwargs) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    verdict = scan_file(name, mime_type, size, **kwargs)
    record = store.add_scan(verdict_to_record("file", name.strip(), verdict, size=size))
    logger.info("Scanned file %s (%d bytes): score=%d status=%s", name, size, verdict["score"], verdict["status"])
    return verdict, record
