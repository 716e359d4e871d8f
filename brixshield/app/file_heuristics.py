"""
file_heuristics.py

Metadata-only risk scoring for uploaded files. Nothing is opened or
executed: the verdict is derived from the name, the declared MIME type and
the size.
"""

from typing import Any, Dict, List, Optional

from brixshield.app.heuristics import clamp_score, status_for_score
from brixshield.app.rules import DEFAULT_RULES

BASE_SCORE = 90

PENALTY_DANGEROUS_EXTENSION = 30
PENALTY_SUSPICIOUS_NAME = 40
PENALTY_SMALL_EXECUTABLE = 20
PENALTY_LARGE_FILE = 10
PENALTY_ARCHIVE = 5
PENALTY_MACROS = 10


def score_file(name: str, mime_type: str, size: int, rules: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Score a file from its metadata.

    Returns a dict with ``score``, ``status``, ``threats`` and ``details``
    (``virus``, ``malware``, ``suspicious``, ``encrypted``). ``mime_type`` is
    carried through unchanged; the rules only look at the name and size.
    """
    rules = rules or DEFAULT_RULES
    file_rules = rules["file"]
    file_name = name.lower()

    score = BASE_SCORE
    threats: List[str] = []

    dangerous = file_name.endswith(tuple(file_rules["dangerous_extensions"]))
    if dangerous:
        score -= PENALTY_DANGEROUS_EXTENSION
        threats.append("Potentially dangerous file type")

    if any(token in file_name for token in file_rules["suspicious_tokens"]):
        score -= PENALTY_SUSPICIOUS_NAME
        threats.append("Suspicious filename pattern")

    if dangerous and size < file_rules["small_executable_bytes"]:
        score -= PENALTY_SMALL_EXECUTABLE
        threats.append("Unusually small executable file")

    if size > file_rules["large_file_bytes"]:
        score -= PENALTY_LARGE_FILE
        threats.append("Large file size may indicate packed content")

    if file_name.endswith(tuple(file_rules["archive_extensions"])):
        score -= PENALTY_ARCHIVE
        threats.append("Archive file - contents should be verified")

    if file_name.endswith(tuple(file_rules["macro_extensions"])):
        score -= PENALTY_MACROS
        threats.append("Document may contain macros")

    score = clamp_score(score)

    return {
        "score": score,
        "status": status_for_score(score),
        "threats": threats,
        "details": {
            "virus": score < 30,
            "malware": score < 40,
            "suspicious": score < 60,
            "encrypted": any(token in file_name for token in file_rules["encrypted_tokens"]),
        },
        "mime_type": mime_type or "unknown",
        "rules_version": rules.get("version"),
    }
