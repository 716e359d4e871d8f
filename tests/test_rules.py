import json

from brixshield.app.file_heuristics import score_file
from brixshield.app.rules import DEFAULT_RULES, RULES_VERSION, load_rules, merge_rules


def test_merge_keeps_defaults_untouched():
    rules = merge_rules({"file": {"suspicious_tokens": ["stealer"]}})
    assert rules["file"]["suspicious_tokens"] == ("stealer",)
    assert rules["version"] == RULES_VERSION
    assert "crack" in DEFAULT_RULES["file"]["suspicious_tokens"]


def test_unknown_rule_is_ignored():
    rules = merge_rules({"url": {"no_such_rule": [1]}})
    assert "no_such_rule" not in rules["url"]


def test_load_rules_from_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({
        "version": "2025.03-local",
        "file": {"suspicious_tokens": ["stealer"]},
        "url": {"structure_patterns": [["host", "^evil"]]},
    }))
    rules = load_rules(str(path))
    assert rules["version"] == "2025.03-local"
    assert rules["url"]["structure_patterns"] == (("host", "^evil"),)
    r = score_file("stealer.txt", "text/plain", 10, rules=rules)
    assert r["score"] == 50
    assert score_file("crack.txt", "text/plain", 10, rules=rules)["score"] == 90
