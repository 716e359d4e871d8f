import pytest

from brixshield.app.file_heuristics import score_file
from brixshield.app.heuristics import status_for_score


def test_small_executable_gets_both_penalties():
    r = score_file("invoice.exe", "application/x-msdownload", 50)
    assert r["score"] == 40
    assert r["status"] == "warning"
    assert r["threats"] == ["Potentially dangerous file type", "Unusually small executable file"]
    assert r["details"] == {"virus": False, "malware": False, "suspicious": True, "encrypted": False}


def test_plain_document_keeps_base_score():
    r = score_file("report.pdf", "application/pdf", 2048)
    assert r["score"] == 90
    assert r["status"] == "safe"
    assert r["threats"] == []
    assert r["mime_type"] == "application/pdf"


def test_suspicious_name_on_executable():
    r = score_file("keygen_crack.exe", "", 5000)
    assert r["score"] == 20
    assert r["status"] == "threat"
    assert r["details"]["virus"] is True
    assert r["details"]["malware"] is True
    assert r["mime_type"] == "unknown"


def test_extension_check_is_case_insensitive():
    assert "Potentially dangerous file type" in score_file("SETUP.EXE", "", 4096)["threats"]


def test_archive_is_informational():
    r = score_file("backup.zip", "application/zip", 10_000)
    assert r["score"] == 85
    assert r["threats"] == ["Archive file - contents should be verified"]


def test_macro_document():
    r = score_file("budget.xlsm", "application/vnd.ms-excel", 30_000)
    assert r["score"] == 80
    assert r["threats"] == ["Document may contain macros"]


def test_large_file():
    r = score_file("disk.iso", "application/x-iso9660-image", 200 * 1024 * 1024)
    assert r["score"] == 50
    assert "Large file size may indicate packed content" in r["threats"]


def test_encrypted_flag_is_independent_of_score():
    r = score_file("Password_list.txt", "text/plain", 300)
    assert r["score"] == 90
    assert r["details"]["encrypted"] is True
    assert score_file("encrypted-backup.7z", "", 1)["details"]["encrypted"] is True


def test_score_floor():
    r = score_file("trojan-keygen.exe", "", 10)
    assert r["score"] == 0
    assert r["status"] == "threat"


@pytest.mark.parametrize("name,size", [
    ("a.exe", 0), ("a.docm", 1), ("virus.zip", 500 * 1024 * 1024), ("notes.txt", 12), ("x", 0),
])
def test_file_score_in_range(name, size):
    r = score_file(name, "", size)
    assert 0 <= r["score"] <= 100
    assert r["status"] == status_for_score(r["score"])
