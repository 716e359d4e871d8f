import csv
import io
import json
import unittest
from datetime import datetime, timezone

from brixshield.reports import CSV_HEADERS, generate_report_data, to_csv, to_html, to_json

SCANS = [
    {
        "id": "b2", "type": "file", "target": 'evil "setup", v2.exe', "score": 40, "status": "warning",
        "timestamp": 1_700_000_000_000, "threats": ["Potentially dangerous file type", "Unusually small executable file"],
        "details": {"virus": False, "malware": False, "suspicious": True, "encrypted": False},
        "size": 50, "mime_type": "application/octet-stream",
    },
    {
        "id": "a1", "type": "url", "target": "http://example.com/<script>", "score": 75, "status": "safe",
        "timestamp": 1_699_000_000_000, "threats": ["Insecure connection (no HTTPS)"],
        "details": {"ssl": False, "reputation": 75, "malware": False, "phishing": False, "suspicious": False},
        "ai_recommendations": "Use HTTPS, \"always\".",
    },
]


class TestReports(unittest.TestCase):
    def test_summary(self):
        report = generate_report_data(SCANS, now=datetime(2024, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(report["generated_at"], "2024-01-01T00:00:00+00:00")
        self.assertEqual(report["summary"], {
            "total_scans": 2,
            "safe_scans": 1,
            "warning_scans": 1,
            "threat_scans": 0,
            "average_score": 58,
            "total_threats": 3,
            "scan_types": {"url": 1, "file": 1},
        })

    def test_empty_summary(self):
        summary = generate_report_data([])["summary"]
        self.assertEqual(summary["total_scans"], 0)
        self.assertEqual(summary["average_score"], 0)

    def test_json_is_loadable(self):
        report = generate_report_data(SCANS)
        self.assertEqual(json.loads(to_json(report))["scans"][1]["id"], "a1")

    def test_csv_rows_and_escaping(self):
        rows = list(csv.reader(io.StringIO(to_csv(SCANS))))
        self.assertEqual(rows[0], CSV_HEADERS)
        self.assertEqual(len(rows), 3)
        file_row = dict(zip(CSV_HEADERS, rows[1]))
        self.assertEqual(file_row["Target"], 'evil "setup", v2.exe')
        self.assertEqual(file_row["Threats Count"], "2")
        self.assertEqual(file_row["Has SSL"], "N/A")
        self.assertEqual(file_row["Virus Detected"], "false")
        self.assertEqual(file_row["File Size"], "50")
        self.assertEqual(file_row["AI Recommendations"], "")
        url_row = dict(zip(CSV_HEADERS, rows[2]))
        self.assertEqual(url_row["Has SSL"], "false")
        self.assertEqual(url_row["File Size"], "N/A")
        self.assertEqual(url_row["AI Recommendations"], 'Use HTTPS, "always".')
        self.assertTrue(url_row["Scan Date"].startswith("2023-11-"))
        self.assertIn('"evil ""setup"", v2.exe"', to_csv(SCANS))

    def test_html_is_escaped_and_self_contained(self):
        page = to_html(generate_report_data(SCANS))
        self.assertTrue(page.startswith("<!DOCTYPE html>"))
        self.assertIn("<style>", page)
        self.assertNotIn("<script>", page)
        self.assertIn("http://example.com/&lt;script&gt;", page)
        self.assertIn("status-warning", page)
        self.assertIn("AI Recommendations", page)

    def test_html_without_scans(self):
        self.assertIn("No scans recorded", to_html(generate_report_data([])))


if __name__ == "__main__":
    unittest.main()
