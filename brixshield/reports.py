"""
reports.py

Export the scan history as JSON, CSV or a self-contained HTML report.
These are pure projections of the stored records.
"""

import csv
import io
import json
from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, List, Optional

CSV_HEADERS = [
    "ID", "Type", "Target", "Status", "Score", "Threats Count", "Threats",
    "Has SSL", "Malware Detected", "Phishing Risk", "Suspicious Activity",
    "Virus Detected", "Encrypted", "File Size", "Scan Date", "AI Recommendations",
]


def iso_timestamp(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).isoformat()


def summarize(scans: List[Dict[str, Any]]) -> Dict[str, Any]:
    total = len(scans)
    return {
        "total_scans": total,
        "safe_scans": sum(1 for s in scans if s["status"] == "safe"),
        "warning_scans": sum(1 for s in scans if s["status"] == "warning"),
        "threat_scans": sum(1 for s in scans if s["status"] == "threat"),
        "average_score": round(sum(s["score"] for s in scans) / total) if total else 0,
        "total_threats": sum(len(s.get("threats") or []) for s in scans),
        "scan_types": {
            "url": sum(1 for s in scans if s["type"] == "url"),
            "file": sum(1 for s in scans if s["type"] == "file"),
        },
    }


def generate_report_data(scans: List[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    return {
        "scans": scans,
        "generated_at": now.isoformat(),
        "summary": summarize(scans),
    }


def to_json(report: Dict[str, Any]) -> str:
    return json.dumps(report, indent=2)


def _flag(details: Dict[str, Any], key: str) -> str:
    if key not in details or details[key] is None:
        return "N/A"
    return "true" if details[key] else "false"


def to_csv(scans: List[Dict[str, Any]]) -> str:
    """One row per record under CSV_HEADERS; fields with quotes or commas are quoted."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for scan in scans:
        details = scan.get("details") or {}
        threats = scan.get("threats") or []
        writer.writerow([
            scan["id"],
            scan["type"],
            scan["target"],
            scan["status"],
            scan["score"],
            len(threats),
            "; ".join(threats),
            _flag(details, "ssl"),
            _flag(details, "malware"),
            _flag(details, "phishing"),
            _flag(details, "suspicious"),
            _flag(details, "virus"),
            _flag(details, "encrypted"),
            scan["size"] if scan.get("size") is not None else "N/A",
            iso_timestamp(scan["timestamp"]),
            scan.get("ai_recommendations") or "",
        ])
    return buf.getvalue()


_HTML_STYLE = """
body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333;
       max-width: 1200px; margin: 0 auto; padding: 20px; background-color: #f8fafc; }
.header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px;
          border-radius: 10px; margin-bottom: 30px; text-align: center; }
.summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; margin-bottom: 30px; }
.summary-card { background: white; padding: 20px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); text-align: center; }
.summary-card h3 { margin: 0 0 10px 0; color: #4a5568; font-size: 14px; text-transform: uppercase; }
.summary-card .value { font-size: 28px; font-weight: bold; margin: 0; }
.safe { color: #38a169; } .warning { color: #d69e2e; } .threat { color: #e53e3e; } .neutral { color: #4a5568; }
.scan-item { background: white; padding: 20px; border-bottom: 1px solid #e2e8f0; }
.status-badge { padding: 4px 12px; border-radius: 20px; font-size: 12px; font-weight: bold; text-transform: uppercase; }
.status-safe { background-color: #c6f6d5; color: #22543d; }
.status-warning { background-color: #fefcbf; color: #744210; }
.status-threat { background-color: #fed7d7; color: #742a2a; }
.ai { white-space: pre-wrap; background: #edf2f7; padding: 10px; border-radius: 6px; }
"""


def _card(title: str, value: Any, css: str) -> str:
    return f'<div class="summary-card"><h3>{escape(title)}</h3><p class="value {css}">{escape(str(value))}</p></div>'


def _scan_item(scan: Dict[str, Any]) -> str:
    status = escape(scan["status"])
    threats = scan.get("threats") or []
    if threats:
        threat_html = "<ul>" + "".join(f"<li>{escape(t)}</li>" for t in threats) + "</ul>"
    else:
        threat_html = "<p>No threats detected</p>"
    size = f" &middot; {scan['size']} bytes" if scan.get("size") is not None else ""
    ai = scan.get("ai_recommendations")
    ai_html = f'<h4>AI Recommendations</h4><div class="ai">{escape(ai)}</div>' if ai else ""
    return (
        '<div class="scan-item">'
        f'<span class="status-badge status-{status}">{status}</span> '
        f'<strong>{escape(scan["type"].upper())}</strong> {escape(scan["target"])}'
        f'<p>Score: {scan["score"]}/100 &middot; {escape(iso_timestamp(scan["timestamp"]))}{size}</p>'
        f"{threat_html}{ai_html}"
        "</div>"
    )


def to_html(report: Dict[str, Any]) -> str:
    """Render a standalone HTML document for ``report`` (see generate_report_data)."""
    summary = report["summary"]
    cards = "".join([
        _card("Total Scans", summary["total_scans"], "neutral"),
        _card("Safe", summary["safe_scans"], "safe"),
        _card("Warnings", summary["warning_scans"], "warning"),
        _card("Threats", summary["threat_scans"], "threat"),
        _card("Average Score", summary["average_score"], "neutral"),
        _card("Threats Found", summary["total_threats"], "threat"),
    ])
    items = "".join(_scan_item(s) for s in report["scans"]) or '<div class="scan-item">No scans recorded</div>'
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "<title>BrixShield Security Report</title>\n"
        f"<style>{_HTML_STYLE}</style>\n</head>\n<body>\n"
        '<div class="header"><h1>BrixShield Security Report</h1>'
        f'<p>Generated {escape(report["generated_at"])}</p></div>\n'
        f'<div class="summary">{cards}</div>\n'
        f'<div class="scan-results">{items}</div>\n'
        "</body>\n</html>\n"
    )
