"""
Report Export Service
Serializes wizard results to JSON, CSV, plain text or PDF downloads.
"""
import csv
import io
import json
import logging
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional

from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.colors import HexColor
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Preformatted

from app.schemas import WizardSession

logger = logging.getLogger(__name__)

EXPORT_FORMATS: Dict[str, Dict[str, str]] = {
    "json": {"extension": "json", "mime_type": "application/json"},
    "csv": {"extension": "csv", "mime_type": "text/csv"},
    "text": {"extension": "txt", "mime_type": "text/plain"},
    "pdf": {"extension": "pdf", "mime_type": "application/pdf"},
}


@dataclass
class ExportFile:
    """A ready-to-download file"""
    filename: str
    mime_type: str
    content: bytes


def _pretty_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, default=str)


def _csv_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if value is None:
        return ""
    return str(value)


def to_csv(data: Dict[str, Any]) -> str:
    """Header row of keys and a single row of stringified values."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(list(data.keys()))
    writer.writerow([_csv_value(v) for v in data.values()])
    return buffer.getvalue()


def to_text(data: Dict[str, Any], title: str) -> str:
    return f"Report Title: {title}\n\nData: {_pretty_json(data)}"


def _scrub_text(text: str) -> str:
    """ReportLab's Helvetica only covers Latin-1."""
    replacements = {
        '–': '-', '—': '-', '“': '"', '”': '"', '‘': "'", '’': "'",
        '…': '...', '•': '*', '→': '->', '≥': '>=', '≤': '<=',
    }
    for old, new in replacements.items():
        text = text.replace(old, new)
    return ''.join(c for c in text if ord(c) < 256)


def to_pdf(data: Dict[str, Any], title: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=letter,
        rightMargin=0.75 * inch, leftMargin=0.75 * inch,
        topMargin=0.75 * inch, bottomMargin=0.75 * inch,
    )
    base = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReportTitle', parent=base['Title'], fontSize=20, textColor=HexColor('#1f2937'),
    )
    code_style = ParagraphStyle(
        'ReportBody', parent=base['Code'], fontSize=8, leading=10,
    )

    story = [
        Paragraph(_scrub_text(title), title_style),
        Spacer(1, 0.2 * inch),
        Preformatted(_scrub_text(_pretty_json(data)), code_style),
    ]
    doc.build(story)
    return buffer.getvalue()


def export_result(
    data: Dict[str, Any],
    fmt: str,
    report_type: str = "wizard",
    title: str = "Mental Model Report",
    now: Optional[float] = None,
) -> ExportFile:
    """
    Serialize a result object for download.

    Args:
        data: JSON-compatible result object
        fmt: json, csv, text or pdf
        report_type: Prefix used in the filename
        title: Report title for text and PDF output
        now: Epoch seconds used for the filename timestamp

    Raises:
        ValueError: for an unsupported format
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    if fmt == "json":
        content = _pretty_json(data).encode("utf-8")
    elif fmt == "csv":
        content = to_csv(data).encode("utf-8")
    elif fmt == "text":
        content = to_text(data, title).encode("utf-8")
    else:
        content = to_pdf(data, title)

    timestamp_ms = int((time.time() if now is None else now) * 1000)
    info = EXPORT_FORMATS[fmt]
    filename = f"{report_type}_report_{timestamp_ms}.{info['extension']}"
    logger.info(f"Exported {filename} ({len(content)} bytes)")
    return ExportFile(filename=filename, mime_type=info["mime_type"], content=content)


def session_report(session: WizardSession) -> Dict[str, Any]:
    """The result object exported from a wizard session."""
    dumped = session.model_dump(mode="json")
    return {
        "session_id": session.id,
        "stage": session.stage.value,
        "problem": dumped["submission"],
        "recommendations": dumped["recommendations"],
        "selected_model_ids": dumped["selected_model_ids"],
        "solutions": dumped["solutions"],
        "comparison": dumped["comparison"],
    }
