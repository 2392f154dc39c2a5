import csv
import io
import json

import pytest

from app.schemas import WizardSession
from app.services.exporter import export_result, session_report

DATA = {
    "model": "Nash Equilibrium",
    "score": 87,
    "steps": ["Identify players", "Map payoffs"],
    "notes": None,
}


def test_json_round_trip():
    export = export_result(DATA, "json", now=1700000000.123)
    assert json.loads(export.content) == DATA
    assert export.mime_type == "application/json"
    assert export.filename == "wizard_report_1700000000123.json"


def test_csv_has_header_and_one_row():
    export = export_result(DATA, "csv", report_type="comparison", now=1)
    rows = list(csv.reader(io.StringIO(export.content.decode("utf-8"))))

    assert rows[0] == list(DATA.keys())
    assert len(rows) == 2
    assert rows[1][1] == "87"
    assert json.loads(rows[1][2]) == DATA["steps"]
    assert rows[1][3] == ""
    assert export.filename == "comparison_report_1000.csv"
    assert export.mime_type == "text/csv"


def test_text_layout():
    export = export_result(DATA, "text", title="Quarterly Review")
    text = export.content.decode("utf-8")
    assert text.startswith("Report Title: Quarterly Review\n\nData: ")
    assert json.loads(text.split("Data: ", 1)[1]) == DATA
    assert export.filename.endswith(".txt")


def test_pdf_export():
    export = export_result({**DATA, "model": "Nash Equilibrium — “best” response"}, "pdf")
    assert export.content.startswith(b"%PDF")
    assert export.mime_type == "application/pdf"
    assert export.filename.endswith(".pdf")


def test_format_is_case_insensitive():
    assert export_result(DATA, "JSON").filename.endswith(".json")


def test_unsupported_format():
    with pytest.raises(ValueError):
        export_result(DATA, "xlsx")


def test_session_report_shape():
    report = session_report(WizardSession())
    assert report["stage"] == "input"
    assert report["problem"] is None
    assert report["solutions"] == []
    json.dumps(report)
