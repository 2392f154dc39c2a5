import json

from sqlalchemy.exc import SQLAlchemyError

from app.api.v1 import wizard as wizard_routes
from app.dependencies import get_wizard
from app.main import app
from app.schemas import AnalysisFailure
from app.services.catalog import fallback_catalog
from app.services.session_store import InMemorySessionStore
from app.services.solution_generator import MockSolutionGenerator
from app.services.wizard import ProblemWizard

PROBLEM = {
    "problem_text": "Rival firms keep undercutting our prices in a shrinking market.",
    "domain": "business",
    "urgency": "critical",
    "stakeholders": ["sales", "finance"],
}


def _start(client):
    res = client.post("/api/v1/wizard")
    assert res.status_code == 201
    return res.json()["id"]


def _through_results(client):
    session_id = _start(client)
    session = client.post(f"/api/v1/wizard/{session_id}/problem", json=PROBLEM).json()
    model_ids = [r["model_id"] for r in session["recommendations"][:2]]
    res = client.post(f"/api/v1/wizard/{session_id}/solutions", json={"model_ids": model_ids})
    assert res.status_code == 200
    return res.json()


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_list_and_filter_models(client):
    res = client.get("/api/v1/models")
    assert res.status_code == 200
    assert len(res.json()) == 8

    res = client.get("/api/v1/models", params={"category": "strategic", "complexity": "high"})
    assert [m["id"] for m in res.json()] == ["nash_equilibrium"]


def test_bad_filter_is_400(client):
    assert client.get("/api/v1/models", params={"complexity": "extreme"}).status_code == 400


def test_get_model_and_explanation(client):
    assert client.get("/api/v1/models/pareto_principle").json()["complexity_score"] == 3
    assert client.get("/api/v1/models/unknown").status_code == 404

    res = client.get("/api/v1/models/swot_analysis/explanation", params={"detail_level": "brief"})
    assert res.status_code == 200
    assert "Nash Equilibrium" in res.json()["related_models"]
    assert client.get("/api/v1/models/swot_analysis/explanation",
                      params={"detail_level": "verbose"}).status_code == 400


def test_full_wizard_flow(client):
    session = _through_results(client)

    assert session["stage"] == "results"
    assert session["recommendations"][0]["model_id"] == "opportunity_cost"
    assert len(session["solutions"]) == 2
    assert session["comparison"]["models"]

    history = client.get("/api/v1/problems/history").json()
    assert history[0]["problem"]["id"] == session["submission"]["id"]


def test_empty_problem_is_400(client):
    session_id = _start(client)
    res = client.post(f"/api/v1/wizard/{session_id}/problem", json={"problem_text": " "})
    assert res.status_code == 400
    assert client.get(f"/api/v1/wizard/{session_id}").json()["stage"] == "input"


def test_zero_selection_is_400(client):
    session_id = _start(client)
    client.post(f"/api/v1/wizard/{session_id}/problem", json=PROBLEM)
    res = client.post(f"/api/v1/wizard/{session_id}/solutions", json={})
    assert res.status_code == 400


def test_invalid_transition_is_409(client):
    session_id = _start(client)
    res = client.post(f"/api/v1/wizard/{session_id}/selection", json={"model_ids": ["first_principles"]})
    assert res.status_code == 409


def test_unknown_session_is_404(client):
    assert client.get("/api/v1/wizard/nope").status_code == 404


def test_guest_limit_is_429(client):
    session_id = _start(client)
    for _ in range(3):
        assert client.post(f"/api/v1/wizard/{session_id}/problem", json=PROBLEM).status_code == 200
        client.post(f"/api/v1/wizard/{session_id}/reset")
    res = client.post(f"/api/v1/wizard/{session_id}/problem", json=PROBLEM)
    assert res.status_code == 429


def test_reset(client):
    session = _through_results(client)
    res = client.post(f"/api/v1/wizard/{session['id']}/reset")
    body = res.json()
    assert body["stage"] == "input"
    assert body["solutions"] == []
    assert body["submission"] is None


def test_analysis_failure_is_502(client):
    class Failing:
        async def analyze(self, request):
            return AnalysisFailure(error="upstream unavailable")

    store = InMemorySessionStore()
    wizard = ProblemWizard(store, Failing(), MockSolutionGenerator(), fallback_catalog())
    app.dependency_overrides[get_wizard] = lambda: wizard

    session_id = _start(client)
    res = client.post(f"/api/v1/wizard/{session_id}/problem", json=PROBLEM)
    assert res.status_code == 502
    assert res.json()["detail"] == "upstream unavailable"
    assert client.get(f"/api/v1/wizard/{session_id}").json()["stage"] == "input"


def test_export_downloads(client):
    session = _through_results(client)

    res = client.get(f"/api/v1/wizard/{session['id']}/export", params={"format": "json"})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("application/json")
    assert res.headers["content-disposition"].startswith('attachment; filename="wizard_report_')
    assert json.loads(res.content)["session_id"] == session["id"]

    res = client.get(f"/api/v1/wizard/{session['id']}/export", params={"format": "pdf"})
    assert res.content.startswith(b"%PDF")

    res = client.get(f"/api/v1/wizard/{session['id']}/export", params={"format": "docx"})
    assert res.status_code == 400


def test_rate_solution(client):
    session = _through_results(client)
    solution_id = session["solutions"][0]["id"]

    res = client.post(f"/api/v1/solutions/{solution_id}/rating", json={"rating": 4})
    assert res.status_code == 200
    assert res.json()["user_rating"] == 4

    assert client.post(f"/api/v1/solutions/{solution_id}/rating", json={"rating": 9}).status_code == 422
    assert client.post("/api/v1/solutions/missing/rating", json={"rating": 2}).status_code == 404


def test_history_write_failure_still_returns_results(client, monkeypatch):
    def broken_record(db, session):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(wizard_routes, "record_results", broken_record)

    session = _through_results(client)

    assert session["stage"] == "results"
    assert len(session["solutions"]) == 2
    assert client.get(f"/api/v1/wizard/{session['id']}").json()["stage"] == "results"
    assert client.get("/api/v1/problems/history").json() == []
