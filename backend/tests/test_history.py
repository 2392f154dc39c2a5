import asyncio
import random

import pytest

from app import models
from app.schemas import ProblemInput
from app.services.catalog import load_catalog
from app.services.history import NotFoundError, rate_solution, recent_history, record_results
from app.services.problem_analyzer import LocalProblemAnalyzer
from app.services.recommender import Recommender
from app.services.session_store import InMemorySessionStore
from app.services.solution_generator import MockSolutionGenerator
from app.services.wizard import ProblemWizard


@pytest.fixture
def finished_session(seeded_db):
    catalog = load_catalog(seeded_db)
    wizard = ProblemWizard(
        InMemorySessionStore(),
        LocalProblemAnalyzer(Recommender(rng=random.Random(0), catalog=catalog)),
        MockSolutionGenerator(random.Random(0)),
        catalog,
    )
    session = wizard.start(is_guest=False)
    asyncio.run(wizard.submit_problem(session.id, ProblemInput(
        problem_text="Should we rebuild the billing platform or keep patching it?",
        domain="technology",
    )))
    return asyncio.run(wizard.generate_solutions(
        session.id, model_ids=["first_principles", "systems_thinking"]
    ))


def test_record_results_persists_problem_and_solutions(seeded_db, finished_session):
    record_results(seeded_db, finished_session)

    problem = seeded_db.get(models.ProblemRecord, finished_session.submission.id)
    assert problem.domain == "technology"
    assert sorted(s.model_id for s in problem.solutions) == ["first_principles", "systems_thinking"]


def test_recent_history(seeded_db, finished_session):
    record_results(seeded_db, finished_session)
    history = recent_history(seeded_db)

    assert len(history) == 1
    assert history[0].problem.id == finished_session.submission.id
    assert len(history[0].solutions) == 2


def test_rating_updates_metrics(seeded_db, finished_session):
    record_results(seeded_db, finished_session)
    solution = finished_session.solutions[0]
    model = seeded_db.get(models.MentalModel, solution.model_id)
    before = dict(model.performance_metrics)

    response = rate_solution(seeded_db, solution.id, 5)

    assert response.user_rating == 5
    assert response.performance_metrics.usage_count == before["usage_count"] + 1
    expected = (before["success_rate"] * before["usage_count"] + 100) / (before["usage_count"] + 1)
    assert response.performance_metrics.success_rate == pytest.approx(expected, abs=0.01)
    assert seeded_db.get(models.SolutionRecord, solution.id).user_rating == 5


def test_rating_unknown_solution(seeded_db):
    with pytest.raises(NotFoundError):
        rate_solution(seeded_db, "missing", 3)


def test_rating_out_of_range(seeded_db, finished_session):
    record_results(seeded_db, finished_session)
    with pytest.raises(ValueError):
        rate_solution(seeded_db, finished_session.solutions[0].id, 6)
