from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.services.catalog import (
    FALLBACK_MODELS,
    SEED_MODELS,
    explain_model,
    fallback_catalog,
    find_model,
    load_catalog,
    seed_catalog,
)
from app.services.model_filter import filter_models


def test_empty_table_falls_back(db_session):
    catalog = load_catalog(db_session)
    assert [m.id for m in catalog] == [entry["id"] for entry in FALLBACK_MODELS]


def test_query_failure_falls_back():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
    catalog = load_catalog(db)
    assert len(catalog) == 5
    assert len(filter_models(catalog)) == 5


def test_seed_then_load_orders_by_name(db_session):
    inserted = seed_catalog(db_session)
    assert inserted == len(SEED_MODELS)

    catalog = load_catalog(db_session)
    names = [m.name for m in catalog]
    assert names == sorted(names)
    assert len(catalog) == len(SEED_MODELS)


def test_seed_is_repeatable(db_session):
    seed_catalog(db_session)
    assert seed_catalog(db_session) == 0


def test_find_model():
    catalog = fallback_catalog()
    assert find_model(catalog, "nash_equilibrium").name == "Nash Equilibrium"
    assert find_model(catalog, "missing") is None


def test_explanation_uses_catalog_fields():
    catalog = fallback_catalog()
    explanation = explain_model(catalog, "first_principles", "comprehensive")

    model = find_model(catalog, "first_principles")
    assert explanation.abstract == model.description
    assert explanation.limitations == model.limitations
    assert explanation.when_to_use == model.application_scenarios
    assert "Opportunity Cost" in explanation.related_models


def test_explanation_without_case_study():
    explanation = explain_model(fallback_catalog(), "nash_equilibrium")
    assert explanation.case_study == "Case study not available"


def test_explanation_unknown_model():
    assert explain_model(fallback_catalog(), "missing") is None


def test_explanation_bad_detail_level():
    with pytest.raises(ValueError):
        explain_model(fallback_catalog(), "first_principles", "exhaustive")
