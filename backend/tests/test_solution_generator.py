import asyncio
import random

import pytest

from app.schemas import ComplexityLevel, ProblemSubmission, SolutionRequest, StructuredData
from app.services.catalog import fallback_catalog, find_model
from app.services.solution_generator import (
    CONFIDENCE_RANGE,
    SOLUTION_TEMPLATES,
    GeminiSolutionGenerator,
    MockSolutionGenerator,
    compare_solutions,
)

from conftest import FakeLLM


@pytest.fixture
def submission():
    return ProblemSubmission(
        problem_text="Our two largest customers want exclusive pricing and we cannot give both.",
        domain="business",
        urgency="high",
        stakeholders=["sales", "finance"],
        structured_data=StructuredData(core_issue="Exclusive pricing conflict"),
    )


def _request(submission, model_id, complexity=ComplexityLevel.INTERMEDIATE):
    return SolutionRequest(
        submission=submission,
        model_id=model_id,
        model=find_model(fallback_catalog(), model_id),
        complexity_preference=complexity,
    )


@pytest.mark.parametrize("model_id", sorted(SOLUTION_TEMPLATES))
def test_mock_scores_stay_in_template_ranges(submission, model_id):
    generator = MockSolutionGenerator(random.Random(11))
    template = SOLUTION_TEMPLATES[model_id]
    for _ in range(10):
        solution = generator.build_solution(_request(submission, model_id))
        variant = solution.solution_variants[0]
        assert template.feasibility_range[0] <= variant.feasibility_score <= template.feasibility_range[1]
        assert template.innovation_range[0] <= variant.innovation_score <= template.innovation_range[1]
        assert CONFIDENCE_RANGE[0] <= solution.bias_analysis.confidence_level <= CONFIDENCE_RANGE[1]
        assert 0 <= solution.bias_analysis.risk_score <= 100
        assert 1 <= len(solution.bias_analysis.detected_biases) <= 2


def test_mock_solution_fields(submission):
    result = asyncio.run(MockSolutionGenerator(random.Random(2)).generate(
        _request(submission, "nash_equilibrium", ComplexityLevel.EXPERT)
    ))
    assert result.success is True
    solution = result.data
    assert solution.problem_id == submission.id
    assert solution.model_id == "nash_equilibrium"
    assert solution.complexity_level == ComplexityLevel.EXPERT
    assert set(solution.stakeholder_views) == {"sales", "finance"}
    assert solution.solution_variants[0].title == "Nash Equilibrium Solution"
    assert solution.export_formats.metrics_csv.startswith("metric,value")


def test_unknown_model_uses_generic_template(submission):
    request = SolutionRequest(submission=submission, model_id="lateral_thinking")
    solution = MockSolutionGenerator(random.Random(0)).build_solution(request)
    variant = solution.solution_variants[0]
    assert variant.title == "Lateral Thinking Solution"
    assert "Lateral Thinking" in variant.model_logic
    assert variant.implementation_steps


def test_seeded_generator_is_reproducible(submission):
    a = MockSolutionGenerator(random.Random(9)).build_solution(_request(submission, "systems_thinking"))
    b = MockSolutionGenerator(random.Random(9)).build_solution(_request(submission, "systems_thinking"))
    assert a.solution_variants == b.solution_variants
    assert a.bias_analysis == b.bias_analysis


def test_gemini_generator_parses_reply(submission):
    llm = FakeLLM(response={
        "solution_variants": [{
            "title": "Tiered exclusivity",
            "description": "Offer time-boxed exclusivity to each customer.",
            "model_logic": "Found a profile neither customer wants to leave.",
            "feasibility_score": 7,
            "innovation_score": 6,
            "implementation_steps": ["Model payoffs", "Propose tiers"],
        }],
        "bias_analysis": {"risk_score": 30, "detected_biases": [], "confidence_level": 75},
        "stakeholder_views": {"sales": "Keeps both accounts"},
    })
    result = asyncio.run(GeminiSolutionGenerator(llm).generate(_request(submission, "nash_equilibrium")))
    assert result.success is True
    assert result.data.solution_variants[0].title == "Tiered exclusivity"
    assert "Nash Equilibrium" in llm.calls[0][0]


def test_gemini_generator_reports_failure(submission):
    result = asyncio.run(GeminiSolutionGenerator(FakeLLM(error="timeout")).generate(
        _request(submission, "first_principles")
    ))
    assert result.success is False
    assert "timeout" in result.error


def test_gemini_generator_rejects_empty_variants(submission):
    llm = FakeLLM(response={"solution_variants": [], "bias_analysis": {}})
    result = asyncio.run(GeminiSolutionGenerator(llm).generate(_request(submission, "first_principles")))
    assert result.success is False


def test_compare_solutions(submission):
    generator = MockSolutionGenerator(random.Random(4))
    catalog = fallback_catalog()
    solutions = [
        generator.build_solution(_request(submission, model_id))
        for model_id in ("first_principles", "opportunity_cost")
    ]
    comparison = compare_solutions(submission.id, solutions, catalog)

    assert comparison.problem_id == submission.id
    assert [m.model_id for m in comparison.models] == ["first_principles", "opportunity_cost"]
    assert comparison.models[0].metrics.complexity == 7
    assert any(m.model_name in comparison.recommendation for m in comparison.models)
    for compared in comparison.models:
        assert 1 <= compared.metrics.time_to_implement <= 10
        assert 1 <= compared.metrics.resource_requirements <= 10


def test_compare_no_solutions(submission):
    comparison = compare_solutions(submission.id, [], fallback_catalog())
    assert comparison.models == []
    assert comparison.recommendation == "No solutions to compare."
