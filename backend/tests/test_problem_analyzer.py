import asyncio
import random

from app.schemas import ProblemInput, Urgency
from app.services.problem_analyzer import (
    GENERAL_DOMAIN,
    CORE_ISSUE_MAX_CHARS,
    GeminiProblemAnalyzer,
    LocalProblemAnalyzer,
    classify_domain,
    core_issue_excerpt,
    estimate_complexity,
    extract_constraints,
    resolve_domain,
)
from app.services.recommender import Recommender, SIMPLICITY_MODEL_ID

from conftest import FakeLLM


def test_classify_domain_keywords():
    assert classify_domain("Our startup is losing customers and revenue") == "business"
    assert classify_domain("Sanctions and border disputes with a military alliance") == "geopolitics"
    assert classify_domain("Nothing recognisable here") == GENERAL_DOMAIN


def test_classify_domain_matches_word_starts_only():
    # "ai" inside "said" or "maintain" must not count as technology
    assert classify_domain("She said we should maintain the plan") == GENERAL_DOMAIN


def test_classify_domain_short_keywords_need_whole_words():
    assert classify_domain("We asked for aid to fix the lawn before the air show") == GENERAL_DOMAIN
    assert classify_domain("The database sits in the laboratory") == GENERAL_DOMAIN
    assert classify_domain("New AI law needs public compliance checks") == "policy"
    # Longer stems still match inflected forms
    assert classify_domain("Customers want lower pricing from the companies") == "business"


def test_explicit_domain_wins():
    assert resolve_domain("Policy", "startup revenue customers") == "policy"
    assert resolve_domain("general", "startup revenue customers") == "business"
    assert resolve_domain(None, "startup revenue customers") == "business"


def test_core_issue_is_first_sentence_truncated():
    assert core_issue_excerpt("First sentence. Second one.") == "First sentence."
    long = "word " * 100
    excerpt = core_issue_excerpt(long)
    assert len(excerpt) <= CORE_ISSUE_MAX_CHARS
    assert excerpt.endswith("...")


def test_constraints_and_complexity():
    text = "We must ship by Friday. The budget is fixed. Everyone is happy."
    assert extract_constraints(text) == ["We must ship by Friday.", "The budget is fixed."]
    simple = estimate_complexity("short")
    harder = estimate_complexity("complex uncertain conflict across multiple teams", ["a", "b", "c", "d"])
    assert 1 <= simple < harder <= 10


def test_local_analyzer_success():
    analyzer = LocalProblemAnalyzer(Recommender(rng=random.Random(5)))
    request = ProblemInput(
        problem_text="Trade war sanctions threaten our alliance treaty.",
        urgency=Urgency.CRITICAL,
    )
    result = asyncio.run(analyzer.analyze(request))

    assert result.success is True
    assert result.data.domain == "geopolitics"
    assert result.data.structured_data.problem_type == "Geopolitical strategy"
    assert result.data.recommendations[0].model_id == SIMPLICITY_MODEL_ID


def test_local_analyzer_rejects_blank_text():
    result = asyncio.run(LocalProblemAnalyzer().analyze(ProblemInput(problem_text="   ")))
    assert result.success is False
    assert result.error


def test_gemini_analyzer_uses_structured_reply():
    llm = FakeLLM(response={
        "core_issue": "Choose a cloud vendor",
        "complexity_level": 6,
        "problem_type": "Vendor selection",
        "constraints": ["Budget"],
        "domain": "technology",
    })
    analyzer = GeminiProblemAnalyzer(llm, Recommender(rng=random.Random(1)))
    result = asyncio.run(analyzer.analyze(ProblemInput(problem_text="Which vendor should we pick?")))

    assert result.success is True
    assert result.data.domain == "technology"
    assert result.data.structured_data.core_issue == "Choose a cloud vendor"
    assert result.data.structured_data.complexity_level == 6
    assert len(llm.calls) == 1


def test_gemini_analyzer_falls_back_on_error():
    analyzer = GeminiProblemAnalyzer(FakeLLM(error="quota exceeded"), Recommender(rng=random.Random(1)))
    result = asyncio.run(analyzer.analyze(ProblemInput(problem_text="Our startup revenue is falling.")))
    assert result.success is True
    assert result.data.domain == "business"


def test_gemini_analyzer_falls_back_on_bad_shape():
    analyzer = GeminiProblemAnalyzer(FakeLLM(response={"complexity_level": "very"}))
    result = asyncio.run(analyzer.analyze(ProblemInput(problem_text="Research hypothesis for the lab.")))
    assert result.success is True
    assert result.data.domain == "science"
