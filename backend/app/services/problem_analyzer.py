"""
Problem Analysis Service
Turns the user's free-text problem into structured data and model recommendations.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Dict, Optional

from pydantic import ValidationError

from app.schemas import (
    AnalysisData,
    AnalysisFailure,
    AnalysisResult,
    AnalysisSuccess,
    ProblemInput,
    StructuredData,
)
from app.services.llm_client import LLMClient, LLMError
from app.services.recommender import Recommender

logger = logging.getLogger(__name__)

GENERAL_DOMAIN = "general"
CORE_ISSUE_MAX_CHARS = 200

DOMAIN_KEYWORDS: Dict[str, List[str]] = {
    "business": ["revenue", "market", "customer", "profit", "startup", "sales", "company", "pricing"],
    "technology": ["software", "system", "platform", "infrastructure", "data", "ai", "architecture", "deploy"],
    "policy": ["regulation", "government", "law", "policy", "public", "compliance", "legislation"],
    "personal": ["career", "family", "health", "my life", "job offer", "relationship", "personal"],
    "science": ["research", "experiment", "hypothesis", "study", "lab", "scientific"],
    "geopolitics": ["sanction", "diplomat", "border", "military", "trade war", "alliance", "treaty", "election"],
}

PROBLEM_TYPES: Dict[str, str] = {
    "business": "Strategic business decision",
    "technology": "Technical design problem",
    "policy": "Policy and governance issue",
    "personal": "Personal decision",
    "science": "Research question",
    "geopolitics": "Geopolitical strategy",
    GENERAL_DOMAIN: "General problem",
}

COMPLEXITY_KEYWORDS = ["complex", "uncertain", "multiple", "interdependent", "conflict", "stakeholder", "long-term"]
CONSTRAINT_MARKERS = ["must", "cannot", "can't", "budget", "deadline", "limited", "without", "only"]
# Keywords this short must match a whole word; longer ones also match as a word prefix
WHOLE_WORD_MAX_LEN = 4

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


@dataclass
class Classification:
    """Output of the local keyword classifier"""
    domain: str
    complexity_level: int
    core_issue: str
    constraints: List[str] = field(default_factory=list)

    @property
    def problem_type(self) -> str:
        return PROBLEM_TYPES.get(self.domain, PROBLEM_TYPES[GENERAL_DOMAIN])

    def structured_data(self) -> StructuredData:
        return StructuredData(
            core_issue=self.core_issue,
            complexity_level=self.complexity_level,
            problem_type=self.problem_type,
            constraints=self.constraints,
        )


def _sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text.strip()) if s.strip()]


def _keyword_pattern(keyword: str) -> str:
    pattern = rf"\b{re.escape(keyword)}"
    if len(keyword) <= WHOLE_WORD_MAX_LEN:
        pattern += r"\b"
    return pattern


def classify_domain(text: str) -> str:
    lowered = text.lower()
    best_domain, best_hits = GENERAL_DOMAIN, 0
    for domain, keywords in DOMAIN_KEYWORDS.items():
        hits = sum(1 for keyword in keywords if re.search(_keyword_pattern(keyword), lowered))
        if hits > best_hits:
            best_domain, best_hits = domain, hits
    return best_domain


def estimate_complexity(text: str, stakeholders: Optional[List[str]] = None) -> int:
    lowered = text.lower()
    score = 3
    score += min(3, len(text.split()) // 40)
    score += min(3, sum(1 for keyword in COMPLEXITY_KEYWORDS if keyword in lowered))
    score += min(2, len(stakeholders or []) // 2)
    return max(1, min(10, score))


def extract_constraints(text: str) -> List[str]:
    constraints = []
    for sentence in _sentences(text):
        lowered = sentence.lower()
        if any(re.search(rf"\b{re.escape(marker)}\b", lowered) for marker in CONSTRAINT_MARKERS):
            constraints.append(sentence)
    return constraints


def core_issue_excerpt(text: str) -> str:
    sentences = _sentences(text)
    first = sentences[0] if sentences else text.strip()
    if len(first) > CORE_ISSUE_MAX_CHARS:
        first = first[:CORE_ISSUE_MAX_CHARS - 3].rstrip() + "..."
    return first


def resolve_domain(requested: Optional[str], text: str) -> str:
    """An explicit, non-general domain from the user wins over the classifier."""
    if requested and requested.strip() and requested.strip().lower() != GENERAL_DOMAIN:
        return requested.strip().lower()
    return classify_domain(text)


def classify_problem(request: ProblemInput) -> Classification:
    text = request.problem_text
    return Classification(
        domain=resolve_domain(request.domain, text),
        complexity_level=estimate_complexity(text, request.stakeholders),
        core_issue=core_issue_excerpt(text),
        constraints=extract_constraints(text),
    )


class LocalProblemAnalyzer:
    """Keyword classifier plus the mock recommendation tables."""

    def __init__(self, recommender: Optional[Recommender] = None):
        self.recommender = recommender or Recommender()

    async def analyze(self, request: ProblemInput) -> AnalysisResult:
        if not request.problem_text.strip():
            return AnalysisFailure(error="Problem text is empty")

        classification = classify_problem(request)
        recommendations = self.recommender.recommend(
            classification.domain, request.urgency, request.problem_text
        )
        logger.info(
            f"Classified problem as '{classification.domain}' "
            f"(complexity {classification.complexity_level})"
        )
        return AnalysisSuccess(data=AnalysisData(
            domain=classification.domain,
            structured_data=classification.structured_data(),
            recommendations=recommendations,
        ))


class GeminiProblemAnalyzer:
    """
    Asks Gemini for the structured problem data.

    Recommendations always come from the lookup tables; if Gemini fails the
    local classifier is used instead.
    """

    PROMPT = """
You are an expert problem analyst. Analyze the following problem and extract structured information.

Problem: "{problem_text}"
Domain: {domain}
Urgency: {urgency}
Stakeholders: {stakeholders}

Respond ONLY with JSON in the following format:
{{
  "core_issue": "string - the fundamental problem to solve",
  "complexity_level": "number 1-10 - problem complexity",
  "problem_type": "string - category of problem",
  "constraints": ["array of key constraints"],
  "domain": "one of: business, technology, policy, personal, science, geopolitics, general"
}}
"""

    def __init__(self, llm: LLMClient, recommender: Optional[Recommender] = None):
        self.llm = llm
        self.local = LocalProblemAnalyzer(recommender)
        self.recommender = self.local.recommender

    def build_prompt(self, request: ProblemInput) -> str:
        return self.PROMPT.format(
            problem_text=request.problem_text,
            domain=request.domain or "General",
            urgency=request.urgency.value,
            stakeholders=", ".join(request.stakeholders) or "Not specified",
        )

    async def analyze(self, request: ProblemInput) -> AnalysisResult:
        if not request.problem_text.strip():
            return AnalysisFailure(error="Problem text is empty")

        try:
            parsed = await self.llm.get_structured_completion(self.build_prompt(request))
            structured = StructuredData.model_validate({
                "core_issue": parsed.get("core_issue") or core_issue_excerpt(request.problem_text),
                "complexity_level": int(parsed.get("complexity_level", 5)),
                "problem_type": parsed.get("problem_type") or "General",
                "constraints": parsed.get("constraints") or [],
            })
        except (LLMError, ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Gemini analysis failed, using local classifier: {e}")
            return await self.local.analyze(request)

        domain = resolve_domain(request.domain, request.problem_text)
        if domain == GENERAL_DOMAIN and parsed.get("domain"):
            domain = str(parsed["domain"]).strip().lower()

        recommendations = self.recommender.recommend(domain, request.urgency, request.problem_text)
        return AnalysisSuccess(data=AnalysisData(
            domain=domain,
            structured_data=structured,
            recommendations=recommendations,
        ))
