"""
Solution Generator Service
Applies a mental model to a submitted problem and produces a solution with bias analysis.
"""
import logging
import random
from dataclasses import dataclass
from typing import List, Dict, Optional, Tuple

from pydantic import ValidationError

from app.schemas import (
    BiasAnalysis,
    BiasType,
    ComparedModel,
    ComparisonMetrics,
    DetectedBias,
    ExportFormats,
    MentalModel,
    ModelComparison,
    Severity,
    Solution,
    SolutionFailure,
    SolutionRequest,
    SolutionResult,
    SolutionSuccess,
    SolutionVariant,
)
from app.services.llm_client import LLMClient, LLMError
from app.services.recommender import application_steps_for, MODEL_NAMES

logger = logging.getLogger(__name__)

PROBLEM_EXCERPT_CHARS = 120


@dataclass
class SolutionTemplate:
    """Fixed text and score ranges for one model"""
    description: str
    model_logic: str
    feasibility_range: Tuple[int, int]
    innovation_range: Tuple[int, int]
    risks: List[str]
    benefits: List[str]


SOLUTION_TEMPLATES: Dict[str, SolutionTemplate] = {
    "first_principles": SolutionTemplate(
        description="Strip \"{problem}\" down to the facts that are known to be true and rebuild the approach from them.",
        model_logic="Separated verified facts from inherited assumptions, then recombined only the facts.",
        feasibility_range=(5, 8),
        innovation_range=(7, 10),
        risks=["Time spent re-deriving known results", "Overlooking practical constraints"],
        benefits=["Removes inherited assumptions", "Opens options competitors ignore"],
    ),
    "opportunity_cost": SolutionTemplate(
        description="Price every option for \"{problem}\" against its next-best alternative and choose on true cost.",
        model_logic="Listed the alternatives and compared each against what would be given up.",
        feasibility_range=(7, 10),
        innovation_range=(3, 6),
        risks=["Intangible costs are hard to price", "Future values are uncertain"],
        benefits=["Fast to apply", "Makes trade-offs explicit"],
    ),
    "nash_equilibrium": SolutionTemplate(
        description="Map the players in \"{problem}\", their strategies and payoffs, and steer toward a stable outcome.",
        model_logic="Built a payoff view per actor and searched for strategy profiles nobody wants to leave.",
        feasibility_range=(4, 7),
        innovation_range=(5, 8),
        risks=["Assumes rational actors", "Several equilibria may exist"],
        benefits=["Anticipates counter-moves", "Highlights where cooperation is stable"],
    ),
    "systems_thinking": SolutionTemplate(
        description="Treat \"{problem}\" as a system of feedback loops and intervene at the leverage points.",
        model_logic="Mapped components, flows and loops, then looked for small changes with large effects.",
        feasibility_range=(4, 7),
        innovation_range=(6, 9),
        risks=["Analysis can sprawl", "Relationships are hard to quantify"],
        benefits=["Avoids fixes that backfire", "Finds root causes rather than symptoms"],
    ),
    "second_order_thinking": SolutionTemplate(
        description="Trace the consequences of each response to \"{problem}\" one and two steps ahead before acting.",
        model_logic="Followed each candidate action through its immediate and follow-on effects.",
        feasibility_range=(5, 8),
        innovation_range=(5, 8),
        risks=["Accuracy drops with longer horizons", "Risk of analysis paralysis"],
        benefits=["Surfaces unintended consequences", "Improves long-term outcomes"],
    ),
}

GENERIC_TEMPLATE = SolutionTemplate(
    description="Apply the {model} framework to \"{problem}\" to structure the analysis and compare alternatives.",
    model_logic="Applied the {model} framework to analyze the problem systematically.",
    feasibility_range=(5, 8),
    innovation_range=(4, 7),
    risks=["Implementation complexity", "Resource requirements"],
    benefits=["Systematic approach", "Proven methodology"],
)

BIAS_CATALOG: Dict[BiasType, Tuple[str, str]] = {
    BiasType.CONFIRMATION: (
        "Solution may favor evidence that supports the initial framing of the problem.",
        "Actively look for data that would disprove the chosen approach.",
    ),
    BiasType.ANCHORING: (
        "Early numbers or options in the problem statement may dominate the analysis.",
        "Generate estimates independently before comparing them with the initial figures.",
    ),
    BiasType.BASE_RATE_NEGLECT: (
        "The analysis focuses on specifics and may ignore how often similar efforts succeed.",
        "Check outcomes of comparable cases before committing.",
    ),
    BiasType.AVAILABILITY: (
        "Recent or vivid examples may be overweighted relative to their frequency.",
        "Use systematic data rather than memorable anecdotes.",
    ),
    BiasType.OVERCONFIDENCE: (
        "Feasibility estimates may be tighter than the evidence supports.",
        "Widen estimate ranges and run a pre-mortem.",
    ),
}

SEVERITY_WEIGHTS = {Severity.LOW: 15, Severity.MEDIUM: 30, Severity.HIGH: 45}
CONFIDENCE_RANGE = (60, 90)


def _excerpt(text: str) -> str:
    text = " ".join(text.split())
    if len(text) > PROBLEM_EXCERPT_CHARS:
        return text[:PROBLEM_EXCERPT_CHARS - 3].rstrip() + "..."
    return text


def _model_name(request: SolutionRequest) -> str:
    if request.model is not None:
        return request.model.name
    return MODEL_NAMES.get(request.model_id, request.model_id.replace("_", " ").title())


class MockSolutionGenerator:
    """
    Template-based solutions with randomly bounded scores.

    Pass a seeded random.Random for reproducible output.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def bias_analysis(self) -> BiasAnalysis:
        picked = self.rng.sample(list(BIAS_CATALOG), k=self.rng.randint(1, 2))
        biases = []
        for bias_type in picked:
            evidence, mitigation = BIAS_CATALOG[bias_type]
            biases.append(DetectedBias(
                type=bias_type,
                severity=self.rng.choice(list(Severity)),
                evidence=evidence,
                mitigation=mitigation,
            ))
        risk_score = sum(SEVERITY_WEIGHTS[b.severity] for b in biases) + self.rng.randint(0, 10)
        return BiasAnalysis(
            risk_score=min(100, risk_score),
            detected_biases=biases,
            confidence_level=self.rng.randint(*CONFIDENCE_RANGE),
        )

    def build_solution(self, request: SolutionRequest) -> Solution:
        template = SOLUTION_TEMPLATES.get(request.model_id, GENERIC_TEMPLATE)
        name = _model_name(request)
        problem = _excerpt(request.submission.problem_text)

        variant = SolutionVariant(
            title=f"{name} Solution",
            description=template.description.format(problem=problem, model=name),
            model_logic=template.model_logic.format(model=name),
            feasibility_score=self.rng.randint(*template.feasibility_range),
            innovation_score=self.rng.randint(*template.innovation_range),
            implementation_steps=application_steps_for(request.model_id),
            risks=list(template.risks),
            benefits=list(template.benefits),
        )
        bias = self.bias_analysis()

        stakeholder_views = {
            stakeholder: f"From the {stakeholder} perspective, {name} puts the focus on {template.benefits[0].lower()}."
            for stakeholder in request.submission.stakeholders
        }

        return Solution(
            problem_id=request.submission.id,
            model_id=request.model_id,
            solution_variants=[variant],
            bias_analysis=bias,
            stakeholder_views=stakeholder_views,
            complexity_level=request.complexity_preference,
            export_formats=build_export_formats(name, variant, bias),
        )

    async def generate(self, request: SolutionRequest) -> SolutionResult:
        solution = self.build_solution(request)
        logger.info(f"Generated mock solution for model {request.model_id}")
        return SolutionSuccess(data=solution)


def build_export_formats(model_name: str, variant: SolutionVariant, bias: BiasAnalysis) -> ExportFormats:
    summary = (
        f"{model_name}: {variant.description} "
        f"Feasibility {variant.feasibility_score}/10, innovation {variant.innovation_score}/10."
    )
    deep_dive = "\n".join(
        [variant.model_logic, "Steps:"]
        + [f"{i}. {step}" for i, step in enumerate(variant.implementation_steps, start=1)]
    )
    metrics_csv = "\n".join([
        "metric,value",
        f"feasibility,{variant.feasibility_score}",
        f"innovation,{variant.innovation_score}",
        f"bias_risk,{bias.risk_score}",
        f"confidence,{bias.confidence_level}",
    ])
    return ExportFormats(executive_summary=summary, technical_deep_dive=deep_dive, metrics_csv=metrics_csv)


class GeminiSolutionGenerator:
    """Gemini-backed generator. Failures are reported, never replaced with mock output."""

    PROMPT = """
Apply the {model_name} mental model to solve this problem:

Problem: "{problem_text}"
Model Template: {prompt_template}
Complexity Level: {complexity}

Respond ONLY with JSON in the following structure:
{{
  "solution_variants": [
    {{
      "title": "string",
      "description": "string",
      "model_logic": "string - how the model was applied",
      "feasibility_score": "integer 0-10",
      "innovation_score": "integer 0-10",
      "implementation_steps": ["array of steps"],
      "risks": ["array of risks"],
      "benefits": ["array of benefits"]
    }}
  ],
  "bias_analysis": {{
    "risk_score": "integer 0-100",
    "detected_biases": [
      {{
        "type": "confirmation|anchoring|base_rate_neglect|availability|overconfidence",
        "severity": "low|medium|high",
        "evidence": "string",
        "mitigation": "string"
      }}
    ],
    "confidence_level": "integer 0-100"
  }},
  "stakeholder_views": {{"stakeholder name": "view"}}
}}
"""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def build_prompt(self, request: SolutionRequest) -> str:
        template = request.model.prompt_template if request.model else ""
        return self.PROMPT.format(
            model_name=_model_name(request),
            problem_text=request.submission.problem_text,
            prompt_template=template.replace("{problem}", "the problem") or "Not available",
            complexity=request.complexity_preference.value,
        )

    async def generate(self, request: SolutionRequest) -> SolutionResult:
        try:
            parsed = await self.llm.get_structured_completion(self.build_prompt(request))
            variants = [SolutionVariant.model_validate(v) for v in parsed.get("solution_variants", [])]
            if not variants:
                return SolutionFailure(error="Model returned no solution variants")
            bias = BiasAnalysis.model_validate(parsed.get("bias_analysis", {}))
            solution = Solution(
                problem_id=request.submission.id,
                model_id=request.model_id,
                solution_variants=variants,
                bias_analysis=bias,
                stakeholder_views=parsed.get("stakeholder_views") or {},
                complexity_level=request.complexity_preference,
                export_formats=build_export_formats(_model_name(request), variants[0], bias),
            )
        except (LLMError, ValidationError) as e:
            logger.error(f"Gemini solution generation failed for {request.model_id}: {e}")
            return SolutionFailure(error=f"Failed to generate solution: {e}")

        return SolutionSuccess(data=solution)


def compare_solutions(problem_id: str, solutions: List[Solution], catalog: List[MentalModel]) -> ModelComparison:
    """Side-by-side metrics for the generated solutions."""
    complexity_by_id = {m.id: m.complexity_score for m in catalog}
    names_by_id = {m.id: m.name for m in catalog}

    compared = []
    for solution in solutions:
        variant = solution.solution_variants[0]
        complexity = complexity_by_id.get(solution.model_id, 5)
        compared.append(ComparedModel(
            model_id=solution.model_id,
            model_name=names_by_id.get(solution.model_id, solution.model_id.replace("_", " ").title()),
            solution_summary=variant.description,
            metrics=ComparisonMetrics(
                feasibility=variant.feasibility_score,
                innovation=variant.innovation_score,
                complexity=complexity,
                time_to_implement=max(1, min(10, len(variant.implementation_steps) + complexity // 3)),
                resource_requirements=max(1, min(10, 11 - variant.feasibility_score)),
            ),
        ))

    if len(compared) > 1:
        best = max(compared, key=lambda c: c.metrics.feasibility + c.metrics.innovation)
        recommendation = (
            f"{best.model_name} offers the best balance of feasibility and innovation; "
            "consider combining insights from the other models."
        )
    elif compared:
        recommendation = f"Apply {compared[0].model_name} and revisit with a second model if results stall."
    else:
        recommendation = "No solutions to compare."

    return ModelComparison(
        problem_id=problem_id,
        models=compared,
        recommendation=recommendation,
        trade_offs=[
            "Higher feasibility may mean lower innovation",
            "Faster implementation may require more resources",
        ],
    )
