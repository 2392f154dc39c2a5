"""
Model Recommendation Generator
Picks mental models for a classified problem from fixed lookup tables.
"""
import logging
import random
from typing import List, Dict, Optional

from app.schemas import MentalModel, ModelSelection, Urgency

logger = logging.getLogger(__name__)

DOMAIN_MODELS: Dict[str, List[str]] = {
    "business": ["first_principles", "opportunity_cost", "nash_equilibrium"],
    "technology": ["systems_thinking", "first_principles", "second_order_thinking"],
    "policy": ["systems_thinking", "nash_equilibrium", "second_order_thinking"],
    "personal": ["opportunity_cost", "second_order_thinking", "first_principles"],
    "science": ["first_principles", "systems_thinking", "second_order_thinking"],
    "geopolitics": ["nash_equilibrium", "second_order_thinking", "systems_thinking"],
}

DEFAULT_MODELS = ["first_principles", "systems_thinking"]

# Favored when the problem is urgent
SIMPLICITY_MODEL_ID = "opportunity_cost"
URGENT_LEVELS = (Urgency.HIGH, Urgency.CRITICAL)

MAX_RECOMMENDATIONS = 5
BASE_SCORE = 92
SCORE_STEP = 8
# Must stay below SCORE_STEP / 2 so scores remain strictly decreasing
SCORE_JITTER = 3

# Problem keywords that pull a model earlier in the list
KEYWORD_SIGNALS: Dict[str, List[str]] = {
    "nash_equilibrium": ["compet", "rival", "opponent", "negotiat"],
    "systems_thinking": ["complex", "system", "intercon", "feedback"],
    "opportunity_cost": ["tradeoff", "trade-off", "choice", "decision", "budget"],
    "second_order_thinking": ["consequence", "long-term", "ripple", "side effect"],
}

MODEL_NAMES: Dict[str, str] = {
    "first_principles": "First Principles",
    "opportunity_cost": "Opportunity Cost",
    "nash_equilibrium": "Nash Equilibrium",
    "systems_thinking": "Systems Thinking",
    "second_order_thinking": "Second-Order Thinking",
}

RATIONALES: Dict[str, str] = {
    "first_principles": (
        "First Principles thinking is highly relevant to your {domain} problem as it allows you to break "
        "down the situation into its fundamental components. By questioning assumptions and rebuilding "
        "from essential truths, you can find solutions hidden by conventional thinking."
    ),
    "opportunity_cost": (
        "{model} helps quantify what you give up with each potential choice. In this {domain} context, "
        "understanding the true cost of each option leads to better resource allocation."
    ),
    "nash_equilibrium": (
        "Your problem involves parties with competing interests, making {model} a strong framework. It "
        "identifies stable strategies where no party gains by changing its approach alone."
    ),
    "systems_thinking": (
        "The interconnected nature of your {domain} challenge makes {model} applicable. It maps "
        "relationships and feedback loops so you can see how changes propagate."
    ),
    "second_order_thinking": (
        "Your problem needs a look beyond immediate effects. {model} anticipates how the situation "
        "adapts to change and surfaces unintended consequences early."
    ),
}

GENERIC_RATIONALE = (
    "This mental model provides a structured approach to solving your {domain} problem by offering "
    "a framework that matches the characteristics of your situation."
)

APPLICATION_STEPS: Dict[str, List[str]] = {
    "first_principles": [
        "Identify the problem and clearly articulate what you're trying to solve",
        "Break down the problem into its fundamental truths or components",
        "Question all assumptions and conventional wisdom",
        "Rebuild your solution from the ground up using only validated elements",
        "Test your solution against the original problem constraints",
    ],
    "opportunity_cost": [
        "List all available options or alternatives",
        "Identify the benefits and value of each option",
        "Determine the next-best alternative to each choice",
        "Calculate what you would be giving up by making each choice",
        "Make decisions based on the true cost, including what's foregone",
    ],
    "nash_equilibrium": [
        "Identify all key stakeholders or players",
        "Map out possible strategies for each player",
        "Determine payoffs for each combination of strategies",
        "Find strategy combinations where no player can improve by changing only their strategy",
        "Analyze the stability and optimality of the equilibrium",
    ],
    "systems_thinking": [
        "Define the system boundaries and key components",
        "Map relationships and connections between components",
        "Identify feedback loops (reinforcing and balancing)",
        "Analyze how changes propagate through the system",
        "Look for leverage points where small changes create large effects",
    ],
    "second_order_thinking": [
        "Identify the immediate consequences of actions",
        "For each consequence, determine its subsequent effects",
        "Map cascading impacts across different timeframes",
        "Consider how systems and people will adapt to the changes",
        "Identify potential unintended consequences and prepare mitigations",
    ],
}

GENERIC_STEPS = [
    "Define the problem clearly",
    "Apply the mental model framework to analyze the situation",
    "Generate potential solutions based on the framework",
    "Evaluate solutions against objectives and constraints",
    "Implement and monitor the chosen solution",
]


def _display_name(model_id: str, catalog: Optional[List[MentalModel]]) -> str:
    for model in catalog or []:
        if model.id == model_id:
            return model.name
    return MODEL_NAMES.get(model_id, model_id.replace("_", " ").title())


def _category(model_id: str, catalog: Optional[List[MentalModel]]):
    for model in catalog or []:
        if model.id == model_id:
            return model.category
    return None


def rationale_for(model_id: str, domain: str, model_name: str) -> str:
    template = RATIONALES.get(model_id, GENERIC_RATIONALE)
    return template.format(domain=domain, model=model_name)


def application_steps_for(model_id: str) -> List[str]:
    return list(APPLICATION_STEPS.get(model_id, GENERIC_STEPS))


class Recommender:
    """
    Deterministic recommendation tables with a bounded, seedable score jitter.
    """

    def __init__(self, rng: Optional[random.Random] = None, catalog: Optional[List[MentalModel]] = None):
        self.rng = rng or random.Random()
        self.catalog = catalog

    def candidate_ids(self, domain: str, urgency: Urgency, problem_text: str = "") -> List[str]:
        """Ordered model ids before scoring."""
        candidates = list(DOMAIN_MODELS.get(domain.lower(), DEFAULT_MODELS))

        text = problem_text.lower()
        signals = {
            model_id: any(keyword in text for keyword in keywords)
            for model_id, keywords in KEYWORD_SIGNALS.items()
        }
        # Stable sort: matched models move ahead, table order kept otherwise
        candidates.sort(key=lambda model_id: 0 if signals.get(model_id) else 1)

        if urgency in URGENT_LEVELS:
            if SIMPLICITY_MODEL_ID in candidates:
                candidates.remove(SIMPLICITY_MODEL_ID)
            candidates.insert(0, SIMPLICITY_MODEL_ID)

        return candidates[:MAX_RECOMMENDATIONS]

    def recommend(self, domain: str, urgency: Urgency, problem_text: str = "") -> List[ModelSelection]:
        """
        Build the ordered recommendation list for a classified problem.

        Scores decrease with list position; jitter never reorders them.
        """
        urgency = Urgency(urgency)
        selections = []
        for position, model_id in enumerate(self.candidate_ids(domain, urgency, problem_text)):
            jitter = self.rng.randint(-SCORE_JITTER, SCORE_JITTER)
            score = max(0, min(100, BASE_SCORE - position * SCORE_STEP + jitter))
            name = _display_name(model_id, self.catalog)
            selections.append(ModelSelection(
                model_id=model_id,
                model_name=name,
                category=_category(model_id, self.catalog),
                score=score,
                rationale=rationale_for(model_id, domain, name),
                application_steps=application_steps_for(model_id),
                contextual_fitness=round(score / 10, 1),
                historical_success=round(self.rng.uniform(6.5, 9.0), 1),
                novelty_factor=round(self.rng.uniform(5.0, 9.0), 1),
            ))

        logger.info(f"Recommended {len(selections)} models for domain '{domain}' ({urgency.value})")
        return selections
