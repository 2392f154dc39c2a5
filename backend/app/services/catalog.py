"""
Mental Model Catalog Service
Loads the model catalog from the database, with a fixed fallback list.
"""
import logging
from typing import List, Dict, Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import models
from app.schemas import MentalModel, ModelExplanation

logger = logging.getLogger(__name__)


FALLBACK_MODELS: List[Dict[str, Any]] = [
    {
        "id": "first_principles",
        "name": "First Principles",
        "category": "analytical",
        "complexity_score": 7,
        "application_scenarios": ["problem decomposition", "innovation", "strategic planning"],
        "prompt_template": "Analyze {problem} by breaking it down to its fundamental truths and reasoning up from there.",
        "performance_metrics": {"accuracy": 85, "usage_count": 1243, "success_rate": 78, "relevance_score": 82},
        "description": "A method of thinking that involves breaking down complex problems into basic elements and then reassembling them from the ground up.",
        "limitations": ["Time-consuming", "Requires deep domain knowledge", "May miss emergent properties"],
        "case_study": "SpaceX questioned the assumed cost of rockets by pricing the raw materials, which led to building components in-house.",
    },
    {
        "id": "nash_equilibrium",
        "name": "Nash Equilibrium",
        "category": "strategic",
        "complexity_score": 8,
        "application_scenarios": ["conflict resolution", "negotiation", "competitive strategy"],
        "prompt_template": "Identify the key actors in {problem}, their possible strategies, and payoffs.",
        "performance_metrics": {"accuracy": 79, "usage_count": 876, "success_rate": 72, "relevance_score": 85},
        "description": "A concept in game theory where the optimal outcome occurs when there is no incentive for players to deviate from their initial strategy.",
        "limitations": ["Assumes rational actors", "Multiple equilibria may exist", "Difficult to calculate in complex scenarios"],
        "case_study": None,
    },
    {
        "id": "systems_thinking",
        "name": "Systems Thinking",
        "category": "systems",
        "complexity_score": 9,
        "application_scenarios": ["complex problem solving", "organizational design", "policy development"],
        "prompt_template": "Analyze {problem} as an interconnected system. Map the key components, relationships, and feedback loops.",
        "performance_metrics": {"accuracy": 82, "usage_count": 1056, "success_rate": 75, "relevance_score": 88},
        "description": "An approach to understanding how different components within a system influence one another within a complete entity.",
        "limitations": ["Can become overwhelmingly complex", "Difficult to quantify relationships", "May lack predictive precision"],
        "case_study": "Toyota Production System uses systems thinking to optimize manufacturing processes through continuous improvement.",
    },
    {
        "id": "opportunity_cost",
        "name": "Opportunity Cost",
        "category": "analytical",
        "complexity_score": 5,
        "application_scenarios": ["resource allocation", "decision making", "investment analysis"],
        "prompt_template": "For {problem}, identify all available options and what must be given up to obtain a particular choice.",
        "performance_metrics": {"accuracy": 88, "usage_count": 1532, "success_rate": 82, "relevance_score": 79},
        "description": "The loss of potential gain from other alternatives when one alternative is chosen.",
        "limitations": ["Difficult to quantify intangible costs", "Future value uncertainty", "Psychological biases in assessment"],
        "case_study": None,
    },
    {
        "id": "second_order_thinking",
        "name": "Second-Order Thinking",
        "category": "cognitive",
        "complexity_score": 6,
        "application_scenarios": ["strategic planning", "risk assessment", "policy analysis"],
        "prompt_template": "For {problem}, go beyond immediate consequences and consider the effects of those effects.",
        "performance_metrics": {"accuracy": 81, "usage_count": 1124, "success_rate": 76, "relevance_score": 84},
        "description": "Considering not just the immediate results of actions but the subsequent effects of those results.",
        "limitations": ["Cognitive complexity", "Diminishing accuracy with time horizon", "Analysis paralysis risk"],
        "case_study": None,
    },
]

# Seeded into the database on first start, on top of the fallback list
EXTRA_SEED_MODELS: List[Dict[str, Any]] = [
    {
        "id": "design_thinking",
        "name": "Design Thinking",
        "category": "creative",
        "complexity_score": 5,
        "application_scenarios": ["innovation", "user experience", "product development"],
        "prompt_template": "Apply human-centered design to {problem}. Empathize with users, define problems, ideate solutions, prototype, and test.",
        "performance_metrics": {"accuracy": 80, "usage_count": 200, "success_rate": 82, "relevance_score": 85},
        "description": "A human-centered approach to innovation that integrates needs, technology, and business requirements.",
        "limitations": ["May lack analytical rigor", "Time-consuming process", "Requires diverse team"],
        "case_study": "IDEO used design thinking to redesign the shopping cart, focusing on user needs and constraints.",
    },
    {
        "id": "pareto_principle",
        "name": "Pareto Principle (80/20 Rule)",
        "category": "analytical",
        "complexity_score": 3,
        "application_scenarios": ["prioritization", "resource allocation", "efficiency"],
        "prompt_template": "Apply the 80/20 rule to {problem}. Identify the 20% of causes that create 80% of effects.",
        "performance_metrics": {"accuracy": 83, "usage_count": 310, "success_rate": 80, "relevance_score": 76},
        "description": "The principle that roughly 80% of effects come from 20% of causes.",
        "limitations": ["Oversimplification", "Not always 80/20 split", "May ignore important minorities"],
        "case_study": "Microsoft found that fixing the top 20% of reported bugs eliminated 80% of crashes and errors.",
    },
    {
        "id": "swot_analysis",
        "name": "SWOT Analysis",
        "category": "strategic",
        "complexity_score": 4,
        "application_scenarios": ["strategic planning", "business analysis", "decision making"],
        "prompt_template": "Analyze {problem} through Strengths, Weaknesses, Opportunities, and Threats framework.",
        "performance_metrics": {"accuracy": 76, "usage_count": 450, "success_rate": 74, "relevance_score": 72},
        "description": "A strategic planning technique to evaluate internal and external factors affecting a situation.",
        "limitations": ["Static snapshot", "Subjective assessments", "No prioritization guidance"],
        "case_study": "Starbucks used SWOT analysis to identify expansion opportunities in emerging markets.",
    },
]

SEED_MODELS: List[Dict[str, Any]] = FALLBACK_MODELS + EXTRA_SEED_MODELS

DETAIL_LEVEL_SENTENCES = {"brief": 1, "detailed": 2, "comprehensive": None}


def fallback_catalog() -> List[MentalModel]:
    return [MentalModel.model_validate(entry) for entry in FALLBACK_MODELS]


def load_catalog(db: Session) -> List[MentalModel]:
    """
    Load the catalog ordered by name.

    Falls back to the fixed five-model list when the query fails or the
    table is empty.
    """
    try:
        records = db.query(models.MentalModel).order_by(models.MentalModel.name.asc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load mental models, using fallback catalog: {e}")
        return fallback_catalog()

    if not records:
        logger.warning("Mental model table is empty, using fallback catalog")
        return fallback_catalog()

    return [MentalModel.model_validate(record) for record in records]


def seed_catalog(db: Session) -> int:
    """Insert any seed model that is not yet stored. Returns the number inserted."""
    existing = {row.id for row in db.query(models.MentalModel.id).all()}
    inserted = 0
    for entry in SEED_MODELS:
        if entry["id"] in existing:
            continue
        db.add(models.MentalModel(**entry))
        inserted += 1

    if inserted:
        db.commit()
        logger.info(f"Seeded {inserted} mental models")
    return inserted


def find_model(catalog: List[MentalModel], model_id: str) -> Optional[MentalModel]:
    for model in catalog:
        if model.id == model_id:
            return model
    return None


def explain_model(catalog: List[MentalModel], model_id: str, detail_level: str = "detailed") -> Optional[ModelExplanation]:
    """
    Build an explanation card for a model. Returns None for unknown ids.
    """
    if detail_level not in DETAIL_LEVEL_SENTENCES:
        raise ValueError(f"Unknown detail level: {detail_level}")

    model = find_model(catalog, model_id)
    if model is None:
        return None

    abstract = model.description
    max_sentences = DETAIL_LEVEL_SENTENCES[detail_level]
    if max_sentences is not None:
        sentences = [s.strip() for s in abstract.split(". ") if s.strip()]
        abstract = ". ".join(sentences[:max_sentences])
        if not abstract.endswith("."):
            abstract += "."

    related = [m.name for m in catalog if m.category == model.category and m.id != model.id]

    return ModelExplanation(
        model_id=model.id,
        abstract=abstract,
        case_study=model.case_study or "Case study not available",
        limitations=list(model.limitations),
        when_to_use=list(model.application_scenarios),
        related_models=related,
    )
