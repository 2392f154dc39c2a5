"""
Shared FastAPI dependencies
"""
import random
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.services.catalog import load_catalog
from app.services.llm_client import LLMClient
from app.services.problem_analyzer import GeminiProblemAnalyzer, LocalProblemAnalyzer
from app.services.recommender import Recommender
from app.services.session_store import DatabaseSessionStore
from app.services.solution_generator import GeminiSolutionGenerator, MockSolutionGenerator
from app.services.wizard import ProblemWizard


def get_llm_client() -> LLMClient:
    return LLMClient()


def get_rng() -> Optional[random.Random]:
    """A seeded generator when MOCK_SEED is set, otherwise None (system entropy)."""
    if settings.MOCK_SEED is None:
        return None
    return random.Random(settings.MOCK_SEED)


def get_wizard(
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
    rng: Optional[random.Random] = Depends(get_rng),
) -> ProblemWizard:
    """Wire a wizard for the configured LLM provider against the request's DB session."""
    catalog = load_catalog(db)
    recommender = Recommender(rng=rng, catalog=catalog)

    if settings.LLM_PROVIDER == "gemini" and llm.available:
        analyzer = GeminiProblemAnalyzer(llm, recommender)
        generator = GeminiSolutionGenerator(llm)
    else:
        analyzer = LocalProblemAnalyzer(recommender)
        generator = MockSolutionGenerator(rng)

    return ProblemWizard(DatabaseSessionStore(db), analyzer, generator, catalog)
