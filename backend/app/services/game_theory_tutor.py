import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import models
from app.config import settings
from app.schemas import TutorialContent, TutorialRequest
from .llm_client import LLMClient, LLMError

logger = logging.getLogger(__name__)


class TutorError(Exception):
    pass


class GameTheoryTutor:
    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()
        self.prompt_template = """
You are an expert Game Theory Tutor AI specialized in teaching strategic decision-making concepts to students.

Generate a comprehensive game theory tutorial based on:
- Level: {level}
- Topic: {topic}
- User Progress: {progress}

Provide a tutorial with:
1. Clear concept explanation appropriate for {level} level
2. Real geopolitical example demonstrating the concept
3. Interactive element (scenario, calculation, or game tree)
4. Assessment question with multiple choice options

Requirements:
- Tailor difficulty to {level} level
- Use concrete geopolitical examples (trade wars, diplomatic negotiations, military conflicts)
- Create engaging interactive elements that reinforce learning
- Assessment should test understanding, not memorization

Return ONLY valid JSON matching this exact structure:
{{
  "concept": "string - name of the game theory concept",
  "explanation": "string - detailed explanation appropriate for level",
  "geopoliticalExample": "string - real-world geopolitical scenario demonstrating concept",
  "interactiveElement": {{
    "type": "scenario" | "calculation" | "game_tree",
    "data": {{
      "scenario": "string - if type is scenario",
      "question": "string - interactive question",
      "options": ["array of options if applicable"],
      "matrix": "object - if type is calculation or game_tree"
    }}
  }},
  "assessmentQuestion": {{
    "question": "string - assessment question",
    "options": ["string array - 4 multiple choice options"],
    "correctAnswer": "number - index of correct answer (0-3)"
  }}
}}
"""

    def build_prompt(self, request: TutorialRequest) -> str:
        return self.prompt_template.format(
            level=request.level.value,
            topic=request.topic,
            progress=request.user_progress.model_dump_json(by_alias=True),
        )

    async def generate_tutorial(self, request: TutorialRequest) -> TutorialContent:
        """
        Ask Gemini for a tutorial and validate it against the tutorial schema.
        """
        try:
            parsed = await self.llm.get_structured_completion(
                self.build_prompt(request),
                temperature=settings.TUTOR_TEMPERATURE,
                top_k=settings.TUTOR_TOP_K,
                top_p=settings.TUTOR_TOP_P,
                max_output_tokens=settings.TUTOR_MAX_TOKENS,
            )
            return TutorialContent.model_validate(parsed)
        except LLMError as e:
            raise TutorError(str(e)) from e
        except ValidationError as e:
            raise TutorError(f"Tutorial did not match the expected schema: {e.error_count()} errors") from e

    def record_progress(self, db: Session, user: models.UserProfile, request: TutorialRequest) -> None:
        """
        Upsert the learning_progress row for (user, level_topic).

        Storage errors are logged and swallowed; the tutorial is still returned.
        """
        level = request.level.value
        module_id = f"{level}_{request.topic}"
        now = datetime.now(timezone.utc)
        performance_data = {
            "userProgress": request.user_progress.model_dump(by_alias=True),
            "tutorialGenerated": True,
            "timestamp": now.isoformat(),
        }
        try:
            progress = (
                db.query(models.LearningProgress)
                .filter(
                    models.LearningProgress.user_id == user.id,
                    models.LearningProgress.module_id == module_id,
                )
                .first()
            )
            if progress is None:
                progress = models.LearningProgress(user_id=user.id, module_id=module_id)
                db.add(progress)
            progress.module_name = f"{level.capitalize()} {request.topic}"
            progress.last_accessed = now
            progress.performance_data = performance_data
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error storing progress for {user.id}/{module_id}: {e}")
