"""
Game Theory Tutor API Endpoints
Edge-function style proxy: always answers {success, data|error, timestamp}.
"""
from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_llm_client
from app.schemas import TutorialRequest
from app.services.auth import resolve_principal
from app.services.game_theory_tutor import GameTheoryTutor
from app.services.llm_client import LLMClient

router = APIRouter()
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.options("/functions/game-theory-tutor")
async def tutor_preflight():
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post("/functions/game-theory-tutor")
async def game_theory_tutor(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client)
):
    """
    Generate a game theory tutorial and record the user's progress.

    Any failure, authentication included, is reported as a 500 with the message.
    """
    try:
        user = resolve_principal(db, authorization)
        body = await request.json()
        tutorial_request = TutorialRequest.model_validate(body)

        tutor = GameTheoryTutor(llm)
        content = await tutor.generate_tutorial(tutorial_request)
        tutor.record_progress(db, user, tutorial_request)

        logger.info(f"Generated {tutorial_request.level.value} tutorial on '{tutorial_request.topic}' for {user.id}")
        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "data": content.model_dump(by_alias=True),
                "timestamp": _timestamp(),
            },
            headers=CORS_HEADERS,
        )
    except ValidationError as e:
        message = f"Invalid tutorial request: {e.error_count()} errors"
    except ValueError as e:
        # Malformed JSON body
        message = f"Invalid request body: {e}"
    except Exception as e:
        message = str(e)

    logger.error(f"Game theory tutor error: {message}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": message, "timestamp": _timestamp()},
        headers=CORS_HEADERS,
    )
