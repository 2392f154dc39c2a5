"""
Problem Wizard API Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.dependencies import get_wizard
from app.schemas import (
    GenerateSolutionsRequest,
    ProblemInput,
    SelectionRequest,
    WizardSession,
    WizardStage,
)
from app.services.exporter import export_result, session_report
from app.services.history import record_results
from app.services.wizard import (
    InvalidTransitionError,
    ProblemWizard,
    RequestLimitError,
    SessionNotFoundError,
    WizardBusyError,
    WizardError,
    WizardValidationError,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _http_error(exc: WizardError) -> HTTPException:
    """Map a wizard error onto its HTTP status."""
    if isinstance(exc, SessionNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, RequestLimitError):
        code = status.HTTP_429_TOO_MANY_REQUESTS
    elif isinstance(exc, WizardValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (WizardBusyError, InvalidTransitionError)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))


@router.post("/wizard", response_model=WizardSession, status_code=status.HTTP_201_CREATED)
async def start_wizard(wizard: ProblemWizard = Depends(get_wizard)):
    """Start a guest wizard session in the input stage."""
    return wizard.start(is_guest=True)


@router.get("/wizard/{session_id}", response_model=WizardSession)
async def get_wizard_session(session_id: str, wizard: ProblemWizard = Depends(get_wizard)):
    try:
        return wizard.get(session_id)
    except WizardError as e:
        raise _http_error(e)


@router.post("/wizard/{session_id}/problem", response_model=WizardSession)
async def submit_problem(
    session_id: str,
    problem: ProblemInput,
    wizard: ProblemWizard = Depends(get_wizard)
):
    """
    Submit the problem description and run analysis.

    A failed analysis returns 502; the session is back in the input stage.
    """
    try:
        session = await wizard.submit_problem(session_id, problem)
    except WizardError as e:
        raise _http_error(e)

    if session.stage == WizardStage.INPUT and session.error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.error)
    return session


@router.post("/wizard/{session_id}/selection", response_model=WizardSession)
async def select_models(
    session_id: str,
    selection: SelectionRequest,
    wizard: ProblemWizard = Depends(get_wizard)
):
    try:
        return wizard.select_models(session_id, selection.model_ids)
    except WizardError as e:
        raise _http_error(e)


@router.post("/wizard/{session_id}/solutions", response_model=WizardSession)
async def generate_solutions(
    session_id: str,
    request: GenerateSolutionsRequest,
    wizard: ProblemWizard = Depends(get_wizard),
    db: Session = Depends(get_db)
):
    """
    Generate one solution per selected model.

    A generator failure returns 502; the session is back in the recommendations stage.
    """
    try:
        session = await wizard.generate_solutions(
            session_id,
            model_ids=request.model_ids,
            complexity_preference=request.complexity_preference,
        )
    except WizardError as e:
        raise _http_error(e)

    if session.stage == WizardStage.RECOMMENDATIONS and session.error:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=session.error)

    if session.stage == WizardStage.RESULTS and session.solutions:
        try:
            record_results(db, session)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to record results for session {session_id}: {e}")
    return session


@router.post("/wizard/{session_id}/reset", response_model=WizardSession)
async def reset_wizard(session_id: str, wizard: ProblemWizard = Depends(get_wizard)):
    try:
        return wizard.reset(session_id)
    except WizardError as e:
        raise _http_error(e)


@router.get("/wizard/{session_id}/export")
async def export_wizard(
    session_id: str,
    format: str = "json",
    wizard: ProblemWizard = Depends(get_wizard)
):
    """Download the session's results as json, csv, text or pdf."""
    try:
        session = wizard.get(session_id)
    except WizardError as e:
        raise _http_error(e)

    try:
        export = export_result(session_report(session), format, report_type="wizard")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(
        content=export.content,
        media_type=export.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
