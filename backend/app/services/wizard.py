"""
Problem Wizard
Four-stage flow: input -> analysis -> recommendations -> results.

Every operation loads the session from the store, applies one transition and
saves it back. While an analysis or solution run is pending, further
submissions are rejected. A reset during a pending run bumps ``run_id`` so the
late completion is discarded.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Protocol

from app.config import settings
from app.schemas import (
    AnalysisFailure,
    AnalysisResult,
    ComplexityLevel,
    MentalModel,
    ProblemInput,
    ProblemSubmission,
    Solution,
    SolutionFailure,
    SolutionRequest,
    SolutionResult,
    StructuredData,
    WizardSession,
    WizardStage,
)
from app.services.catalog import find_model
from app.services.problem_analyzer import core_issue_excerpt, resolve_domain
from app.services.session_store import SessionStore
from app.services.solution_generator import compare_solutions

logger = logging.getLogger(__name__)


class WizardError(Exception):
    """Base class for wizard errors."""


class WizardValidationError(WizardError):
    """User input rejected; the session is left unchanged."""


class RequestLimitError(WizardValidationError):
    """The session has used up its request allowance."""


class WizardBusyError(WizardError):
    """An analysis or solution run is already in flight."""


class InvalidTransitionError(WizardError):
    """The requested action is not allowed in the current stage."""


class SessionNotFoundError(WizardError):
    pass


class ProblemAnalyzer(Protocol):
    async def analyze(self, request: ProblemInput) -> AnalysisResult: ...


class SolutionGenerator(Protocol):
    async def generate(self, request: SolutionRequest) -> SolutionResult: ...


class ProblemWizard:
    def __init__(
        self,
        store: SessionStore,
        analyzer: ProblemAnalyzer,
        generator: SolutionGenerator,
        catalog: List[MentalModel],
    ):
        self.store = store
        self.analyzer = analyzer
        self.generator = generator
        self.catalog = catalog

    # --- session lifecycle ---

    def start(self, is_guest: bool = True, max_requests: Optional[int] = None) -> WizardSession:
        """Create a new session in the input stage."""
        if max_requests is None and is_guest:
            max_requests = settings.GUEST_REQUEST_LIMIT
        session = WizardSession(
            is_guest=is_guest,
            max_requests=max_requests,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.SESSION_TTL_HOURS),
        )
        self.store.save(session)
        logger.info(f"Started wizard session {session.id}")
        return session

    def get(self, session_id: str) -> WizardSession:
        session = self.store.load(session_id)
        if session is None:
            raise SessionNotFoundError(f"Wizard session {session_id} not found")
        if session.expires_at is not None and session.expires_at < datetime.now(timezone.utc):
            raise SessionNotFoundError(f"Wizard session {session_id} has expired")
        return session

    def reset(self, session_id: str) -> WizardSession:
        """Return to input from any stage and drop everything derived."""
        session = self.get(session_id)
        session.stage = WizardStage.INPUT
        session.pending = False
        session.run_id += 1
        session.submission = None
        session.recommendations = []
        session.selected_model_ids = []
        session.solutions = []
        session.comparison = None
        session.error = None
        self.store.save(session)
        logger.info(f"Reset wizard session {session_id}")
        return session

    # --- input -> analysis -> recommendations ---

    async def submit_problem(self, session_id: str, request: ProblemInput) -> WizardSession:
        """
        Validate the problem, run analysis and move to recommendations.

        On analysis failure the session goes back to input with ``error`` set.

        Raises:
            WizardBusyError: a run is already pending
            InvalidTransitionError: session is not in the input stage
            WizardValidationError: empty problem text
            RequestLimitError: request allowance used up
        """
        session = self.get(session_id)
        self._ensure_idle(session)
        if session.stage != WizardStage.INPUT:
            raise InvalidTransitionError(
                f"Cannot submit a problem from stage '{session.stage.value}'; reset first"
            )
        if not request.problem_text or not request.problem_text.strip():
            raise WizardValidationError("Please describe your problem")
        if session.max_requests is not None and session.request_count >= session.max_requests:
            raise RequestLimitError("Guest request limit reached. Please register for unlimited access.")

        submission = ProblemSubmission(
            problem_text=request.problem_text.strip(),
            domain=resolve_domain(request.domain, request.problem_text),
            urgency=request.urgency,
            stakeholders=request.stakeholders,
            context={**request.context, "user_level": request.user_level.value if request.user_level else None},
            structured_data=StructuredData(core_issue=core_issue_excerpt(request.problem_text)),
        )
        session.submission = submission
        session.stage = WizardStage.ANALYSIS
        session.pending = True
        session.error = None
        run_id = session.run_id
        self.store.save(session)

        try:
            result = await self.analyzer.analyze(request)
        except Exception as e:
            logger.error(f"Analysis raised for session {session_id}: {e}", exc_info=True)
            result = AnalysisFailure(error=str(e) or "Analysis failed")
        except BaseException:
            self._abandon_run(session_id, run_id, WizardStage.INPUT)
            raise

        session = self.get(session_id)
        if session.run_id != run_id:
            logger.info(f"Discarding stale analysis result for session {session_id}")
            return session

        session.pending = False
        if isinstance(result, AnalysisFailure) or not result.data.recommendations:
            message = result.error if isinstance(result, AnalysisFailure) else "No models could be recommended"
            logger.warning(f"Analysis failed for session {session_id}: {message}")
            session.stage = WizardStage.INPUT
            session.submission = None
            session.error = message
            self.store.save(session)
            return session

        session.submission = submission.model_copy(update={
            "domain": result.data.domain,
            "structured_data": result.data.structured_data,
        })
        session.recommendations = result.data.recommendations
        session.selected_model_ids = []
        session.request_count += 1
        session.stage = WizardStage.RECOMMENDATIONS
        self.store.save(session)
        logger.info(f"Session {session_id} has {len(session.recommendations)} recommendations")
        return session

    # --- recommendations -> results ---

    def select_models(self, session_id: str, model_ids: List[str]) -> WizardSession:
        session = self.get(session_id)
        self._ensure_idle(session)
        if session.stage != WizardStage.RECOMMENDATIONS:
            raise InvalidTransitionError(f"Cannot select models from stage '{session.stage.value}'")
        session.selected_model_ids = self._validate_model_ids(session, model_ids)
        self.store.save(session)
        return session

    async def generate_solutions(
        self,
        session_id: str,
        model_ids: Optional[List[str]] = None,
        complexity_preference: ComplexityLevel = ComplexityLevel.INTERMEDIATE,
    ) -> WizardSession:
        """
        Generate one solution per selected model and move to results.

        Any generator failure reverts to recommendations and keeps no partial
        solutions.

        Raises:
            WizardBusyError: a run is already pending
            InvalidTransitionError: session is not in the recommendations stage
            WizardValidationError: no models selected, or an id that is unknown or was not recommended
        """
        session = self.get(session_id)
        self._ensure_idle(session)
        if session.stage != WizardStage.RECOMMENDATIONS:
            raise InvalidTransitionError(f"Cannot generate solutions from stage '{session.stage.value}'")

        chosen = model_ids if model_ids is not None else session.selected_model_ids
        if not chosen:
            raise WizardValidationError("Select at least one model")
        chosen = self._validate_model_ids(session, chosen)

        submission = session.submission
        session.selected_model_ids = chosen
        session.stage = WizardStage.RESULTS
        session.pending = True
        session.error = None
        run_id = session.run_id
        self.store.save(session)

        solutions: List[Solution] = []
        failure: Optional[str] = None
        for model_id in chosen:
            request = SolutionRequest(
                submission=submission,
                model_id=model_id,
                model=find_model(self.catalog, model_id),
                complexity_preference=complexity_preference,
            )
            try:
                result = await self.generator.generate(request)
            except Exception as e:
                logger.error(f"Solution generation raised for {model_id}: {e}", exc_info=True)
                result = SolutionFailure(error=str(e) or "Solution generation failed")
            except BaseException:
                self._abandon_run(session_id, run_id, WizardStage.RECOMMENDATIONS)
                raise
            if isinstance(result, SolutionFailure):
                failure = result.error
                break
            solutions.append(result.data)

        session = self.get(session_id)
        if session.run_id != run_id:
            logger.info(f"Discarding stale solutions for session {session_id}")
            return session

        session.pending = False
        if failure is not None:
            logger.warning(f"Solution generation failed for session {session_id}: {failure}")
            session.stage = WizardStage.RECOMMENDATIONS
            session.solutions = []
            session.comparison = None
            session.error = failure
            self.store.save(session)
            return session

        session.solutions = solutions
        session.comparison = compare_solutions(submission.id, solutions, self.catalog)
        self.store.save(session)
        logger.info(f"Session {session_id} generated {len(solutions)} solutions")
        return session

    # --- helpers ---

    def _ensure_idle(self, session: WizardSession) -> None:
        if session.pending:
            raise WizardBusyError("A request is already in progress for this session")

    def _validate_model_ids(self, session: WizardSession, model_ids: List[str]) -> List[str]:
        """Deduplicate and require every id to be a recommended catalog model."""
        unique = list(dict.fromkeys(model_ids))
        unknown = [model_id for model_id in unique if find_model(self.catalog, model_id) is None]
        if unknown:
            raise WizardValidationError(f"Unknown model ids: {', '.join(unknown)}")

        recommended = {r.model_id for r in session.recommendations}
        not_recommended = [model_id for model_id in unique if model_id not in recommended]
        if not_recommended:
            raise WizardValidationError(f"Models were not recommended for this problem: {', '.join(not_recommended)}")
        return unique

    def _abandon_run(self, session_id: str, run_id: int, stage: WizardStage) -> None:
        """
        Release a run that was interrupted (cancelled task, shutdown) before it
        completed, so the session is not left pending.
        """
        session = self.store.load(session_id)
        if session is None or session.run_id != run_id:
            return
        session.stage = stage
        session.pending = False
        session.error = "The request was interrupted. Please try again."
        if stage == WizardStage.INPUT:
            session.submission = None
        session.solutions = []
        session.comparison = None
        self.store.save(session)
        logger.warning(f"Interrupted run {run_id} for session {session_id}; back to '{stage.value}'")
