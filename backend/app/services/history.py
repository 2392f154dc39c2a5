"""
Results history and ratings.
"""
import logging
from typing import List

from sqlalchemy.orm import Session, selectinload

from app import models
from app.schemas import (
    HistoryEntry,
    PerformanceMetrics,
    ProblemSubmission,
    RatingResponse,
    Solution,
    WizardSession,
)

logger = logging.getLogger(__name__)


class NotFoundError(Exception):
    pass


def record_results(db: Session, session: WizardSession) -> None:
    """Persist the session's submission and solutions after a successful run."""
    if session.submission is None or not session.solutions:
        return

    submission = session.submission
    problem = db.get(models.ProblemRecord, submission.id)
    if problem is None:
        problem = models.ProblemRecord(
            id=submission.id,
            session_id=session.id,
            problem_text=submission.problem_text,
            domain=submission.domain,
            urgency=submission.urgency.value,
            stakeholders=submission.stakeholders,
            context=submission.context,
            structured_data=submission.structured_data.model_dump(mode="json"),
        )
        db.add(problem)

    for solution in session.solutions:
        dumped = solution.model_dump(mode="json")
        db.add(models.SolutionRecord(
            id=solution.id,
            problem_id=submission.id,
            model_id=solution.model_id,
            solution_variants=dumped["solution_variants"],
            bias_analysis=dumped["bias_analysis"],
            stakeholder_views=dumped["stakeholder_views"],
            complexity_level=solution.complexity_level.value,
            export_formats=dumped["export_formats"],
        ))

    db.commit()
    logger.info(f"Recorded {len(session.solutions)} solutions for problem {submission.id}")


def rate_solution(db: Session, solution_id: str, rating: int) -> RatingResponse:
    """
    Store a 1-5 rating and fold it into the model's success rate.

    Raises:
        NotFoundError: unknown solution
        ValueError: rating outside 1-5
    """
    if not 1 <= rating <= 5:
        raise ValueError("Rating must be between 1 and 5")

    solution = db.get(models.SolutionRecord, solution_id)
    if solution is None:
        raise NotFoundError(f"Solution {solution_id} not found")
    solution.user_rating = rating

    metrics = PerformanceMetrics()
    model = db.get(models.MentalModel, solution.model_id)
    if model is not None:
        metrics = PerformanceMetrics.model_validate(model.performance_metrics or {})
        usage = metrics.usage_count + 1
        rating_pct = rating / 5 * 100
        metrics.success_rate = round((metrics.success_rate * metrics.usage_count + rating_pct) / usage, 2)
        metrics.usage_count = usage
        # Reassign so the JSON column is flagged dirty
        model.performance_metrics = metrics.model_dump()
    else:
        logger.warning(f"Rated solution {solution_id} references unknown model {solution.model_id}")

    db.commit()
    return RatingResponse(
        solution_id=solution_id,
        model_id=solution.model_id,
        user_rating=rating,
        performance_metrics=metrics,
    )


def recent_history(db: Session, limit: int = 10) -> List[HistoryEntry]:
    problems = (
        db.query(models.ProblemRecord)
        .options(selectinload(models.ProblemRecord.solutions))
        .order_by(models.ProblemRecord.created_at.desc())
        .limit(limit)
        .all()
    )
    return [
        HistoryEntry(
            problem=ProblemSubmission.model_validate(problem),
            solutions=[Solution.model_validate(s) for s in problem.solutions],
        )
        for problem in problems
    ]
