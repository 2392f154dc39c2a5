"""
Solution Ratings and History API Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.schemas import HistoryEntry, RatingRequest, RatingResponse
from app.services.history import NotFoundError, rate_solution, recent_history

router = APIRouter()


@router.post("/solutions/{solution_id}/rating", response_model=RatingResponse)
async def rate(solution_id: str, request: RatingRequest, db: Session = Depends(get_db)):
    try:
        return rate_solution(db, solution_id, request.rating)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/problems/history", response_model=List[HistoryEntry])
async def history(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    """Most recent problems with their generated solutions."""
    return recent_history(db, limit=limit)
