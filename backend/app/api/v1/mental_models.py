"""
Mental Model Catalog API Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List
import logging

from app.database import get_db
from app.schemas import MentalModel, ModelExplanation
from app.services.catalog import explain_model, find_model, load_catalog
from app.services.model_filter import ALL, filter_models

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/models", response_model=List[MentalModel])
async def list_models(
    query: str = "",
    category: str = ALL,
    complexity: str = ALL,
    db: Session = Depends(get_db)
):
    """
    List catalog models, optionally filtered by text, category and complexity bucket.
    """
    catalog = load_catalog(db)
    try:
        return filter_models(catalog, query=query, category=category, complexity=complexity)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/models/{model_id}", response_model=MentalModel)
async def get_model(model_id: str, db: Session = Depends(get_db)):
    model = find_model(load_catalog(db), model_id)
    if model is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Model {model_id} not found")
    return model


@router.get("/models/{model_id}/explanation", response_model=ModelExplanation)
async def get_model_explanation(
    model_id: str,
    detail_level: str = Query("detailed", description="brief, detailed or comprehensive"),
    db: Session = Depends(get_db)
):
    try:
        explanation = explain_model(load_catalog(db), model_id, detail_level)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if explanation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Model {model_id} not found")
    return explanation
