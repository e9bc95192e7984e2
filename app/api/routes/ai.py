"""
AI advisor API endpoints (Gemini)
"""

import logging

from fastapi import APIRouter, HTTPException, status

from app.models.catalog import TRAFFIC_INFRACTIONS, TrafficInfraction
from app.schemas.ai import (
    SuggestionRequest,
    SuggestionResponse,
    TrafficAdviceResponse,
    TrafficQueryRequest,
)
from app.services import advisor_service
from app.services.firebase_service import firebase_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ai", tags=["AI Advisor"])


@router.post("/advice", response_model=TrafficAdviceResponse)
async def traffic_advice(request: TrafficQueryRequest):
    """
    Answer a question about Mexican traffic law

    - **userQuery**: The user's situation or question, in Spanish
    """
    try:
        advice = await advisor_service.answer_traffic_query(request.user_query)
    except RuntimeError as e:
        logger.error("Advice generation failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="No fue posible obtener una respuesta del asistente.",
        )
    return TrafficAdviceResponse(advice=advice)


@router.post("/suggestions", response_model=SuggestionResponse)
async def article_suggestions(request: SuggestionRequest):
    """
    Suggest article titles relevant to a traffic infraction

    - **trafficInfraction**: Infraction id (see `/infractions`) or free text
    """
    try:
        articles = await firebase_service.list_published_articles()
    except Exception as e:
        # Suggestions still work without the catalog as context
        logger.warning("Could not load articles for suggestions: %s", e)
        articles = []

    try:
        suggestions = await advisor_service.suggest_relevant_articles(
            request.traffic_infraction, articles
        )
    except RuntimeError as e:
        logger.error("Suggestion generation failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="No fue posible obtener sugerencias del asistente.",
        )
    return SuggestionResponse(article_suggestions=suggestions)


@router.get("/infractions", response_model=list[TrafficInfraction])
async def list_infractions():
    return TRAFFIC_INFRACTIONS
