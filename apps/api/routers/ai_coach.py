"""
AI Coach API Router

Weekly coaching feedback, generated on request and stored per week.
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.auth import get_settings
from core.config import Settings
from core.database import get_db
from core.exceptions import NotFoundError
from models import AIAnalysis
from schemas import AIAnalysisResponse, AIAnalyzeRequest, AIAnalyzeResponse
from services.ai_coach import AICoach
from services.plan_queries import get_week

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI Coach"])


def get_ai_coach(config: Settings = Depends(get_settings)) -> AICoach:
    return AICoach.from_settings(config)


@router.post("/analyze", response_model=AIAnalyzeResponse)
def analyze_week(
    request: AIAnalyzeRequest,
    db: Session = Depends(get_db),
    coach: AICoach = Depends(get_ai_coach),
):
    """Ask the coach about one week; the answer is stored and returned."""
    try:
        analysis = coach.analyze_week(db, request.week_id, request.analysis_type)
    except NotFoundError:
        return JSONResponse(status_code=404, content={"error": "Week not found"})
    except Exception as e:
        logger.error(f"AI analysis failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "AI analysis failed", "details": str(e)})

    return AIAnalyzeResponse(analysis=analysis.response, model=analysis.ai_model)


@router.get("/analyses/{week_id}", response_model=List[AIAnalysisResponse])
def list_week_analyses(week_id: UUID, db: Session = Depends(get_db)):
    """Stored analyses for a week, newest first."""
    get_week(db, week_id)
    return (
        db.query(AIAnalysis)
        .filter(AIAnalysis.week_id == week_id)
        .order_by(AIAnalysis.created_at.desc())
        .all()
    )
