"""
Lifestyle log and goals.
"""
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import NotFoundError
from models import Goal, LifestyleLog
from schemas import GoalCreate, GoalResponse, GoalUpdate, LifestyleLogCreate, LifestyleLogResponse

router = APIRouter(prefix="/v1", tags=["lifestyle"])


@router.post("/lifestyle", response_model=LifestyleLogResponse, status_code=status.HTTP_201_CREATED)
def create_lifestyle_log(payload: LifestyleLogCreate, db: Session = Depends(get_db)):
    entry = LifestyleLog(**payload.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@router.get("/lifestyle", response_model=List[LifestyleLogResponse])
def list_lifestyle_logs(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    query = db.query(LifestyleLog)
    if start_date:
        query = query.filter(LifestyleLog.date >= start_date)
    if end_date:
        query = query.filter(LifestyleLog.date <= end_date)
    return query.order_by(LifestyleLog.date.desc()).all()


@router.post("/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
def create_goal(payload: GoalCreate, db: Session = Depends(get_db)):
    goal = Goal(**payload.model_dump())
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


@router.get("/goals", response_model=List[GoalResponse])
def list_goals(db: Session = Depends(get_db)):
    return db.query(Goal).order_by(Goal.target_date.asc(), Goal.created_at.asc()).all()


@router.patch("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(goal_id: UUID, payload: GoalUpdate, db: Session = Depends(get_db)):
    goal = db.get(Goal, goal_id)
    if goal is None:
        raise NotFoundError("Goal", str(goal_id))

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(goal, field, value)
    # Stamp completion once, when the flag flips on
    if changes.get("is_completed") and goal.completed_at is None:
        goal.completed_at = datetime.now(timezone.utc)
    elif changes.get("is_completed") is False:
        goal.completed_at = None

    db.commit()
    db.refresh(goal)
    return goal
