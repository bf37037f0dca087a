"""
Activities API Router

Read access to synced Strava activities, plus deletion.
"""
from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import NotFoundError, ValidationError
from models import Activity
from schemas import ActivityResponse
from services.weekly_rollup import activities_in_range

router = APIRouter(prefix="/v1/activities", tags=["activities"])


@router.get("", response_model=List[ActivityResponse])
def list_activities(
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=500, description="Number of activities to return"),
    offset: int = Query(0, ge=0, description="Number of activities to skip"),
):
    """Newest first."""
    return (
        db.query(Activity)
        .order_by(Activity.start_time.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/range", response_model=List[ActivityResponse])
def list_activities_in_range(
    start_date: date = Query(..., description="First day (inclusive)"),
    end_date: date = Query(..., description="Last day (inclusive)"),
    db: Session = Depends(get_db),
):
    if start_date > end_date:
        raise ValidationError("start_date must not be after end_date", field="end_date")
    return activities_in_range(db, start_date, end_date)


@router.get("/base-tests", response_model=List[ActivityResponse])
def list_base_tests(db: Session = Depends(get_db)):
    """Benchmark runs: every activity whose name mentions "base", oldest first."""
    return (
        db.query(Activity)
        .filter(Activity.name.ilike("%base%"))
        .order_by(Activity.start_time.asc())
        .all()
    )


@router.get("/{activity_id}", response_model=ActivityResponse)
def get_activity(activity_id: UUID, db: Session = Depends(get_db)):
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise NotFoundError("Activity", str(activity_id))
    return activity


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(activity_id: UUID, db: Session = Depends(get_db)):
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise NotFoundError("Activity", str(activity_id))
    db.delete(activity)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
