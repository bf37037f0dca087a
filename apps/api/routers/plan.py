"""
Training Plan API Router

Phases, weeks, planned workouts and weekly summaries.
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import NotFoundError, ValidationError
from models import Phase, PlannedWorkout, Week, WeeklySummary
from schemas import (
    ActivityResponse,
    PhaseCreate,
    PhaseResponse,
    PlannedWorkoutCreate,
    PlannedWorkoutResponse,
    PlannedWorkoutUpdate,
    WeekCreate,
    WeekDetailResponse,
    WeekProgressResponse,
    WeekResponse,
    WeekUpdate,
    WeekWithPhaseResponse,
    WeeklySummaryResponse,
    WeeklySummaryUpdate,
)
from services import plan_queries
from services.weekly_rollup import rollup_all, rollup_week

router = APIRouter(prefix="/v1", tags=["plan"])


def _check_date_order(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("start_date must not be after end_date", field="end_date")


def _detail_response(detail: plan_queries.WeekDetail) -> WeekDetailResponse:
    return WeekDetailResponse(
        week=WeekResponse.model_validate(detail.week),
        phase=PhaseResponse.model_validate(detail.phase) if detail.phase else None,
        summary=WeeklySummaryResponse.model_validate(detail.summary) if detail.summary else None,
        workouts=[PlannedWorkoutResponse.model_validate(w) for w in detail.workouts],
        activities=[ActivityResponse.model_validate(a) for a in detail.activities],
    )


# --- Phases ---

@router.post("/phases", response_model=PhaseResponse, status_code=status.HTTP_201_CREATED)
def create_phase(payload: PhaseCreate, db: Session = Depends(get_db)):
    _check_date_order(payload.start_date, payload.end_date)
    phase = Phase(**payload.model_dump())
    db.add(phase)
    db.commit()
    db.refresh(phase)
    return phase


@router.get("/phases", response_model=List[PhaseResponse])
def list_phases(db: Session = Depends(get_db)):
    return db.query(Phase).order_by(Phase.start_date.asc()).all()


@router.get("/phases/current", response_model=Optional[PhaseResponse])
def get_current_phase(
    today: Optional[date] = Query(None, description="Override today's date"),
    db: Session = Depends(get_db),
):
    return plan_queries.current_phase(db, today or date.today())


@router.get("/phases/{phase_id}", response_model=PhaseResponse)
def get_phase(phase_id: UUID, db: Session = Depends(get_db)):
    phase = db.get(Phase, phase_id)
    if phase is None:
        raise NotFoundError("Phase", str(phase_id))
    return phase


# --- Weeks ---

@router.post("/weeks", response_model=WeekResponse, status_code=status.HTTP_201_CREATED)
def create_week(payload: WeekCreate, db: Session = Depends(get_db)):
    _check_date_order(payload.start_date, payload.end_date)
    if db.get(Phase, payload.phase_id) is None:
        raise NotFoundError("Phase", str(payload.phase_id))
    week = Week(**payload.model_dump())
    db.add(week)
    db.commit()
    db.refresh(week)
    return week


@router.get("/weeks", response_model=List[WeekWithPhaseResponse])
def list_weeks(db: Session = Depends(get_db)):
    return plan_queries.list_weeks_with_phase(db)


@router.get("/weeks/current", response_model=Optional[WeekDetailResponse])
def get_current_week(
    today: Optional[date] = Query(None, description="Override today's date"),
    db: Session = Depends(get_db),
):
    detail = plan_queries.current_week(db, today or date.today())
    if detail is None:
        return None
    return _detail_response(detail)


@router.get("/weeks/progress", response_model=List[WeekProgressResponse])
def get_training_progress(db: Session = Depends(get_db)):
    return plan_queries.training_progress(db)


@router.get("/weeks/{week_id}", response_model=WeekDetailResponse)
def get_week_detail(week_id: UUID, db: Session = Depends(get_db)):
    return _detail_response(plan_queries.week_detail(db, week_id))


@router.patch("/weeks/{week_id}", response_model=WeekResponse)
def update_week(week_id: UUID, payload: WeekUpdate, db: Session = Depends(get_db)):
    week = plan_queries.get_week(db, week_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(week, field, value)
    _check_date_order(week.start_date, week.end_date)
    db.commit()
    db.refresh(week)
    return week


# --- Planned workouts ---

@router.post("/workouts", response_model=PlannedWorkoutResponse, status_code=status.HTTP_201_CREATED)
def create_workout(payload: PlannedWorkoutCreate, db: Session = Depends(get_db)):
    plan_queries.get_week(db, payload.week_id)
    workout = PlannedWorkout(**payload.model_dump())
    db.add(workout)
    db.commit()
    db.refresh(workout)
    return workout


@router.get("/workouts", response_model=List[PlannedWorkoutResponse])
def list_workouts(
    on: Optional[date] = Query(None, description="Only workouts on this date"),
    db: Session = Depends(get_db),
):
    query = db.query(PlannedWorkout)
    if on is not None:
        query = query.filter(PlannedWorkout.date == on)
    return query.order_by(PlannedWorkout.date.asc()).all()


@router.get("/workouts/today", response_model=List[PlannedWorkoutResponse])
def list_todays_workouts(db: Session = Depends(get_db)):
    return (
        db.query(PlannedWorkout)
        .filter(PlannedWorkout.date == date.today())
        .order_by(PlannedWorkout.workout_type.asc())
        .all()
    )


@router.get("/weeks/{week_id}/workouts", response_model=List[PlannedWorkoutResponse])
def list_week_workouts(week_id: UUID, db: Session = Depends(get_db)):
    plan_queries.get_week(db, week_id)
    return (
        db.query(PlannedWorkout)
        .filter(PlannedWorkout.week_id == week_id)
        .order_by(PlannedWorkout.date.asc())
        .all()
    )


@router.patch("/workouts/{workout_id}", response_model=PlannedWorkoutResponse)
def update_workout(workout_id: UUID, payload: PlannedWorkoutUpdate, db: Session = Depends(get_db)):
    workout = db.get(PlannedWorkout, workout_id)
    if workout is None:
        raise NotFoundError("Workout", str(workout_id))
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(workout, field, value)
    db.commit()
    db.refresh(workout)
    return workout


# --- Weekly summaries ---

@router.get("/summaries", response_model=List[WeeklySummaryResponse])
def list_summaries(db: Session = Depends(get_db)):
    return (
        db.query(WeeklySummary)
        .join(Week, WeeklySummary.week_id == Week.id)
        .order_by(Week.week_number.asc())
        .all()
    )


@router.post("/summaries/recompute")
def recompute_all_summaries(db: Session = Depends(get_db)):
    return rollup_all(db)


@router.get("/summaries/{week_id}", response_model=WeeklySummaryResponse)
def get_week_summary(week_id: UUID, db: Session = Depends(get_db)):
    summary = db.query(WeeklySummary).filter(WeeklySummary.week_id == week_id).first()
    if summary is None:
        raise NotFoundError("Summary", str(week_id))
    return summary


@router.patch("/summaries/{week_id}", response_model=WeeklySummaryResponse)
def update_week_summary(week_id: UUID, payload: WeeklySummaryUpdate, db: Session = Depends(get_db)):
    summary = db.query(WeeklySummary).filter(WeeklySummary.week_id == week_id).first()
    if summary is None:
        raise NotFoundError("Summary", str(week_id))
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(summary, field, value)
    db.commit()
    db.refresh(summary)
    return summary


@router.post("/summaries/{week_id}/recompute", response_model=Optional[WeeklySummaryResponse])
def recompute_week_summary(week_id: UUID, db: Session = Depends(get_db)):
    """Recompute one week. Answers null when the week has no activities yet."""
    week = plan_queries.get_week(db, week_id)
    return rollup_week(db, week)
