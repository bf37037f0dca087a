"""
Read-side projections over the plan.

Pure queries: nothing here writes. Overlapping phases or weeks resolve
deterministically to the one that started most recently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from core.exceptions import NotFoundError
from models import Activity, Phase, PlannedWorkout, Week, WeeklySummary
from services.weekly_rollup import activities_in_range


@dataclass
class WeekDetail:
    week: Week
    phase: Optional[Phase]
    summary: Optional[WeeklySummary]
    workouts: List[PlannedWorkout] = field(default_factory=list)
    activities: List[Activity] = field(default_factory=list)


def current_phase(db: Session, today: date) -> Optional[Phase]:
    return (
        db.query(Phase)
        .filter(Phase.start_date <= today, Phase.end_date >= today)
        .order_by(Phase.start_date.desc(), Phase.name.asc())
        .first()
    )


def _current_week_row(db: Session, today: date) -> Optional[Week]:
    return (
        db.query(Week)
        .filter(Week.start_date <= today, Week.end_date >= today)
        .order_by(Week.start_date.desc(), Week.week_number.desc())
        .first()
    )


def _build_detail(db: Session, week: Week) -> WeekDetail:
    workouts = (
        db.query(PlannedWorkout)
        .filter(PlannedWorkout.week_id == week.id)
        .order_by(PlannedWorkout.date.asc())
        .all()
    )
    summary = db.query(WeeklySummary).filter(WeeklySummary.week_id == week.id).first()
    return WeekDetail(
        week=week,
        phase=db.get(Phase, week.phase_id),
        summary=summary,
        workouts=workouts,
        activities=activities_in_range(db, week.start_date, week.end_date),
    )


def current_week(db: Session, today: date) -> Optional[WeekDetail]:
    week = _current_week_row(db, today)
    if week is None:
        return None
    return _build_detail(db, week)


def get_week(db: Session, week_id: UUID) -> Week:
    week = db.get(Week, week_id)
    if week is None:
        raise NotFoundError("Week", str(week_id))
    return week


def week_detail(db: Session, week_id: UUID) -> WeekDetail:
    return _build_detail(db, get_week(db, week_id))


def list_weeks_with_phase(db: Session) -> List[Week]:
    """Every week by number, with phase and summary loaded alongside."""
    return (
        db.query(Week)
        .options(joinedload(Week.phase), joinedload(Week.summary))
        .order_by(Week.week_number.asc(), Week.start_date.asc())
        .all()
    )


def training_progress(db: Session) -> List[Dict[str, Any]]:
    """Planned vs actual km for every week, in plan order."""
    rows = []
    for week in list_weeks_with_phase(db):
        summary = week.summary
        rows.append({
            "week_id": week.id,
            "week_number": week.week_number,
            "phase_name": week.phase.name if week.phase else None,
            "start_date": week.start_date,
            "end_date": week.end_date,
            "target_km": week.target_km,
            "actual_km": summary.actual_km if summary else None,
            "completion_percentage": summary.completion_percentage if summary else None,
        })
    return rows
