"""
Weekly rollup: actual volume per plan week.

An activity belongs to a week when it starts (UTC) on or after the first day
at 00:00 and before the day AFTER end_date at 00:00, so the whole end day
counts. The summary row is replaced wholesale on every run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from models import Activity, Week, WeeklySummary

logger = logging.getLogger(__name__)


@dataclass
class WeekTotals:
    km: float
    elevation: float
    hours: float
    count: int

    def summary_fields(self, target_km: Optional[float]) -> Dict[str, Optional[float]]:
        return {
            "actual_km": round(self.km, 1),
            "actual_elevation": int(round(self.elevation)),
            "actual_hours": round(self.hours, 1),
            "actual_activities": self.count,
            "completion_percentage": completion_percentage(self.km, target_km),
        }


def day_bounds_utc(start: date, end: date) -> Tuple[datetime, datetime]:
    """Half-open [start 00:00 UTC, end+1 00:00 UTC) covering the full end day."""
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return lower, upper


def activities_in_range(db: Session, start: date, end: date) -> List[Activity]:
    lower, upper = day_bounds_utc(start, end)
    return (
        db.query(Activity)
        .filter(Activity.start_time >= lower, Activity.start_time < upper)
        .order_by(Activity.start_time.asc())
        .all()
    )


def completion_percentage(actual_km: float, target_km: Optional[float]) -> Optional[int]:
    if target_km is None or target_km <= 0:
        return None
    return int(round(actual_km / target_km * 100))


def aggregate(activities: Iterable[Activity]) -> WeekTotals:
    totals = WeekTotals(km=0.0, elevation=0.0, hours=0.0, count=0)
    for act in activities:
        totals.km += act.distance_km or 0
        totals.elevation += act.elevation_gain or 0
        totals.hours += (act.moving_time_seconds or 0) / 3600
        totals.count += 1
    return totals


def rollup_week(db: Session, week: Week) -> Optional[WeeklySummary]:
    """
    Recompute the summary of one week.

    Returns None (and leaves any existing summary alone) when no activity
    falls inside the week.
    """
    activities = activities_in_range(db, week.start_date, week.end_date)
    if not activities:
        return None

    fields = aggregate(activities).summary_fields(week.target_km)

    summary = db.query(WeeklySummary).filter(WeeklySummary.week_id == week.id).first()
    if summary is None:
        summary = WeeklySummary(week_id=week.id)
        db.add(summary)

    for name, value in fields.items():
        setattr(summary, name, value)

    db.commit()
    db.refresh(summary)
    return summary


def rollup_all(db: Session) -> Dict[str, int]:
    """Recompute every week; `updated` is the number of weeks examined."""
    weeks = db.query(Week).order_by(Week.week_number).all()
    written = 0
    for week in weeks:
        if rollup_week(db, week) is not None:
            written += 1

    logger.info(f"Weekly rollup: {len(weeks)} weeks examined, {written} summaries written")
    return {"updated": len(weeks)}
