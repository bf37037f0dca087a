"""
AI Coach - weekly coaching feedback from Claude.

Builds a context snapshot of one plan week (targets, planned workouts, what
was actually done so far, where "today" sits relative to the week), renders a
prompt for the requested analysis type, and asks the Anthropic Messages API
for a short written assessment. Every answer is stored as an AIAnalysis row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from anthropic import Anthropic, APIError
from sqlalchemy.orm import Session

from core.config import Settings
from core.exceptions import AICoachError, ConfigError
from models import AIAnalysis, as_utc
from services.plan_queries import WeekDetail, week_detail

logger = logging.getLogger(__name__)

@dataclass
class WeekContext:
    today: date
    week_start: date
    week_end: date
    week_status: str  # 'future' | 'current' | 'past'
    days_into_week: int
    days_left_in_week: int
    week_length: int

    week_number: int
    phase_name: Optional[str]
    phase_description: Optional[str]
    week_notes: Optional[str]

    planned_km: float
    planned_elevation: float
    planned_workouts: int
    workouts_until_today: int
    future_workouts: int

    actual_km: float
    km_diff: float
    completion_pct: Optional[int]
    completed_workouts: int
    actual_elevation: int

    activities: List[Dict[str, Any]] = field(default_factory=list)
    workouts: List[Dict[str, Any]] = field(default_factory=list)
    days_until_race: int = 0


def build_week_context(detail: WeekDetail, today: date, race_date: date) -> WeekContext:
    week = detail.week
    summary = detail.summary
    week_length = (week.end_date - week.start_date).days + 1

    if today < week.start_date:
        status = "future"
        days_into = 0
        days_left = (week.start_date - today).days
    elif today > week.end_date:
        status = "past"
        days_into = week_length
        days_left = 0
    else:
        status = "current"
        days_into = (today - week.start_date).days + 1
        days_left = week_length - days_into

    planned_km = week.target_km or 0
    actual_km = (summary.actual_km if summary else None) or 0

    activity_dates = {as_utc(a.start_time).date() for a in detail.activities}
    until_today = [w for w in detail.workouts if w.date <= today]
    completed = sum(1 for w in until_today if w.date in activity_dates)

    return WeekContext(
        today=today,
        week_start=week.start_date,
        week_end=week.end_date,
        week_status=status,
        days_into_week=days_into,
        days_left_in_week=days_left,
        week_length=week_length,
        week_number=week.week_number,
        phase_name=detail.phase.name if detail.phase else None,
        phase_description=detail.phase.description if detail.phase else None,
        week_notes=week.notes,
        planned_km=planned_km,
        planned_elevation=week.target_elevation or 0,
        planned_workouts=len(detail.workouts),
        workouts_until_today=len(until_today),
        future_workouts=len(detail.workouts) - len(until_today),
        actual_km=actual_km,
        km_diff=actual_km - planned_km,
        completion_pct=summary.completion_percentage if summary else None,
        completed_workouts=completed,
        actual_elevation=(summary.actual_elevation if summary else None) or 0,
        activities=[
            {
                "date": as_utc(a.start_time).date().isoformat(),
                "name": a.name,
                "km": a.distance_km,
                "elevation": a.elevation_gain,
            }
            for a in detail.activities
        ],
        workouts=[
            {
                "date": w.date.isoformat(),
                "title": w.title or w.workout_type,
                "type": w.workout_type,
                "target_km": w.target_km,
                "intensity": w.intensity,
                "when": "past" if w.date < today else ("today" if w.date == today else "upcoming"),
            }
            for w in detail.workouts
        ],
        days_until_race=(race_date - today).days,
    )


def system_prompt(race_name: str, race_date: date) -> str:
    return f"""You are an experienced ultrarunning coach helping an athlete prepare for {race_name} on {race_date.isoformat()}, a multi-day stage race.

Keep in mind:
- Recovery, strength work and walking are part of the training, not extras
- The athlete is building volume gradually after a break
- Lifestyle matters: sleep, nutrition and stress are logged alongside training

You are told today's date and whether the week is upcoming, in progress, or finished.
- Upcoming week: give preparation tips and what to focus on
- Week in progress: judge progress against the days that have passed, not the whole week
- Finished week: give a full review of the results

Be concrete and practical. Do not sugar-coat; give honest feedback."""


def _date_context(ctx: WeekContext) -> str:
    if ctx.week_status == "future":
        return (
            "NOTE: This week has NOT started yet.\n"
            f"Today: {ctx.today.isoformat()}\n"
            f"The week starts {ctx.week_start.isoformat()} (in {ctx.days_left_in_week} days).\n"
            "No activities are expected yet."
        )
    if ctx.week_status == "current":
        return (
            "NOTE: This week is IN PROGRESS.\n"
            f"Today: {ctx.today.isoformat()}\n"
            f"We are on day {ctx.days_into_week} of {ctx.week_length}; {ctx.days_left_in_week} days remain.\n"
            "Only judge the workouts that should have been done by today."
        )
    return (
        "This week is FINISHED.\n"
        f"The week ran {ctx.week_start.isoformat()} - {ctx.week_end.isoformat()}.\n"
        "A full review is possible."
    )


def _fmt_km(value: Optional[float]) -> str:
    return f"{value:.1f}" if value is not None else "-"


def user_prompt(analysis_type: str, ctx: WeekContext) -> str:
    date_context = _date_context(ctx)
    phase = ctx.phase_name or "unknown"

    if analysis_type == "weekly_review":
        workouts = "\n".join(
            f"- {w['date']}: {w['title']} ({_fmt_km(w['target_km'])} km, {w['intensity'] or '-'}) [{w['when'].upper()}]"
            for w in ctx.workouts
        ) or "No workouts planned"
        activities = "\n".join(
            f"- {a['date']}: {a['name']} ({_fmt_km(a['km'])} km)" for a in ctx.activities
        ) or "No activities recorded yet"

        if ctx.week_status == "future":
            asks = "1. What should the athlete focus on this week?\n2. Which sessions matter most?\n3. Tips for a good start"
        elif ctx.week_status == "current":
            asks = "1. How is the week going so far?\n2. Is the athlete on track?\n3. What should be prioritized for the rest of the week?"
        else:
            asks = "1. What went well or badly?\n2. Is progress on track for the goal?\n3. One concrete piece of advice for next week"

        return f"""Review week {ctx.week_number} ({phase} phase):

{date_context}

ABOUT THE PHASE:
{ctx.phase_description or 'No description'}

ABOUT THE WEEK:
{ctx.week_notes or 'No particular notes'}

PLANNED FOR THE WHOLE WEEK:
- Target: {_fmt_km(ctx.planned_km)} km
- Sessions: {ctx.planned_workouts}
- Elevation: {ctx.planned_elevation:.0f} m

PLANNED SESSIONS:
{workouts}

ACTUAL SO FAR:
- Completed: {_fmt_km(ctx.actual_km)} km
- Sessions done: {ctx.completed_workouts} of {ctx.workouts_until_today} due by today
- Sessions still ahead: {ctx.future_workouts}
- Elevation: {ctx.actual_elevation} m

RECORDED ACTIVITIES:
{activities}

DAYS TO RACE: {ctx.days_until_race}

Give a short (3-5 sentence) assessment that fits the week's status:
{asks}"""

    if analysis_type == "plan_adjustment":
        completion = f"{ctx.completion_pct}%" if ctx.completion_pct is not None else "no target set"
        if ctx.week_status == "future":
            status = "Not started"
            asks = "Does the plan look realistic for this week? Give tips on how to approach it."
        else:
            status = f"Day {ctx.days_into_week}/{ctx.week_length}" if ctx.week_status == "current" else "Finished"
            asks = "Does the plan need adjusting? Consider:\n1. Is the weekly volume realistic?\n2. Should the long runs change?\n3. Other recommendations?"

        return f"""{date_context}

Based on week {ctx.week_number} ({phase}):
- Planned: {_fmt_km(ctx.planned_km)} km
- Completed so far: {_fmt_km(ctx.actual_km)} km
- Difference: {ctx.km_diff:+.1f} km
- Completion: {completion}
- Week status: {status}

{asks}

Be concrete with numbers and suggestions."""

    if analysis_type == "motivation":
        if ctx.week_status == "future":
            progress = f"The week starts in {ctx.days_left_in_week} days with a target of {_fmt_km(ctx.planned_km)} km."
            first = "Prepares the athlete mentally for the coming week"
        else:
            progress = f"Completed {ctx.actual_km:.0f} km so far this week (target: {_fmt_km(ctx.planned_km)} km)."
            first = "Acknowledges the effort so far"

        return f"""{date_context}

The athlete is in week {ctx.week_number} of the build-up.
{ctx.days_until_race} days to the start.
Phase: {phase}

{progress}

Write a short, motivating message that:
1. {first}
2. Keeps the big goal in focus
3. Is honest but supportive"""

    return f"""{date_context}

Give a general assessment of training progress for week {ctx.week_number}."""


class AICoach:
    """Asks Claude for coaching feedback on one week of the plan."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        max_tokens: int,
        race_name: str,
        race_date: date,
        client: Optional[Anthropic] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.race_name = race_name
        self.race_date = race_date
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "AICoach":
        return cls(
            api_key=config.ANTHROPIC_API_KEY,
            model=config.AI_MODEL,
            max_tokens=config.AI_MAX_TOKENS,
            race_name=config.RACE_NAME,
            race_date=config.RACE_DATE,
        )

    @property
    def client(self) -> Anthropic:
        if self._client is None:
            if not self.api_key:
                raise ConfigError("ANTHROPIC_API_KEY is not configured")
            self._client = Anthropic(api_key=self.api_key)
        return self._client

    def complete(self, system: str, prompt: str) -> str:
        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            logger.error(f"Anthropic call failed: {e}")
            raise AICoachError(f"Language model call failed: {e}") from e

        text = "".join(block.text for block in message.content if getattr(block, "type", None) == "text")
        if not text:
            raise AICoachError("Language model returned no text")
        return text

    def analyze_week(
        self,
        db: Session,
        week_id: UUID,
        analysis_type: str,
        today: Optional[date] = None,
    ) -> AIAnalysis:
        """
        Produce and store feedback for a week.

        Raises NotFoundError when the week does not exist.
        """
        detail = week_detail(db, week_id)
        today = today or date.today()
        ctx = build_week_context(detail, today, self.race_date)

        system = system_prompt(self.race_name, self.race_date)
        prompt = user_prompt(analysis_type, ctx)
        text = self.complete(system, prompt)

        analysis = AIAnalysis(
            week_id=detail.week.id,
            analysis_type=analysis_type,
            ai_model=self.model,
            prompt=prompt,
            response=text,
        )
        db.add(analysis)
        db.commit()
        db.refresh(analysis)

        logger.info(f"AI analysis stored: week={detail.week.week_number} type={analysis_type} model={self.model}")
        return analysis
