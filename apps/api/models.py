from sqlalchemy import Column, Integer, BigInteger, Boolean, CheckConstraint, Float, Date, DateTime, ForeignKey, Text, Index, UniqueConstraint, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import uuid
from typing import Optional
from datetime import datetime, timezone


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes read back from the store.

    All datetimes are written in UTC; SQLite drops the offset on the way out.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Phase(Base):
    """
    A named training block (Base, Build, Peak, Taper).

    Phases are created by hand and never deleted by the system.
    """
    __tablename__ = "phase"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    weekly_km_target_start = Column(Float, nullable=True)
    weekly_km_target_end = Column(Float, nullable=True)
    long_run_target_km = Column(Float, nullable=True)
    focus_areas = Column(JSON, nullable=True)  # ["vert", "walking", ...]

    weeks = relationship("Week", back_populates="phase", order_by="Week.week_number")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_phase_date_order"),
        Index("ix_phase_dates", "start_date", "end_date"),
    )


class Week(Base):
    """
    One week of the plan, owned by a phase.

    Ranges are expected to be contiguous within a phase; overlap is tolerated
    and resolved at query time.
    """
    __tablename__ = "week"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    phase_id = Column(Uuid(as_uuid=True), ForeignKey("phase.id"), nullable=False, index=True)
    week_number = Column(Integer, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Targets (all optional)
    target_km = Column(Float, nullable=True)
    target_elevation = Column(Float, nullable=True)
    target_hours = Column(Float, nullable=True)
    target_strength_sessions = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    phase = relationship("Phase", back_populates="weeks")
    workouts = relationship("PlannedWorkout", back_populates="week", order_by="PlannedWorkout.date")
    summary = relationship("WeeklySummary", back_populates="week", uselist=False)

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_week_date_order"),
        Index("ix_week_dates", "start_date", "end_date"),
    )


class PlannedWorkout(Base):
    """
    What the athlete SHOULD do on a given day.

    Several workouts may share a date (e.g. a run and a strength session).
    """
    __tablename__ = "planned_workout"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    week_id = Column(Uuid(as_uuid=True), ForeignKey("week.id"), nullable=False)
    date = Column(Date, nullable=False)
    day_of_week = Column(Integer, nullable=True)  # 0=Monday, 6=Sunday

    workout_type = Column(Text, nullable=False)  # 'run', 'walk', 'strength', 'rest', 'long_run', 'back_to_back'
    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    target_km = Column(Float, nullable=True)
    target_duration_minutes = Column(Integer, nullable=True)
    target_elevation = Column(Float, nullable=True)
    intensity = Column(Text, nullable=True)  # 'easy', 'moderate', 'hard'
    countdown_number = Column(Integer, nullable=True)  # Days left to race day
    is_key_workout = Column(Boolean, default=False, nullable=False)

    week = relationship("Week", back_populates="workouts")

    __table_args__ = (
        Index("ix_planned_workout_week_id", "week_id"),
        Index("ix_planned_workout_date", "date"),
    )


class Activity(Base):
    """
    An activity ingested from Strava.

    Free-standing: linked to weeks only by date overlap at query time.
    """
    __tablename__ = "activity"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    strava_id = Column(BigInteger, nullable=False)
    strava_athlete_id = Column(BigInteger, nullable=True, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)  # UTC
    name = Column(Text, nullable=True)
    activity_type = Column(Text, nullable=True)  # 'Run', 'Walk', 'Hike', 'WeightTraining'
    sport_type = Column(Text, nullable=True)

    distance_km = Column(Float, nullable=True)
    moving_time_seconds = Column(Integer, nullable=True)
    elapsed_time_seconds = Column(Integer, nullable=True)
    elevation_gain = Column(Float, nullable=True)
    average_speed = Column(Float, nullable=True)  # m/s
    max_speed = Column(Float, nullable=True)  # m/s
    average_heartrate = Column(Integer, nullable=True)
    max_heartrate = Column(Integer, nullable=True)
    calories = Column(Float, nullable=True)
    suffer_score = Column(Float, nullable=True)
    description = Column(Text, nullable=True)

    # Not populated by sync; kept for manual matching
    matched_workout_id = Column(Uuid(as_uuid=True), ForeignKey("planned_workout.id"), nullable=True)
    raw_data = Column(JSON, nullable=True)
    synced_at = Column(DateTime(timezone=True), nullable=True)

    # Dedup key for re-fetched activities
    __table_args__ = (
        UniqueConstraint("strava_id", name="uq_activity_strava_id"),
        Index("ix_activity_start_time", "start_time"),
    )


class WeeklySummary(Base):
    """
    Derived totals for a week. At most one per week, recomputed wholesale.
    """
    __tablename__ = "weekly_summary"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    week_id = Column(Uuid(as_uuid=True), ForeignKey("week.id"), nullable=False)
    actual_km = Column(Float, nullable=True)
    actual_elevation = Column(Integer, nullable=True)
    actual_hours = Column(Float, nullable=True)
    actual_activities = Column(Integer, nullable=True)
    completion_percentage = Column(Integer, nullable=True)  # None when no positive target
    notes = Column(Text, nullable=True)
    ai_analysis = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    week = relationship("Week", back_populates="summary")

    __table_args__ = (
        UniqueConstraint("week_id", name="uq_weekly_summary_week_id"),
    )


class StravaCredential(Base):
    """
    OAuth credential for one Strava athlete.

    Tokens are Fernet-encrypted at rest (see services.token_encryption).
    Upserted by athlete_id: a refresh never creates a second row.
    """
    __tablename__ = "strava_credential"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(BigInteger, nullable=False)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    expires_at = Column(BigInteger, nullable=False)  # epoch seconds
    athlete_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("athlete_id", name="uq_strava_credential_athlete_id"),
    )

    def is_expired(self, now_epoch: int) -> bool:
        return int(self.expires_at) < int(now_epoch)


class LifestyleLog(Base):
    __tablename__ = "lifestyle_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False, index=True)
    sleep_hours = Column(Float, nullable=True)
    sleep_quality = Column(Integer, nullable=True)  # 1-5
    weight_kg = Column(Float, nullable=True)
    energy_level = Column(Integer, nullable=True)  # 1-5
    soreness_level = Column(Integer, nullable=True)  # 1-5
    stress_level = Column(Integer, nullable=True)  # 1-5
    notes = Column(Text, nullable=True)
    no_sugar = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class AIAnalysis(Base):
    """Stored coaching feedback, one row per request."""
    __tablename__ = "ai_analysis"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    week_id = Column(Uuid(as_uuid=True), ForeignKey("week.id"), nullable=True, index=True)
    analysis_type = Column(Text, nullable=True)
    ai_model = Column(Text, nullable=True)
    prompt = Column(Text, nullable=True)
    response = Column(Text, nullable=True)
    recommendations = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Goal(Base):
    __tablename__ = "goal"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    target_date = Column(Date, nullable=True)
    goal_type = Column(Text, nullable=True)
    target_value = Column(Float, nullable=True)
    current_value = Column(Float, nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
