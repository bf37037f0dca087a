from pydantic import BaseModel, ConfigDict, Field
import datetime as dt
from datetime import datetime, date
from uuid import UUID
from typing import Optional, List, Literal


class PhaseCreate(BaseModel):
    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    weekly_km_target_start: Optional[float] = None
    weekly_km_target_end: Optional[float] = None
    long_run_target_km: Optional[float] = None
    focus_areas: Optional[List[str]] = None


class PhaseUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weekly_km_target_start: Optional[float] = None
    weekly_km_target_end: Optional[float] = None
    long_run_target_km: Optional[float] = None
    focus_areas: Optional[List[str]] = None


class PhaseResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    weekly_km_target_start: Optional[float] = None
    weekly_km_target_end: Optional[float] = None
    long_run_target_km: Optional[float] = None
    focus_areas: Optional[List[str]] = None

    model_config = ConfigDict(from_attributes=True)


class WeekCreate(BaseModel):
    phase_id: UUID
    week_number: int
    start_date: date
    end_date: date
    target_km: Optional[float] = None
    target_elevation: Optional[float] = None
    target_hours: Optional[float] = None
    target_strength_sessions: Optional[int] = None
    notes: Optional[str] = None


class WeekUpdate(BaseModel):
    phase_id: Optional[UUID] = None
    week_number: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_km: Optional[float] = None
    target_elevation: Optional[float] = None
    target_hours: Optional[float] = None
    target_strength_sessions: Optional[int] = None
    notes: Optional[str] = None


class WeekResponse(BaseModel):
    id: UUID
    phase_id: UUID
    week_number: int
    start_date: date
    end_date: date
    target_km: Optional[float] = None
    target_elevation: Optional[float] = None
    target_hours: Optional[float] = None
    target_strength_sessions: Optional[int] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PlannedWorkoutCreate(BaseModel):
    week_id: UUID
    date: date
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    workout_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    target_km: Optional[float] = None
    target_duration_minutes: Optional[int] = None
    target_elevation: Optional[float] = None
    intensity: Optional[str] = None
    countdown_number: Optional[int] = None
    is_key_workout: bool = False


class PlannedWorkoutUpdate(BaseModel):
    date: Optional[dt.date] = None
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    workout_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    target_km: Optional[float] = None
    target_duration_minutes: Optional[int] = None
    target_elevation: Optional[float] = None
    intensity: Optional[str] = None
    countdown_number: Optional[int] = None
    is_key_workout: Optional[bool] = None


class PlannedWorkoutResponse(BaseModel):
    id: UUID
    week_id: UUID
    date: date
    day_of_week: Optional[int] = None
    workout_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    target_km: Optional[float] = None
    target_duration_minutes: Optional[int] = None
    target_elevation: Optional[float] = None
    intensity: Optional[str] = None
    countdown_number: Optional[int] = None
    is_key_workout: bool = False

    model_config = ConfigDict(from_attributes=True)


class ActivityResponse(BaseModel):
    id: UUID
    strava_id: int
    start_time: datetime
    name: Optional[str] = None
    activity_type: Optional[str] = None
    sport_type: Optional[str] = None
    distance_km: Optional[float] = None
    moving_time_seconds: Optional[int] = None
    elapsed_time_seconds: Optional[int] = None
    elevation_gain: Optional[float] = None
    average_speed: Optional[float] = None
    max_speed: Optional[float] = None
    average_heartrate: Optional[int] = None
    max_heartrate: Optional[int] = None
    calories: Optional[float] = None
    suffer_score: Optional[float] = None
    description: Optional[str] = None
    matched_workout_id: Optional[UUID] = None
    synced_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WeeklySummaryResponse(BaseModel):
    id: UUID
    week_id: UUID
    actual_km: Optional[float] = None
    actual_elevation: Optional[int] = None
    actual_hours: Optional[float] = None
    actual_activities: Optional[int] = None
    completion_percentage: Optional[int] = None
    notes: Optional[str] = None
    ai_analysis: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WeeklySummaryUpdate(BaseModel):
    """Only the free-text fields are editable; totals come from the rollup."""
    notes: Optional[str] = None
    ai_analysis: Optional[str] = None


class WeekDetailResponse(BaseModel):
    week: WeekResponse
    phase: Optional[PhaseResponse] = None
    summary: Optional[WeeklySummaryResponse] = None
    workouts: List[PlannedWorkoutResponse] = []
    activities: List[ActivityResponse] = []


class WeekWithPhaseResponse(WeekResponse):
    phase: Optional[PhaseResponse] = None
    summary: Optional[WeeklySummaryResponse] = None


class WeekProgressResponse(BaseModel):
    """One row of the plan overview: targets next to actuals."""
    week_id: UUID
    week_number: int
    phase_name: Optional[str] = None
    start_date: date
    end_date: date
    target_km: Optional[float] = None
    actual_km: Optional[float] = None
    completion_percentage: Optional[int] = None


class LifestyleLogCreate(BaseModel):
    date: date
    sleep_hours: Optional[float] = None
    sleep_quality: Optional[int] = Field(default=None, ge=1, le=5)
    weight_kg: Optional[float] = None
    energy_level: Optional[int] = Field(default=None, ge=1, le=5)
    soreness_level: Optional[int] = Field(default=None, ge=1, le=5)
    stress_level: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
    no_sugar: Optional[bool] = None


class LifestyleLogResponse(LifestyleLogCreate):
    id: UUID
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GoalCreate(BaseModel):
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    goal_type: Optional[str] = None
    target_value: Optional[float] = None
    current_value: Optional[float] = None


class GoalUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    target_date: Optional[date] = None
    goal_type: Optional[str] = None
    target_value: Optional[float] = None
    current_value: Optional[float] = None
    is_completed: Optional[bool] = None


class GoalResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    goal_type: Optional[str] = None
    target_value: Optional[float] = None
    current_value: Optional[float] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SyncResponse(BaseModel):
    message: str
    synced: int
    skipped: int
    total: int
    truncated: bool
    timestamp: datetime


class StravaStatusResponse(BaseModel):
    connected: bool
    athlete_id: Optional[int] = None
    token_expired: Optional[bool] = None
    token_expires_at: Optional[int] = None
    last_activity_at: Optional[datetime] = None


class AIAnalyzeRequest(BaseModel):
    # Wire names follow the web client
    model_config = ConfigDict(populate_by_name=True)

    week_id: UUID = Field(alias="weekId")
    analysis_type: Literal["weekly_review", "plan_adjustment", "motivation", "default"] = Field(
        default="weekly_review", alias="analysisType"
    )


class AIAnalyzeResponse(BaseModel):
    analysis: str
    model: str


class AIAnalysisResponse(BaseModel):
    id: UUID
    week_id: Optional[UUID] = None
    analysis_type: Optional[str] = None
    ai_model: Optional[str] = None
    response: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
