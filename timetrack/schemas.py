from datetime import date as calendar_date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from timetrack.services.aggregation import parse_work_days, serialize_work_days
from timetrack.services.durations import is_day_off, normalize_hhmm, parse_hhmm


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelReadModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CamelPatchModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def _validate_work_days(value: str) -> str:
    days = parse_work_days(value)
    if not days:
        raise ValueError("workDays must contain at least one weekday")
    return serialize_work_days(days)


class TimeEntryCreate(CamelModel):
    date: calendar_date
    start_time: str
    end_time: str
    hourly_rate: int = Field(default=0, ge=0)
    notes: str | None = Field(default=None, max_length=2000)
    mood_rating: int | None = Field(default=None, ge=1, le=5)
    energy_level: int | None = Field(default=None, ge=1, le=5)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value: str) -> str:
        return normalize_hhmm(value)

    @model_validator(mode="after")
    def validate_span(self) -> "TimeEntryCreate":
        if not is_day_off(self.start_time, self.end_time) and parse_hhmm(self.end_time) < parse_hhmm(self.start_time):
            raise ValueError("endTime must be greater than or equal to startTime")
        return self


class TimeEntryPatch(CamelPatchModel):
    """Partial update of a time entry; only fields present in the payload are applied."""

    date: calendar_date | None = None
    start_time: str | None = None
    end_time: str | None = None
    hourly_rate: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=2000)
    mood_rating: int | None = Field(default=None, ge=1, le=5)
    energy_level: int | None = Field(default=None, ge=1, le=5)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_hhmm(value)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "TimeEntryPatch":
        for field_name in ("date", "start_time", "end_time", "hourly_rate"):
            if field_name in self.model_fields_set and getattr(self, field_name) is None:
                raise ValueError(f"{to_camel(field_name)} cannot be null")
        return self

    def changes(self) -> dict[str, object]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class TimeEntryRead(CamelReadModel):
    id: int
    user_id: int
    date: calendar_date
    start_time: str
    end_time: str
    hourly_rate: int
    notes: str | None = None
    mood_rating: int | None = None
    energy_level: int | None = None


class MonthlyReportRead(CamelReadModel):
    id: int
    user_id: int
    year: int
    month: int
    work_days: int
    worked_minutes: int
    target_minutes: int
    overtime_minutes: int
    vacation_days: int
    carried_from_minutes: int
    carried_to_minutes: int


class MonthlyReportAdjust(CamelPatchModel):
    vacation_days: int | None = Field(default=None, ge=0, le=31)
    carried_from_minutes: int | None = None
    carried_to_minutes: int | None = None

    @model_validator(mode="after")
    def reject_nulls(self) -> "MonthlyReportAdjust":
        for field_name in self.model_fields_set:
            if getattr(self, field_name) is None:
                raise ValueError(f"{to_camel(field_name)} cannot be null")
        return self

    def changes(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class UserRead(CamelReadModel):
    id: int
    username: str
    full_name: str
    email: str | None = None
    phone: str | None = None
    position: str | None = None
    work_hours_per_day: int
    break_minutes: int
    auto_break: bool
    work_days: str
    best_streak: int


class UserSettingsPatch(CamelPatchModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    position: str | None = Field(default=None, max_length=255)
    work_hours_per_day: int | None = Field(default=None, ge=0, le=24)
    break_minutes: int | None = Field(default=None, ge=0, le=600)
    auto_break: bool | None = None
    work_days: str | None = None

    @field_validator("work_days")
    @classmethod
    def normalize_work_days(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_work_days(value)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "UserSettingsPatch":
        for field_name in ("full_name", "work_hours_per_day", "break_minutes", "auto_break", "work_days"):
            if field_name in self.model_fields_set and getattr(self, field_name) is None:
                raise ValueError(f"{to_camel(field_name)} cannot be null")
        return self

    def changes(self) -> dict[str, object]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=255)
    full_name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    position: str | None = Field(default=None, max_length=255)
    work_hours_per_day: int | None = Field(default=None, ge=0, le=24)
    work_days: str | None = None

    @field_validator("work_days")
    @classmethod
    def normalize_work_days(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_work_days(value)


class LoginRequest(CamelModel):
    username: str
    password: str


class PasswordChangeRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=255)


class TokenResponse(CamelModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int
    user: UserRead


class StreakStatsRead(CamelReadModel):
    current: int
    best: int
    this_week: int
    this_month: int


class MonthlyMetricsRead(CamelModel):
    report: MonthlyReportRead
    days_worked: int
    day_off_count: int
    progress_percentage: float
    overtime_sign: Literal["overtime", "undertime", "even"]
    total_payment: int
    worked_label: str
    target_label: str
    overtime_label: str
    efficiency_percentage: float
    streaks: StreakStatsRead


class PeriodSummaryRead(CamelReadModel):
    months: int
    period_start: calendar_date
    period_end: calendar_date
    report_count: int
    total_worked_minutes: int
    total_target_minutes: int
    total_worked_hours: float
    efficiency_percentage: float
    total_entries: int
    unique_days: int


ExportFormat = Literal["xlsx", "csv"]
