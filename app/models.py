"""
Federation API Models

Pydantic request/response models
"""

from datetime import date, datetime
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================
# Enums
# =============================================

class Gender(str, Enum):
    """Competition gender"""
    male = "male"
    female = "female"


class DecisionStatus(str, Enum):
    """Team selection decision"""
    selected = "selected"     # selected for the team
    reserve = "reserve"       # reserve
    declined = "declined"     # not selected


class SelectionStatus(str, Enum):
    """Selection event state"""
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"


# =============================================
# Athletes
# =============================================

class AthleteBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: Gender
    weight_category: Optional[str] = None
    club: Optional[str] = None
    license_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    last_year_points: float = Field(default=0, ge=0, description="Previous season total")
    hub_member: bool = False
    last_year_hub_member: bool = False
    is_active: bool = True


class AthleteCreate(AthleteBase):
    """New athlete; age_category is derived from date_of_birth"""
    pass


class AthleteUpdate(BaseModel):
    """Athlete changes (only provided fields are written)"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    weight_category: Optional[str] = None
    club: Optional[str] = None
    license_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    last_year_points: Optional[float] = Field(None, ge=0)
    hub_member: Optional[bool] = None
    last_year_hub_member: Optional[bool] = None
    is_active: Optional[bool] = None


# =============================================
# Events (competitions)
# =============================================

class EventCreate(BaseModel):
    """New competition"""
    name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: Optional[date] = None
    city: Optional[str] = None
    country: Optional[str] = None
    event_type: Optional[str] = None
    level: Optional[str] = None
    coefficient: int = Field(..., ge=1, le=5, description="Tournament coefficient (1-5)")
    is_published: bool = False
    info_url: Optional[str] = None
    draws_url: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    city: Optional[str] = None
    country: Optional[str] = None
    event_type: Optional[str] = None
    level: Optional[str] = None
    coefficient: Optional[int] = Field(None, ge=1, le=5)
    is_published: Optional[bool] = None
    info_url: Optional[str] = None
    draws_url: Optional[str] = None


# =============================================
# Results
# =============================================

class ResultCreate(BaseModel):
    """Result entry; points_earned is computed from the event coefficient"""
    athlete_id: str
    event_id: str
    final_rank: int = Field(..., ge=1)
    matches_won: Optional[int] = Field(default=0, ge=0)

    @field_validator("matches_won")
    @classmethod
    def missing_wins_are_zero(cls, v):
        return 0 if v is None else v


class ResultUpdate(BaseModel):
    final_rank: Optional[int] = Field(None, ge=1)
    matches_won: Optional[int] = Field(None, ge=0)


# =============================================
# Ranking snapshots
# =============================================

class SnapshotCreate(BaseModel):
    """Snapshot generation request"""
    snapshot_date: date
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None


class SnapshotRowOut(BaseModel):
    athlete_id: str
    athlete_name: str
    age_category: str
    weight_category: Optional[str] = None
    gender: Optional[str] = None
    club: Optional[str] = None
    current_year_points: float
    last_year_points: float
    carried_over_points: float
    total_points: float
    ranking_position: int


# =============================================
# Selections
# =============================================

class SelectionEventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    event_date: Optional[date] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: SelectionStatus = SelectionStatus.upcoming
    is_published: bool = False


class SelectionEventUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    event_date: Optional[date] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[SelectionStatus] = None


class DecisionCreate(BaseModel):
    athlete_id: str
    decision_status: DecisionStatus = DecisionStatus.selected
    notes: Optional[str] = None


class DecisionUpdate(BaseModel):
    decision_status: DecisionStatus
    notes: Optional[str] = None


class PublishRequest(BaseModel):
    is_published: bool = True


# =============================================
# Points
# =============================================

class PointsBreakdown(BaseModel):
    """Points of one result"""
    coefficient: int
    final_rank: int
    matches_won: int
    base_points: float
    bonus_points: float
    medal_counted: bool
    points: float
    display_points: int


class PointsAllocationRow(BaseModel):
    coefficient: int
    first: int
    second: int
    third: int
    per_win_bonus: int


class PointsRules(BaseModel):
    """Published points and carry-over rules"""
    allocation: List[PointsAllocationRow]
    medal_min_wins: int
    carry_over_rate: float
    new_category_carry_over_rate: float
    qualifying_min_points: int
    qualifying_min_coefficient: int
    hub_bonus_points: int


class DashboardStats(BaseModel):
    athletes: int = 0
    active_athletes: int = 0
    events: int = 0
    published_events: int = 0
    results: int = 0
    snapshots: int = 0
    selection_events: int = 0
    generated_at: Optional[datetime] = None
