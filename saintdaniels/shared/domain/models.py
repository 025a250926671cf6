"""Session data model.

Every record is an immutable pydantic model. Mutations build a new record
with ``model_copy(update=...)`` and swap it in, so a snapshot handed to an
observer never changes underneath it.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# Enumerations
# ============================================================================


class ClaimStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    PROCESSED = "processed"


class ActivityType(str, Enum):
    STEPS = "steps"
    WORKOUT = "workout"
    SLEEP = "sleep"
    CHECKUP = "checkup"
    VACCINATION = "vaccination"
    MEDICATION = "medication"


class RewardCategory(str, Enum):
    GIFT_CARDS = "giftCards"
    HEALTH = "health"
    FITNESS = "fitness"
    WELLNESS = "wellness"
    MERCHANDISE = "merchandise"


class GoalType(str, Enum):
    STEPS = "steps"
    SLEEP = "sleep"
    WEIGHT = "weight"
    EXERCISE = "exercise"
    CHECKUP = "checkup"


# ============================================================================
# Insurance
# ============================================================================


class CoverageDetails(_Record):
    """Cost-sharing terms of a plan."""

    deductible: float = Field(ge=0)
    copay: float = Field(ge=0)
    coinsurance: float = Field(ge=0, le=1, description="Coinsurance rate, 0.2 == 20%")
    out_of_pocket_max: float = Field(ge=0)


class Claim(_Record):
    id: str
    date: datetime
    amount: float = Field(ge=0)
    status: ClaimStatus
    description: str


class InsurancePlan(_Record):
    plan_name: str
    plan_type: str
    coverage_details: CoverageDetails
    claims: Tuple[Claim, ...] = ()


# ============================================================================
# Health
# ============================================================================


class BloodPressure(_Record):
    systolic: int
    diastolic: int
    timestamp: datetime


class HealthMetrics(_Record):
    """Point-in-time health snapshot. Replaced wholesale, never merged."""

    steps: int
    heart_rate: int
    sleep_hours: float
    weight: Optional[float] = None
    blood_pressure: Optional[BloodPressure] = None


class Activity(_Record):
    id: str
    type: ActivityType
    points: int
    timestamp: datetime
    description: str


class HealthGoal(_Record):
    id: str
    type: GoalType
    target: float
    current: float = 0.0
    deadline: datetime
    points_reward: int

    @property
    def progress(self) -> float:
        """Completion fraction in [0, 1]. A zero target reports 0.0."""
        if self.target <= 0:
            return 0.0
        return max(0.0, min(1.0, self.current / self.target))


# ============================================================================
# User & Rewards
# ============================================================================


class User(_Record):
    id: str
    name: str
    email: str
    points: int = Field(ge=0)
    insurance_plan: InsurancePlan
    health_metrics: HealthMetrics
    recent_activities: Tuple[Activity, ...] = Field(
        default=(), description="Most recent first"
    )


class Reward(_Record):
    id: str
    name: str
    description: str
    points_cost: int = Field(gt=0)
    category: RewardCategory
    image_url: Optional[str] = None


class Redemption(_Record):
    """Receipt recorded by a rewards ledger for one redemption request."""

    request_id: str
    user_id: str
    reward_id: str
    points_cost: int = Field(gt=0)
    redeemed_at: datetime


class OperationError(_Record):
    """Last rejected store operation, kept for the screen to display."""

    operation: str
    error_type: str
    message: str
    occurred_at: datetime


class SessionSnapshot(_Record):
    """What observers of the session store receive after each mutation."""

    current_user: Optional[User] = None
    rewards: Tuple[Reward, ...] = ()
    health_goals: Tuple[HealthGoal, ...] = ()
    is_loading: bool = False
    last_error: Optional[OperationError] = None
