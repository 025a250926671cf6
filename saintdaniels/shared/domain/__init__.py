"""
Shared Domain Module
====================

Session data model and the errors raised while mutating it.
"""

from saintdaniels.shared.domain.errors import (
    SessionError,
    AuthenticationError,
    AuthProviderUnavailableError,
    SignInSupersededError,
    NoActiveSessionError,
    InsufficientPointsError,
    UnknownRewardError,
    DuplicateRequestError,
)
from saintdaniels.shared.domain.models import (
    Activity,
    ActivityType,
    BloodPressure,
    Claim,
    ClaimStatus,
    CoverageDetails,
    GoalType,
    HealthGoal,
    HealthMetrics,
    InsurancePlan,
    OperationError,
    Redemption,
    Reward,
    RewardCategory,
    SessionSnapshot,
    User,
)

__all__ = [
    # Errors
    "SessionError",
    "AuthenticationError",
    "AuthProviderUnavailableError",
    "SignInSupersededError",
    "NoActiveSessionError",
    "InsufficientPointsError",
    "UnknownRewardError",
    "DuplicateRequestError",
    # Models
    "Activity",
    "ActivityType",
    "BloodPressure",
    "Claim",
    "ClaimStatus",
    "CoverageDetails",
    "GoalType",
    "HealthGoal",
    "HealthMetrics",
    "InsurancePlan",
    "OperationError",
    "Redemption",
    "Reward",
    "RewardCategory",
    "SessionSnapshot",
    "User",
]
