"""Mock auth provider that fabricates the demo starter user."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from saintdaniels.shared.domain.errors import AuthenticationError
from saintdaniels.shared.domain.models import (
    Activity,
    ActivityType,
    BloodPressure,
    CoverageDetails,
    HealthMetrics,
    InsurancePlan,
    User,
)
from saintdaniels.shared.infrastructure.auth.base import AuthProvider

logger = logging.getLogger(__name__)

DEFAULT_STARTER_POINTS = 2500
STARTER_NAME = "John Doe"


def starter_insurance_plan() -> InsurancePlan:
    return InsurancePlan(
        plan_name="Premium Health Plus",
        plan_type="PPO",
        coverage_details=CoverageDetails(
            deductible=1000,
            copay=25,
            coinsurance=0.2,
            out_of_pocket_max=5000,
        ),
        claims=(),
    )


def starter_health_metrics(now: datetime) -> HealthMetrics:
    return HealthMetrics(
        steps=8234,
        heart_rate=72,
        sleep_hours=7.5,
        weight=75.5,
        blood_pressure=BloodPressure(systolic=120, diastolic=80, timestamp=now),
    )


def starter_activities(now: datetime) -> Tuple[Activity, ...]:
    """Seed history, most recent first."""
    seeds = [
        (ActivityType.STEPS, 100, 0, "Completed Daily Steps Goal"),
        (ActivityType.WORKOUT, 200, 1, "Completed 30-minute Workout"),
        (ActivityType.SLEEP, 150, 2, "Achieved 8 Hours of Sleep"),
    ]
    return tuple(
        Activity(
            id=str(uuid.uuid4()),
            type=activity_type,
            points=points,
            timestamp=now - timedelta(days=days_ago),
            description=description,
        )
        for activity_type, points, days_ago, description in seeds
    )


class MockAuthProvider(AuthProvider):
    """Accepts any well-formed email with a non-empty password.

    Every successful sign-in returns a fresh starter user with a new id.
    """

    def __init__(self, starter_points: int = DEFAULT_STARTER_POINTS):
        self.starter_points = starter_points

    async def authenticate(self, email: str, password: str) -> User:
        if not email or "@" not in email or not password:
            logger.info(f"MockAuthProvider: rejected credentials for {email!r}")
            raise AuthenticationError("Invalid email or password")

        return self.build_user(email)

    def build_user(self, email: str, now: Optional[datetime] = None) -> User:
        now = now or datetime.now(timezone.utc)
        return User(
            id=str(uuid.uuid4()),
            name=STARTER_NAME,
            email=email,
            points=self.starter_points,
            insurance_plan=starter_insurance_plan(),
            health_metrics=starter_health_metrics(now),
            recent_activities=starter_activities(now),
        )
