import pytest

from saintdaniels.shared.domain.errors import AuthenticationError
from saintdaniels.shared.domain.models import ActivityType
from saintdaniels.shared.infrastructure.auth.mock_provider import MockAuthProvider


@pytest.mark.parametrize("email, password", [
    ("", "secret"),
    ("no-at-sign", "secret"),
    ("a@x.com", ""),
])
@pytest.mark.asyncio
async def test_rejects_malformed_credentials(email, password):
    with pytest.raises(AuthenticationError):
        await MockAuthProvider().authenticate(email, password)


@pytest.mark.asyncio
async def test_builds_starter_user():
    user = await MockAuthProvider().authenticate("a@x.com", "secret")

    assert user.name == "John Doe"
    assert user.email == "a@x.com"
    assert user.points == 2500

    plan = user.insurance_plan
    assert plan.plan_name == "Premium Health Plus"
    assert plan.plan_type == "PPO"
    assert plan.coverage_details.coinsurance == 0.2
    assert plan.coverage_details.out_of_pocket_max == 5000
    assert plan.claims == ()

    metrics = user.health_metrics
    assert metrics.steps == 8234
    assert metrics.blood_pressure.systolic == 120


@pytest.mark.asyncio
async def test_starter_activities_are_most_recent_first():
    user = await MockAuthProvider().authenticate("a@x.com", "secret")
    activities = user.recent_activities

    assert [a.type for a in activities] == [ActivityType.STEPS, ActivityType.WORKOUT, ActivityType.SLEEP]
    assert [a.points for a in activities] == [100, 200, 150]
    timestamps = [a.timestamp for a in activities]
    assert timestamps == sorted(timestamps, reverse=True)


@pytest.mark.asyncio
async def test_each_sign_in_gets_fresh_ids():
    provider = MockAuthProvider(starter_points=42)
    first = await provider.authenticate("a@x.com", "secret")
    second = await provider.authenticate("a@x.com", "secret")

    assert first.id != second.id
    assert first.points == 42
