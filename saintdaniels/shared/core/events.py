"""Canonical event definitions for the SaintDaniels session store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .event_bus import EventPayload

if TYPE_CHECKING:
    from saintdaniels.shared.domain.models import (
        Activity,
        HealthGoal,
        HealthMetrics,
        OperationError,
        Redemption,
        SessionSnapshot,
        User,
    )

# Session lifecycle
TOPIC_SIGNED_IN = "session.signed_in"
TOPIC_SIGNED_OUT = "session.signed_out"
TOPIC_LOADING_CHANGED = "session.loading"
TOPIC_OPERATION_FAILED = "session.error"
TOPIC_ERROR_CLEARED = "session.error_cleared"

# Per-user mutations
TOPIC_METRICS_UPDATED = "health.metrics_updated"
TOPIC_POINTS_ADDED = "points.added"
TOPIC_ACTIVITY_RECORDED = "activity.recorded"
TOPIC_REWARD_REDEEMED = "reward.redeemed"

# Catalog & goals
TOPIC_REWARDS_LOADED = "rewards.loaded"
TOPIC_GOAL_ADDED = "goal.added"
TOPIC_GOAL_UPDATED = "goal.updated"

# Published after every mutation, loading flip and rejected operation; payload carries the full snapshot
TOPIC_STATE_CHANGED = "state.changed"


def create_signed_in_event(user: "User") -> EventPayload:
    return {
        "user_id": user.id,
        "email": user.email,
    }


def create_signed_out_event(user_id: str) -> EventPayload:
    return {"user_id": user_id}


def create_metrics_updated_event(user_id: str, metrics: "HealthMetrics") -> EventPayload:
    return {
        "user_id": user_id,
        "metrics": metrics,
    }


def create_points_added_event(user_id: str, amount: int, balance: int) -> EventPayload:
    """Create a points added event.

    Args:
        user_id: User whose balance changed
        amount: Signed adjustment that was applied
        balance: Balance after the adjustment
    """
    return {
        "user_id": user_id,
        "amount": amount,
        "balance": balance,
    }


def create_activity_recorded_event(user_id: str, activity: "Activity", balance: int) -> EventPayload:
    return {
        "user_id": user_id,
        "activity": activity,
        "balance": balance,
    }


def create_reward_redeemed_event(redemption: "Redemption", balance: int) -> EventPayload:
    """Create a reward redeemed event from the ledger receipt."""
    return {
        "user_id": redemption.user_id,
        "reward_id": redemption.reward_id,
        "points_cost": redemption.points_cost,
        "request_id": redemption.request_id,
        "balance": balance,
    }


def create_rewards_loaded_event(count: int) -> EventPayload:
    return {"count": count}


def create_goal_event(goal: "HealthGoal") -> EventPayload:
    """Create a goal added/updated event."""
    return {"goal": goal}


def create_state_changed_event(change: str, snapshot: "SessionSnapshot") -> EventPayload:
    """Create a state changed event.

    Args:
        change: Topic of the mutation that produced this snapshot
        snapshot: Immutable store snapshot after the mutation
    """
    return {
        "change": change,
        "snapshot": snapshot,
    }


def create_loading_changed_event(is_loading: bool) -> EventPayload:
    return {"is_loading": is_loading}


def create_operation_failed_event(error: "OperationError") -> EventPayload:
    """Create an operation failed event for a rejected store mutation."""
    return {
        "operation": error.operation,
        "error_type": error.error_type,
        "message": error.message,
    }
