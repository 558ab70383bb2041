"""Event helper utilities.

Quick import:
    from threemeals.events.event_helpers import (
        publish_plan_updated, publish_email_captured, publish_session_reset
    )
"""
from __future__ import annotations
from typing import Optional

from .Event_Bus import EventBus, PLAN_UPDATED, EMAIL_CAPTURED, SESSION_RESET

__all__ = [
    'publish_plan_updated', 'publish_email_captured', 'publish_session_reset',
    'PLAN_UPDATED', 'EMAIL_CAPTURED', 'SESSION_RESET'
]


def publish_plan_updated(bus: Optional[EventBus], plan):
    """Publish a plan.updated event after any change to the working copy."""
    if bus is not None:
        bus.publish(PLAN_UPDATED, {'plan': plan})


def publish_email_captured(bus: Optional[EventBus], email: str, meal_plan: Optional[dict], prefs: dict):
    """Publish an email.captured event.

    Payload structure:
        {'email': <str>, 'mealPlan': <dict or None>, 'prefs': <dict>}
    """
    if bus is not None:
        bus.publish(EMAIL_CAPTURED, {
            'email': email,
            'mealPlan': meal_plan,
            'prefs': prefs,
        })


def publish_session_reset(bus: Optional[EventBus]):
    if bus is not None:
        bus.publish(SESSION_RESET, None)
