"""Persistence adapter for email.captured events.

The unlock state machine only announces that an email was captured. This observer turns the
announcement into a Remote Persistence save and owns the retry and logging policy, so a failed
save never blocks or reaches the state machine.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List

from .Event_Bus import EventBus, EMAIL_CAPTURED

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class PersistenceObserver:
    def __init__(self, store, attempts: int = MAX_ATTEMPTS):
        self.store = store
        self.attempts = max(1, attempts)
        self.failures: List[Dict[str, Any]] = []
        self._bus = None

    def start(self, bus: EventBus):
        """Idempotent start: subscribe once per bus."""
        if self._bus is bus:
            return
        bus.subscribe(EMAIL_CAPTURED, self._on_email_captured)
        self._bus = bus

    def stop(self):
        if self._bus is not None:
            self._bus.unsubscribe(EMAIL_CAPTURED, self._on_email_captured)
            self._bus = None

    def _on_email_captured(self, event_name: str, payload: Dict[str, Any]):
        email = payload.get('email')
        for attempt in range(1, self.attempts + 1):
            try:
                if self.store.save(email, payload.get('mealPlan'), payload.get('prefs')):
                    logger.info("Saved plan for %s", email)
                    return
                logger.warning("Plan store refused save for %s (attempt %d)", email, attempt)
            except Exception:
                logger.exception("Failed to save plan for %s (attempt %d)", email, attempt)
        self.failures.append({'email': email, 'event': event_name})


__all__ = ['PersistenceObserver']
