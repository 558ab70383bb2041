"""Simple Event Bus / Observer implementation for planner events.

Event names:
  plan.updated    -> payload {"plan": FullMealPlan | None}
  email.captured  -> payload {"email": str, "mealPlan": dict | None, "prefs": dict}
  session.reset   -> payload None

Subscribers are callables taking (event_name, payload). Each PlannerSession owns its own bus;
there is no process-wide instance.
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
PLAN_UPDATED = "plan.updated"
EMAIL_CAPTURED = "email.captured"
SESSION_RESET = "session.reset"


class EventBus:
	def __init__(self):
		self._subscribers: Dict[str, List[Callable[[str, Any], None]]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		if callback not in self._subscribers[event_name]:
			self._subscribers[event_name].append(callback)

	def unsubscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		try:
			self._subscribers[event_name].remove(callback)
		except (ValueError, KeyError):
			pass

	def publish(self, event_name: str, payload: Any = None):
		# Delivery is one-way: a failing subscriber never reaches the publisher
		for cb in list(self._subscribers.get(event_name, [])):
			try:
				cb(event_name, payload)
			except Exception:
				logger.exception("Error delivering %s to %r", event_name, cb)


__all__ = ['EventBus', 'PLAN_UPDATED', 'EMAIL_CAPTURED', 'SESSION_RESET']
