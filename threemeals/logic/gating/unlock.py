"""Email-gated unlock state machine.

States:
    COLLECTING     -> wizard entry point, nothing generated yet
    GENERATING     -> plan generation outstanding
    AWAITING_EMAIL -> plan ready, hidden until an email is captured
    UNLOCKED       -> plan visible (terminal until reset)

The machine performs no I/O. Capturing an email publishes an ``email.captured`` event; whatever
listens (the persistence observer) decides how to store it.
"""
import logging
from enum import Enum
from typing import Optional

from threemeals.events.Event_Bus import EventBus
from threemeals.events.event_helpers import publish_email_captured
from threemeals.utilities.validators import email_error

logger = logging.getLogger(__name__)


class UnlockState(str, Enum):
    COLLECTING = "collecting"
    GENERATING = "generating"
    AWAITING_EMAIL = "awaiting_email"
    UNLOCKED = "unlocked"


class UnlockGate:
    def __init__(self, bus: Optional[EventBus] = None):
        self._bus = bus
        self.state = UnlockState.COLLECTING
        self.email = ""
        self.email_captured = False
        self._resume_state = UnlockState.COLLECTING

    def restore(self, email: str, email_captured: bool, has_plan: bool):
        """Rebuild state from a saved session."""
        self.email = email or ""
        self.email_captured = bool(email_captured)
        if has_plan:
            self.state = UnlockState.UNLOCKED if self.email_captured else UnlockState.AWAITING_EMAIL
        else:
            self.state = UnlockState.COLLECTING

    def start_generation(self):
        self._resume_state = self.state
        self.state = UnlockState.GENERATING

    def generation_succeeded(self):
        if self.state != UnlockState.GENERATING:
            logger.warning("Generation finished while in state %s", self.state.value)
        self.state = UnlockState.UNLOCKED if self.email_captured and self.email else UnlockState.AWAITING_EMAIL

    def generation_failed(self):
        self.state = self._resume_state if self._resume_state != UnlockState.GENERATING else UnlockState.COLLECTING

    def submit_email(self, email: str, meal_plan: Optional[dict], prefs: dict) -> Optional[str]:
        """Capture ``email`` after a plan was generated.

        Returns an inline error message, or None when the email was accepted. An invalid email
        never flips ``email_captured``.
        """
        message = email_error(email)
        if message:
            return message
        self.email = email.strip()
        self.email_captured = True
        if self.state == UnlockState.AWAITING_EMAIL:
            self.state = UnlockState.UNLOCKED
        publish_email_captured(self._bus, self.email, meal_plan, prefs)
        return None

    def returning_user_found(self, email: str):
        self.email = email.strip()
        self.email_captured = True
        self.state = UnlockState.UNLOCKED

    def reset(self):
        self.state = UnlockState.COLLECTING
        self._resume_state = UnlockState.COLLECTING
        self.email = ""
        self.email_captured = False

    def to_dict(self):
        return {"state": self.state.value, "email": self.email, "emailCaptured": self.email_captured}


__all__ = ["UnlockGate", "UnlockState"]
