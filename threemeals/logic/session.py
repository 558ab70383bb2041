"""PlannerSession: one caregiver's planning session.

Wires the plan editor, the view projector, the unlock gate and the session repository together
on a private event bus:

    plan.updated / email.captured  -> session snapshot saved (best effort)
    email.captured                 -> persistence observer saves plan + prefs remotely

Busy flags mirror the three classes of outstanding calls: ``generating``,
``editor.loading_alternatives`` and ``loading_plan``.
"""
import asyncio
import logging
from typing import List, Optional, Tuple

from threemeals.domain.FullMealPlan import FullMealPlan
from threemeals.domain.Meal import Meal
from threemeals.domain.SessionRecord import SessionRecord
from threemeals.domain.UserPreferences import UserPreferences
from threemeals.errors import InvalidPlanError, PlanBusyError, StoreError
from threemeals.events.Event_Bus import EventBus, PLAN_UPDATED, EMAIL_CAPTURED
from threemeals.events.event_helpers import publish_session_reset
from threemeals.events.persistence_observer import PersistenceObserver
from threemeals.infra.Plan_Store import PlanStore, get_plan
from threemeals.infra.Session_Repository import SessionRepository
from threemeals.infra.pdf_utils import generate_pdf_for_plan
from threemeals.logic.editing.plan_editor import PlanEditor, SwapTicket
from threemeals.logic.gating.unlock import UnlockGate, UnlockState
from threemeals.logic.preferences.tokens import toggle_item
from threemeals.logic.views.projector import ViewProjector, default_view_mode
from threemeals.utilities.validators import email_error, validate_plan_payload

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "No plan found for this email. Try creating a new one!"
LOOKUP_FAILED_MESSAGE = "Something went wrong. Please try again."


class PlannerSession:
    def __init__(self, ai, store: PlanStore, repository: Optional[SessionRepository] = None,
                 bus: Optional[EventBus] = None, shuffle_delay: Optional[float] = None, rng=None):
        self.ai = ai
        self.store = store
        self.repository = repository or SessionRepository()
        self.bus = bus or EventBus()
        self.prefs = UserPreferences()
        self.editor = PlanEditor(bus=self.bus, shuffle_delay=shuffle_delay, rng=rng)
        # One lock for the whole session: plan, prefs and gate change together
        self.lock = self.editor.lock
        self.gate = UnlockGate(bus=self.bus)
        self.projector = ViewProjector()
        self.generating = False
        self.loading_plan = False
        self.error: Optional[str] = None
        self._restoring = False

        self.observer = PersistenceObserver(store)
        self.observer.start(self.bus)
        self.bus.subscribe(PLAN_UPDATED, self._persist)
        self.bus.subscribe(EMAIL_CAPTURED, self._persist)

    # ---------------- session store ----------------
    def record(self) -> SessionRecord:
        plan = self.editor.plan
        return SessionRecord(
            meal_plan=plan.to_dict() if plan is not None else None,
            email=self.gate.email,
            email_captured=self.gate.email_captured,
            prefs=self.prefs,
        )

    def _persist(self, event_name=None, payload=None):
        if self._restoring:
            return
        record = self.record()
        if record.is_empty():
            return
        self.repository.save(record)

    def restore(self) -> bool:
        """Load the saved session, if any. Unreadable or invalid snapshots are ignored."""
        record = self.repository.load()
        if record is None:
            return False
        with self.lock:
            self._restoring = True
            try:
                self.prefs = record.prefs
                plan_loaded = False
                if record.meal_plan is not None:
                    try:
                        self.editor.initialize(validate_plan_payload(record.meal_plan))
                        plan_loaded = True
                    except InvalidPlanError:
                        logger.warning("Saved session holds an invalid plan; starting without it")
                self.gate.restore(record.email, record.email_captured, plan_loaded)
                self.projector.reset(self.prefs.cooking_situation)
            finally:
                self._restoring = False
        return True

    # ---------------- preferences ----------------
    def update_prefs(self, prefs: UserPreferences):
        with self.lock:
            self.prefs = prefs
            self._persist()

    def toggle_pref(self, field: str, item: str) -> UserPreferences:
        with self.lock:
            self.prefs = toggle_item(self.prefs, field, item)
            self._persist()
            return self.prefs

    # ---------------- generation ----------------
    async def generate(self) -> FullMealPlan:
        """Generate a plan for the current preferences.

        On failure the working copy is untouched and ``error`` carries the inline message.
        """
        with self.lock:
            if self.generating:
                raise PlanBusyError("A plan is already being generated")
            if not self.prefs.age:
                self.error = "Please select your child's age"
                raise ValueError(self.error)
            self.editor.ensure_idle()
            self.generating = True
            self.error = None
            self.gate.start_generation()
            prefs = self.prefs
        try:
            plan = await asyncio.to_thread(self.ai.generate_plan, prefs)
        except Exception as e:
            logger.exception("Meal plan generation error")
            with self.lock:
                self.error = f"Oof, something went wrong: {e}"
                self.gate.generation_failed()
                self.generating = False
            raise
        with self.lock:
            self.generating = False
            try:
                self.editor.initialize(plan)
            except PlanBusyError:
                self.error = "Please wait for the shuffle to finish and try again"
                self.gate.generation_failed()
                raise
            self.projector.reset(self.prefs.cooking_situation)
            self.gate.generation_succeeded()
            self._persist()
            return self.editor.plan

    # ---------------- email gate ----------------
    def submit_email(self, email: str) -> Optional[str]:
        """Capture the email for the generated plan. Returns an inline error message or None."""
        with self.lock:
            plan = self.editor.plan
            return self.gate.submit_email(email, plan.to_dict() if plan is not None else None, self.prefs.to_dict())

    async def lookup_returning_user(self, email: str) -> Optional[str]:
        """Restore a previously saved plan by email.

        Returns None when the plan was loaded, otherwise the inline message
        (not found and failure are reported differently).
        """
        message = email_error(email)
        if message:
            return message
        with self.lock:
            if self.loading_plan:
                raise PlanBusyError("Already looking up a plan")
            self.loading_plan = True
        try:
            result = await asyncio.to_thread(get_plan, self.store, email.strip())
        except StoreError:
            logger.exception("Failed to fetch plan for %s", email)
            return LOOKUP_FAILED_MESSAGE
        finally:
            self.loading_plan = False
        if not result.get("exists") or not result.get("mealPlan"):
            return NOT_FOUND_MESSAGE
        try:
            plan = validate_plan_payload(result["mealPlan"])
        except InvalidPlanError:
            logger.exception("Stored plan for %s failed validation", email)
            return LOOKUP_FAILED_MESSAGE
        with self.lock:
            # raises PlanBusyError mid-shuffle, before anything else changes
            self.editor.initialize(plan)
            self.prefs = UserPreferences.from_dict(result.get("prefs") or {})
            self.gate.returning_user_found(email)
            self.projector.reset(self.prefs.cooking_situation)
            self._persist()
        return None

    # ---------------- editing ----------------
    def edit_meal(self, day: int, slot: str, title: str, prep_notes: str, snack_index: Optional[int] = None) -> bool:
        return self.editor.edit_meal(day, slot, title, prep_notes, snack_index)

    def add_snack(self, day: int, title: str, prep_notes: str = "", prep_time: Optional[str] = None,
                  cook_time: Optional[str] = None) -> bool:
        return self.editor.add_snack(day, title, prep_notes, prep_time, cook_time)

    def remove_snack(self, day: int, index: int) -> bool:
        return self.editor.remove_snack(day, index)

    async def start_swap(self, day: int, slot: str,
                         snack_index: Optional[int] = None) -> Tuple[Optional[SwapTicket], Optional[List[Meal]]]:
        """Target (day, slot) and fetch alternatives; stale results come back as None."""
        self.editor.ensure_idle()
        ticket = self.editor.begin_swap(day, slot, snack_index)
        if ticket is None:
            return None, None
        alternatives = await self.editor.fetch_alternatives(ticket, self.ai, self.prefs)
        return ticket, alternatives

    def apply_swap(self, ticket_id: int, meal: Meal) -> bool:
        with self.lock:
            ticket = self.editor.swap_target
            if ticket is None or ticket.id != ticket_id:
                return False
            return self.editor.apply_alternative(ticket, meal)

    def cancel_swap(self):
        self.editor.cancel_swap()

    async def shuffle(self) -> bool:
        return await self.editor.shuffle()

    # ---------------- views ----------------
    def today(self):
        return self.projector.today(self.editor.plan)

    def calendar(self, week: Optional[int] = None):
        if week is not None:
            self.projector.select_week(week)
        return self.projector.calendar(self.editor.plan)

    def export_pdf(self) -> bytes:
        plan = self.editor.plan
        if plan is None:
            raise InvalidPlanError("There is no plan to export yet")
        return generate_pdf_for_plan(plan, self.prefs.age)

    # ---------------- reset ----------------
    def reset(self):
        """Drop the plan, the email and the saved session; back to the wizard entry point."""
        with self.lock:
            self._restoring = True
            try:
                self.editor.reset()
                self.gate.reset()
                self.projector.reset(self.prefs.cooking_situation)
                self.error = None
            finally:
                self._restoring = False
            self.repository.clear()
        publish_session_reset(self.bus)

    def snapshot(self) -> dict:
        plan = self.editor.plan
        swap = self.editor.swap_target
        return {
            **self.record().to_dict(),
            "mealPlan": plan.to_dict() if plan is not None else None,
            "unlock": self.gate.state.value,
            "view": self.projector.to_dict(),
            "defaultView": default_view_mode(self.prefs.cooking_situation),
            "busy": {
                "generating": self.generating,
                "loadingAlternatives": self.editor.loading_alternatives,
                "loadingPlan": self.loading_plan,
                "shuffling": self.editor.is_shuffling,
            },
            "swap": swap.to_dict() if swap is not None else None,
            "error": self.error,
        }

    @property
    def unlocked(self) -> bool:
        return self.gate.state == UnlockState.UNLOCKED


__all__ = ["PlannerSession", "NOT_FOUND_MESSAGE", "LOOKUP_FAILED_MESSAGE"]
