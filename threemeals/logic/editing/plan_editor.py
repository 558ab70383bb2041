"""Plan editor: owns the working copy of a FullMealPlan and applies user mutations.

Every mutation replaces the affected DailyPlan with a fresh copy (copy-on-write per day), so
other days keep both their value and their identity. Meals are never patched in place.

Swap flow:
    ticket = editor.begin_swap(day, "lunch")
    alternatives = await editor.fetch_alternatives(ticket, provider, prefs)   # None when stale
    editor.apply_alternative(ticket, alternatives[0])

A ticket is only honoured while it is the live swap target. Starting another swap or cancelling
makes older tickets stale, and any late response for them is discarded.
"""
import asyncio
import itertools
import logging
import random
import threading
from typing import List, Optional, Union

from threemeals.domain.DailyPlan import DailyPlan
from threemeals.domain.FullMealPlan import FullMealPlan
from threemeals.domain.Meal import Meal
from threemeals.errors import AlternativesError, PlanBusyError
from threemeals.events.Event_Bus import EventBus
from threemeals.events.event_helpers import publish_plan_updated
from threemeals.logic.editing.legacy import upgrade_plan
from threemeals.utilities.config import SHUFFLE_DELAY_MS
from threemeals.utilities.constants import (
    MAIN_SLOTS, SNACK_SLOT, MAX_AVOID_TITLES, DEFAULT_SNACK_PREP_TIME, DEFAULT_SNACK_COOK_TIME
)

logger = logging.getLogger(__name__)

_ticket_ids = itertools.count(1)


class SwapTicket:
    """Tag for one outstanding swap request: the (day, slot) it targets."""

    def __init__(self, day: int, slot: str, snack_index: Optional[int] = None):
        self.id = next(_ticket_ids)
        self.day = day
        self.slot = slot
        self.snack_index = snack_index

    def to_dict(self):
        return {"ticket": self.id, "day": self.day, "slot": self.slot, "snackIndex": self.snack_index}

    def __repr__(self) -> str:
        return f"SwapTicket(#{self.id} day={self.day} slot={self.slot} snack_index={self.snack_index})"


def _valid_slot(slot: str, snack_index: Optional[int]) -> bool:
    if slot in MAIN_SLOTS:
        return True
    return slot == SNACK_SLOT and snack_index is not None


class PlanEditor:
    def __init__(self, bus: Optional[EventBus] = None, shuffle_delay: Optional[float] = None,
                 rng: Optional[random.Random] = None):
        self._plan: Optional[FullMealPlan] = None
        self._bus = bus
        self._rng = rng or random.Random()
        self.shuffle_delay = SHUFFLE_DELAY_MS / 1000.0 if shuffle_delay is None else shuffle_delay
        self._shuffling = False
        self._shuffle_token: Optional[object] = None
        self._swap_target: Optional[SwapTicket] = None
        self.loading_alternatives = False
        # Route handlers run in a threadpool; every read-modify-write of the working copy holds this
        self.lock = threading.RLock()

    # ---------------- state ----------------
    @property
    def plan(self) -> Optional[FullMealPlan]:
        return self._plan

    @property
    def is_shuffling(self) -> bool:
        return self._shuffling

    @property
    def swap_target(self) -> Optional[SwapTicket]:
        return self._swap_target

    def _changed(self):
        publish_plan_updated(self._bus, self._plan)

    def _guard(self):
        if self._shuffling:
            raise PlanBusyError("Shuffle in progress; wait for it to finish")

    def ensure_idle(self):
        """Raise PlanBusyError while a shuffle is pending."""
        with self.lock:
            self._guard()

    def _replace_day(self, index: int, day: DailyPlan):
        days = list(self._plan.days)
        days[index] = day
        self._plan = FullMealPlan(days, self._plan.weeks)

    # ---------------- initialize / reset ----------------
    def initialize(self, plan: Union[FullMealPlan, dict]) -> FullMealPlan:
        """Take ownership of a plan, normalizing every day's snacks to a list.

        Refused while a shuffle is pending, so the pending commit never permutes a plan it
        was not started on.
        """
        raw = plan.to_dict() if isinstance(plan, FullMealPlan) else plan
        with self.lock:
            self._guard()
            self._plan = FullMealPlan.from_dict(upgrade_plan(raw))
            self._swap_target = None
            self.loading_alternatives = False
            self._changed()
            return self._plan

    def reset(self):
        with self.lock:
            self._plan = None
            self._swap_target = None
            self._shuffling = False
            self._shuffle_token = None
            self.loading_alternatives = False
            self._changed()

    # ---------------- edit ----------------
    def edit_meal(self, day: int, slot: str, title: str, prep_notes: str,
                  snack_index: Optional[int] = None) -> bool:
        """Replace title/notes of one meal, keeping its prep and cook times.

        Returns False (no change) when the day or the snack index does not exist.
        """
        with self.lock:
            self._guard()
            if self._plan is None or not _valid_slot(slot, snack_index):
                return False
            idx = self._plan.index_of(day)
            if idx < 0:
                return False
            current = self._plan.days[idx].get_meal(slot, snack_index)
            if current is None:
                return False
            self._put_meal(idx, slot, snack_index, current.with_text(title, prep_notes))
            return True

    def _put_meal(self, idx: int, slot: str, snack_index: Optional[int], meal: Meal):
        updated = self._plan.days[idx].copy()
        if slot in MAIN_SLOTS:
            setattr(updated, slot, meal)
        else:
            updated.snacks[snack_index] = meal
        self._replace_day(idx, updated)
        self._changed()

    # ---------------- snacks ----------------
    def add_snack(self, day: int, title: str, prep_notes: str = "", prep_time: Optional[str] = None,
                  cook_time: Optional[str] = None) -> bool:
        with self.lock:
            self._guard()
            if self._plan is None:
                return False
            idx = self._plan.index_of(day)
            if idx < 0:
                return False
            updated = self._plan.days[idx].copy()
            updated.snacks.append(Meal(title, prep_notes,
                                       prep_time or DEFAULT_SNACK_PREP_TIME,
                                       cook_time or DEFAULT_SNACK_COOK_TIME))
            self._replace_day(idx, updated)
            self._changed()
            return True

    def remove_snack(self, day: int, index: int) -> bool:
        with self.lock:
            self._guard()
            if self._plan is None:
                return False
            idx = self._plan.index_of(day)
            if idx < 0:
                return False
            updated = self._plan.days[idx].copy()
            if not 0 <= index < len(updated.snacks):
                return False
            del updated.snacks[index]
            self._replace_day(idx, updated)
            self._changed()
            return True

    # ---------------- swap ----------------
    def avoid_titles(self) -> List[str]:
        """Main-meal titles the alternatives must not repeat (snacks excluded, capped)."""
        plan = self._plan
        if plan is None:
            return []
        return plan.main_titles()[:MAX_AVOID_TITLES]

    def begin_swap(self, day: int, slot: str, snack_index: Optional[int] = None) -> Optional[SwapTicket]:
        """Make (day, slot) the live swap target; any older ticket becomes stale."""
        with self.lock:
            if self._plan is None or self._shuffling or not _valid_slot(slot, snack_index):
                return None
            found = self._plan.find_day(day)
            if found is None or found.get_meal(slot, snack_index) is None:
                return None
            self._swap_target = SwapTicket(day, slot, snack_index)
            return self._swap_target

    def cancel_swap(self):
        with self.lock:
            self._swap_target = None
            self.loading_alternatives = False

    def is_current(self, ticket: Optional[SwapTicket]) -> bool:
        return ticket is not None and self._swap_target is ticket

    async def fetch_alternatives(self, ticket: SwapTicket, provider, prefs) -> Optional[List[Meal]]:
        """Ask the provider for candidates for ``ticket``.

        Returns None when the ticket went stale while the request was outstanding.
        Raises AlternativesError on provider failure; the ticket stays pending so the caller
        can retry or cancel.
        """
        with self.lock:
            if not self.is_current(ticket):
                return None
            current = self._plan.find_day(ticket.day).get_meal(ticket.slot, ticket.snack_index)
            avoid = self.avoid_titles()
            self.loading_alternatives = True
        try:
            call = provider.get_alternatives
            if asyncio.iscoroutinefunction(call):
                alternatives = await call(prefs, ticket.slot, current, avoid)
            else:
                alternatives = await asyncio.to_thread(call, prefs, ticket.slot, current, avoid)
        except AlternativesError:
            raise
        except Exception as e:
            logger.exception("Failed to fetch alternatives for %r", ticket)
            raise AlternativesError(f"Could not load alternatives: {e}") from e
        finally:
            with self.lock:
                if self.is_current(ticket):
                    self.loading_alternatives = False
        if not self.is_current(ticket):
            logger.debug("Discarding alternatives for stale %r", ticket)
            return None
        return list(alternatives)

    def apply_alternative(self, ticket: SwapTicket, meal: Meal) -> bool:
        """Replace the whole meal at the ticket's slot (times included) with ``meal``."""
        with self.lock:
            self._guard()
            if not self.is_current(ticket):
                return False
            self._swap_target = None
            idx = self._plan.index_of(ticket.day)
            if idx < 0 or self._plan.days[idx].get_meal(ticket.slot, ticket.snack_index) is None:
                return False
            self._put_meal(idx, ticket.slot, ticket.snack_index, meal)
            return True

    # ---------------- shuffle ----------------
    def begin_shuffle(self) -> Optional[object]:
        """Enter the in-progress state and return its token (None when there is no plan).

        Raises PlanBusyError when a shuffle is already running.

        Any pending swap is dropped: after the reorder its (day, slot) names a different meal.
        """
        with self.lock:
            if self._shuffling:
                raise PlanBusyError("Shuffle already in progress")
            if self._plan is None:
                return None
            self._shuffling = True
            self._shuffle_token = object()
            self._swap_target = None
            self.loading_alternatives = False
            return self._shuffle_token

    def commit_shuffle(self):
        """Permute the days and renumber them 1..N. Weekly data is left untouched."""
        with self.lock:
            try:
                days = list(self._plan.days)
                self._rng.shuffle(days)
                self._plan = FullMealPlan([d.copy(day=i + 1) for i, d in enumerate(days)], self._plan.weeks)
            finally:
                self._shuffling = False
                self._shuffle_token = None
            self._changed()

    async def shuffle(self) -> bool:
        token = self.begin_shuffle()
        if token is None:
            return False
        try:
            await asyncio.sleep(self.shuffle_delay)
        except BaseException:
            with self.lock:
                if self._shuffle_token is token:
                    self._shuffling = False
                    self._shuffle_token = None
            raise
        with self.lock:
            if self._shuffle_token is not token or self._plan is None:
                # reset while waiting
                return False
            self.commit_shuffle()
        return True


__all__ = ["PlanEditor", "SwapTicket"]
