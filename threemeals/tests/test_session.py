import tempfile
import unittest
from pathlib import Path

from threemeals.infra.Session_Repository import MemoryStorage, SessionRepository
from threemeals.logic.gating.unlock import UnlockState
from threemeals.logic.session import PlannerSession, NOT_FOUND_MESSAGE, LOOKUP_FAILED_MESSAGE
from threemeals.domain.UserPreferences import UserPreferences
from threemeals.errors import PlanBusyError, PlanGenerationError, StoreError
from threemeals.infra.Plan_Store import JsonPlanStore
from threemeals.infra.Redis_Store import RedisPlanStore
from threemeals.tests.fakes import FakeAI, FakeRedis, make_plan


class MemoryPlanStore:
    def __init__(self, fail=False):
        self.plans = {}
        self.fail = fail

    def save(self, email, meal_plan, prefs):
        if self.fail:
            raise StoreError("down")
        self.plans[email.lower()] = {"mealPlan": meal_plan, "prefs": prefs}
        return True

    def get(self, email):
        if self.fail:
            raise StoreError("down")
        return self.plans.get(email.lower())

    def list_emails(self):
        return [{"email": e, "timestamp": ""} for e in self.plans]


class TestPlannerSession(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.storage = MemoryStorage()
        self.store = MemoryPlanStore()
        self.ai = FakeAI()
        self.session = self._session()

    def _session(self):
        return PlannerSession(self.ai, self.store, repository=SessionRepository(self.storage), shuffle_delay=0)

    async def test_generate_requires_age(self):
        with self.assertRaises(ValueError):
            await self.session.generate()
        self.assertEqual(self.ai.plan_calls, 0)

    async def test_generate_then_unlock_saves_remotely(self):
        self.session.update_prefs(UserPreferences(age="2 years", cooking_situation="surviving"))
        await self.session.generate()
        self.assertEqual(self.session.gate.state, UnlockState.AWAITING_EMAIL)
        self.assertEqual(self.session.projector.view_mode, "today")

        self.assertEqual(self.session.submit_email("nope"), "Please enter a valid email address")
        self.assertIsNone(self.session.submit_email("Parent@Example.com"))
        self.assertTrue(self.session.unlocked)
        saved = self.store.get("parent@example.com")
        self.assertEqual(len(saved["mealPlan"]["days"]), 28)
        self.assertEqual(saved["prefs"]["age"], "2 years")

    async def test_failed_generation_keeps_previous_plan(self):
        self.session.update_prefs(UserPreferences(age="2 years"))
        await self.session.generate()
        before = self.session.editor.plan
        self.ai.fail_plan = PlanGenerationError("model down")
        with self.assertRaises(PlanGenerationError):
            await self.session.generate()
        self.assertIs(self.session.editor.plan, before)
        self.assertTrue(self.session.error.startswith("Oof, something went wrong"))
        self.assertFalse(self.session.generating)

    async def test_restart_restores_session(self):
        self.session.update_prefs(UserPreferences(age="2 years"))
        await self.session.generate()
        self.session.submit_email("p@example.com")
        self.session.edit_meal(1, "lunch", "Soup", "blend it")

        restored = self._session()
        self.assertTrue(restored.restore())
        self.assertEqual(restored.editor.plan.find_day(1).lunch.title, "Soup")
        self.assertEqual(restored.gate.state, UnlockState.UNLOCKED)
        self.assertEqual(restored.prefs.age, "2 years")

    async def test_restore_skips_invalid_plan(self):
        self.storage.set_item("3meals_session", '{"mealPlan": {"days": []}, "email": "p@example.com"}')
        self.assertTrue(self.session.restore())
        self.assertIsNone(self.session.editor.plan)
        self.assertEqual(self.session.gate.state, UnlockState.COLLECTING)

    async def test_reset_clears_saved_session(self):
        self.session.update_prefs(UserPreferences(age="2 years"))
        await self.session.generate()
        self.session.reset()
        self.assertIsNone(self.storage.get_item("3meals_session"))
        self.assertIsNone(self.session.editor.plan)
        self.assertFalse(self._session().restore())

    async def test_returning_user(self):
        self.store.save("back@example.com", make_plan(days=7, weeks=1), {"age": "3 years"})
        self.assertIsNone(await self.session.lookup_returning_user("back@example.com"))
        self.assertTrue(self.session.unlocked)
        self.assertEqual(self.session.prefs.age, "3 years")
        self.assertEqual(len(self.session.editor.plan.days), 7)

    async def test_returning_user_not_found_or_failing(self):
        self.assertEqual(await self.session.lookup_returning_user("who@example.com"), NOT_FOUND_MESSAGE)
        self.store.fail = True
        self.assertEqual(await self.session.lookup_returning_user("who@example.com"), LOOKUP_FAILED_MESSAGE)
        self.assertFalse(self.session.loading_plan)

    async def test_corrupt_stored_plan_reports_lookup_failure(self):
        redis = FakeRedis()
        redis.values["plan:back@example.com"] = "{truncated"
        self.session.store = RedisPlanStore(client=redis)
        self.assertEqual(await self.session.lookup_returning_user("back@example.com"), LOOKUP_FAILED_MESSAGE)
        self.assertFalse(self.session.loading_plan)

        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "plans.json"
        path.write_text("[\"not\", \"an object\"]", encoding="utf-8")
        self.session.store = JsonPlanStore(path)
        self.assertEqual(await self.session.lookup_returning_user("back@example.com"), LOOKUP_FAILED_MESSAGE)

    async def test_swap_through_session(self):
        self.session.update_prefs(UserPreferences(age="2 years"))
        await self.session.generate()
        ticket, alternatives = await self.session.start_swap(1, "breakfast")
        self.assertTrue(self.session.apply_swap(ticket.id, alternatives[0]))
        self.assertEqual(self.session.editor.plan.find_day(1).breakfast.title, "Veggie Omelette")
        self.assertFalse(self.session.apply_swap(ticket.id, alternatives[1]))

    async def test_plan_not_replaced_while_shuffling(self):
        self.session.update_prefs(UserPreferences(age="2 years"))
        await self.session.generate()
        current = self.session.editor.plan
        self.session.editor.begin_shuffle()
        with self.assertRaises(PlanBusyError):
            await self.session.generate()
        self.assertEqual(self.ai.plan_calls, 1)

        self.store.save("back@example.com", make_plan(days=7, weeks=1), {"age": "3 years"})
        with self.assertRaises(PlanBusyError):
            await self.session.lookup_returning_user("back@example.com")
        self.assertIs(self.session.editor.plan, current)
        self.assertEqual(self.session.prefs.age, "2 years")
        self.assertFalse(self.session.unlocked)
        self.session.editor.commit_shuffle()

    async def test_remote_failure_does_not_block_unlock(self):
        self.store.fail = True
        self.session.update_prefs(UserPreferences(age="2 years"))
        await self.session.generate()
        self.assertIsNone(self.session.submit_email("p@example.com"))
        self.assertTrue(self.session.unlocked)
        self.assertEqual(len(self.session.observer.failures), 1)


if __name__ == '__main__':
    unittest.main()
