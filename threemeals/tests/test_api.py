import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from threemeals.api.api_run import create_app
from threemeals.errors import AIUnavailableError
from threemeals.infra.Plan_Store import JsonPlanStore
from threemeals.domain.SessionRecord import SessionRecord
from threemeals.domain.UserPreferences import UserPreferences
from threemeals.infra.Session_Repository import MemoryStorage, SessionRepository
from threemeals.logic.session import PlannerSession
from threemeals.tests.fakes import FakeAI, make_plan

PREFS = {"age": "2 years", "eatingStyle": "finger-foods", "favorites": "pasta",
         "cookingSituation": "batching"}


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.ai = FakeAI()
        self.store = JsonPlanStore(Path(self.tmp.name) / "plans.json")
        self.planner = PlannerSession(self.ai, self.store,
                                      repository=SessionRepository(MemoryStorage()), shuffle_delay=0)
        self.app = create_app(ai=self.ai, store=self.store, planner=self.planner, restore=False)
        self.client = TestClient(self.app)


class TestStatelessEndpoints(ApiTestCase):

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_generate_plan(self):
        resp = self.client.post("/api/generate-plan", json=PREFS)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(len(resp.json()["days"]), 28)

    def test_generate_plan_needs_age(self):
        resp = self.client.post("/api/generate-plan", json={**PREFS, "age": " "})
        self.assertEqual(resp.status_code, 400)

    def test_generate_plan_without_key(self):
        self.ai.fail_plan = AIUnavailableError("API key not configured")
        self.assertEqual(self.client.post("/api/generate-plan", json=PREFS).status_code, 503)

    def test_alternatives(self):
        resp = self.client.post("/api/get-alternatives", json={
            "prefs": PREFS, "mealType": "breakfast",
            "currentMeal": {"title": "Porridge", "prepNotes": ""},
            "existingTitles": ["Porridge"],
        })
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(len(resp.json()), 3)
        self.assertEqual(self.ai.alternative_calls[0][0], "breakfast")

    def test_alternatives_rejects_unknown_meal_type(self):
        resp = self.client.post("/api/get-alternatives", json={
            "prefs": PREFS, "mealType": "brunch", "currentMeal": {"title": "Porridge"},
        })
        self.assertEqual(resp.status_code, 422)

    def test_save_and_get_plan(self):
        plan = make_plan(days=7, weeks=1)
        resp = self.client.post("/api/save-email", json={"email": "p@example.com", "mealPlan": plan, "prefs": PREFS})
        self.assertEqual(resp.json(), {"success": True})
        found = self.client.post("/api/get-plan", json={"email": "P@example.com"}).json()
        self.assertTrue(found["exists"])
        self.assertEqual(len(found["mealPlan"]["days"]), 7)
        emails = self.client.get("/api/emails").json()
        self.assertEqual(emails["count"], 1)

    def test_get_plan_unknown_email(self):
        self.assertEqual(self.client.post("/api/get-plan", json={"email": "x@example.com"}).json(), {"exists": False})

    def test_bad_email_rejected(self):
        self.assertEqual(self.client.post("/api/save-email", json={"email": "foo@bar"}).status_code, 422)

    def test_export_pdf(self):
        resp = self.client.post("/api/export-pdf", json={"mealPlan": make_plan(days=7, weeks=1, legacy=True),
                                                         "prefs": PREFS})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.headers["content-type"], "application/pdf")
        self.assertTrue(resp.content.startswith(b"%PDF"))

    def test_suggested_snacks(self):
        self.assertGreater(len(self.client.get("/api/suggested-snacks").json()), 0)


class TestSessionFlow(ApiTestCase):

    def _generate(self):
        self.assertEqual(self.client.put("/api/session/prefs", json=PREFS).status_code, 200)
        resp = self.client.post("/api/session/generate")
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()

    def test_wizard_to_unlocked_plan(self):
        data = self._generate()
        self.assertEqual(data["unlock"], "awaiting_email")
        self.assertEqual(data["defaultView"], "calendar")

        resp = self.client.post("/api/session/email", json={"email": "foo@bar"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Please enter a valid email address")

        data = self.client.post("/api/session/email", json={"email": "p@example.com"}).json()
        self.assertEqual(data["unlock"], "unlocked")
        self.assertTrue(self.client.post("/api/get-plan", json={"email": "p@example.com"}).json()["exists"])

    def test_generate_without_age(self):
        self.assertEqual(self.client.post("/api/session/generate").status_code, 400)

    def test_editing_endpoints(self):
        self._generate()
        resp = self.client.post("/api/session/meals/edit",
                                json={"day": 1, "slot": "dinner", "title": "Fish Pie", "prepNotes": "freeze half"})
        self.assertEqual(resp.json()["day"]["dinner"]["cookTime"], "30 mins")

        resp = self.client.post("/api/session/snacks", json={"day": 1, "title": "Apple"})
        self.assertEqual(resp.json()["day"]["snacks"][0]["prepTime"], "5 mins")
        resp = self.client.delete("/api/session/snacks/1/0")
        self.assertEqual(resp.json()["day"]["snacks"], [])

    def test_swap_flow(self):
        self._generate()
        resp = self.client.post("/api/session/swap", json={"day": 2, "slot": "lunch"})
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        chosen = body["alternatives"][1]
        resp = self.client.post("/api/session/swap/apply", json={"ticket": body["swap"]["ticket"], "meal": chosen})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["mealPlan"]["days"][1]["lunch"]["title"], "Oat Pancakes")
        again = self.client.post("/api/session/swap/apply", json={"ticket": body["swap"]["ticket"], "meal": chosen})
        self.assertEqual(again.status_code, 409)

    def test_swap_on_missing_snack(self):
        self._generate()
        resp = self.client.post("/api/session/swap", json={"day": 1, "slot": "snack", "snackIndex": 0})
        self.assertEqual(resp.status_code, 404)

    def test_shuffle_and_views(self):
        self._generate()
        data = self.client.post("/api/session/shuffle").json()
        self.assertEqual([d["day"] for d in data["mealPlan"]["days"]], list(range(1, 29)))

        cal = self.client.get("/api/session/calendar", params={"week": 2}).json()
        self.assertEqual([d["day"] for d in cal["days"]], list(range(8, 15)))
        self.assertEqual(self.client.get("/api/session/calendar", params={"week": 0}).status_code, 400)

        self.assertEqual(self.client.get("/api/session/today").json()["index"], 0)
        self.assertEqual(self.client.post("/api/session/today/next").json()["index"], 1)
        self.assertEqual(self.client.post("/api/session/today/prev").json()["index"], 0)
        self.assertEqual(self.client.post("/api/session/today/prev").json()["index"], 0)

        view = self.client.post("/api/session/view", json={"mode": "today", "showSnacks": False}).json()
        self.assertEqual(view["viewMode"], "today")
        self.assertFalse(view["showSnacks"])

        item = cal["groceryList"][0]["item"]
        self.assertTrue(self.client.post("/api/session/grocery/toggle", json={"item": item}).json()["checked"])

    def test_pdf_and_reset(self):
        self.assertEqual(self.client.get("/api/session/pdf").status_code, 404)
        self._generate()
        self.assertTrue(self.client.get("/api/session/pdf").content.startswith(b"%PDF"))
        data = self.client.post("/api/session/reset").json()
        self.assertIsNone(data["mealPlan"])
        self.assertEqual(data["unlock"], "collecting")

    def test_returning_user(self):
        self.store.save("back@example.com", make_plan(days=7, weeks=1), PREFS)
        resp = self.client.post("/api/session/returning-user", json={"email": "back@example.com"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["unlock"], "unlocked")
        missing = self.client.post("/api/session/returning-user", json={"email": "new@example.com"})
        self.assertEqual(missing.status_code, 404)

    def test_toggle_preference(self):
        resp = self.client.post("/api/session/prefs/toggle", json={"field": "allergies", "item": "eggs"})
        self.assertEqual(resp.json()["allergies"], "eggs")
        self.assertEqual(self.client.post("/api/session/prefs/toggle",
                                          json={"field": "age", "item": "x"}).status_code, 400)


class TestStartupRestore(unittest.TestCase):

    def test_saved_session_restored_on_startup(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        ai = FakeAI()
        store = JsonPlanStore(Path(tmp.name) / "plans.json")
        repository = SessionRepository(MemoryStorage())
        repository.save(SessionRecord(meal_plan=make_plan(days=7, weeks=1), email="saved@example.com",
                                      email_captured=True, prefs=UserPreferences(age="3 years")))
        planner = PlannerSession(ai, store, repository=repository, shuffle_delay=0)
        app = create_app(ai=ai, store=store, planner=planner, restore=True)

        self.assertIsNone(planner.editor.plan)
        with TestClient(app) as client:
            body = client.get("/api/session").json()
            self.assertEqual(body["unlock"], "unlocked")
            self.assertEqual(len(body["mealPlan"]["days"]), 7)
            self.assertEqual(body["prefs"]["age"], "3 years")
        self.assertIsNone(planner.observer._bus)

    def test_no_restore_when_disabled(self):
        repository = SessionRepository(MemoryStorage())
        repository.save(SessionRecord(meal_plan=make_plan(days=7, weeks=1), prefs=UserPreferences(age="3 years")))
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        ai = FakeAI()
        store = JsonPlanStore(Path(tmp.name) / "plans.json")
        planner = PlannerSession(ai, store, repository=repository)
        with TestClient(create_app(ai=ai, store=store, planner=planner, restore=False)) as client:
            self.assertIsNone(client.get("/api/session").json()["mealPlan"])


if __name__ == '__main__':
    unittest.main()
