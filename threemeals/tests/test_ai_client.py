import json
import unittest

from threemeals.api.api_ai import OpenAIPlanClient, _extract_json_by_balancing
from threemeals.domain.Meal import Meal
from threemeals.domain.UserPreferences import UserPreferences
from threemeals.errors import AIUnavailableError, AlternativesError, PlanGenerationError
from threemeals.tests.fakes import FakeOpenAI, make_plan

PREFS = UserPreferences(age="18 months", favorites="pasta", allergies="None")


def client_with(*outputs, plan_mode="template"):
    fake = FakeOpenAI(*outputs)
    return OpenAIPlanClient(api_key="test-key", model="test-model", plan_mode=plan_mode,
                            plan_days=14, client=fake), fake


class TestPlanGeneration(unittest.TestCase):

    def test_template_is_expanded_to_four_weeks(self):
        ai, fake = client_with(json.dumps(make_plan(days=7, weeks=1, legacy=True)))
        plan = ai.generate_plan(PREFS)
        self.assertEqual(len(plan.days), 28)
        self.assertEqual(len(plan.weeks), 4)
        self.assertEqual(plan.days[27].breakfast.title, "Breakfast 7")
        self.assertEqual(plan.days[0].snacks[0].title, "Snack 1")
        prompt = fake.responses.calls[0]["input"]
        self.assertIn("18 months", prompt)
        self.assertIn("pasta", prompt)
        self.assertEqual(fake.responses.calls[0]["model"], "test-model")

    def test_full_mode_keeps_model_days(self):
        ai, _ = client_with(json.dumps(make_plan(days=14, weeks=2)), plan_mode="full")
        plan = ai.generate_plan(PREFS)
        self.assertEqual(len(plan.days), 14)

    def test_code_fences_and_trailing_commas(self):
        text = "Here you go:\n```json\n" + json.dumps(make_plan(days=7, weeks=1))[:-1] + ",}\n```"
        ai, fake = client_with(text)
        self.assertEqual(len(ai.generate_plan(PREFS).days), 28)
        self.assertEqual(len(fake.responses.calls), 1)

    def test_broken_json_gets_one_repair_attempt(self):
        ai, fake = client_with("days: oops", json.dumps(make_plan(days=7, weeks=1)))
        self.assertEqual(len(ai.generate_plan(PREFS).days), 28)
        self.assertEqual(len(fake.responses.calls), 2)
        repair_prompt = fake.responses.calls[1]["input"]
        self.assertIn("batchPrepTips", repair_prompt)
        self.assertIn("days: oops", repair_prompt)
        self.assertNotIn("recipe", repair_prompt.lower())

    def test_empty_output(self):
        ai, _ = client_with("")
        with self.assertRaises(PlanGenerationError):
            ai.generate_plan(PREFS)

    def test_plan_without_weeks_is_rejected(self):
        ai, _ = client_with(json.dumps({"days": make_plan(days=7)["days"]}), plan_mode="full")
        with self.assertRaises(PlanGenerationError):
            ai.generate_plan(PREFS)

    def test_call_failure(self):
        ai, _ = client_with(RuntimeError("rate limited"))
        with self.assertRaises(PlanGenerationError):
            ai.generate_plan(PREFS)

    def test_missing_key(self):
        ai = OpenAIPlanClient(api_key="")
        with self.assertRaises(AIUnavailableError):
            ai.generate_plan(PREFS)


class TestAlternatives(unittest.TestCase):

    def test_avoided_titles_and_malformed_entries_are_dropped(self):
        output = json.dumps([
            {"title": "Lunch 1", "prepNotes": "again"},
            {"prepNotes": "no title"},
            {"title": "Lentil Soup", "prepNotes": "freeze portions", "prepTime": "10 mins", "cookTime": "25 mins"},
            {"title": "Hummus Wrap", "prepNotes": ""},
            {"title": "Mini Quiche", "prepNotes": ""},
            {"title": "Rice Balls", "prepNotes": ""},
        ])
        ai, fake = client_with(output)
        meals = ai.get_alternatives(PREFS, "lunch", Meal("Lunch 2"), ["Lunch 1", "Dinner 1"])
        self.assertEqual([m.title for m in meals], ["Lentil Soup", "Hummus Wrap", "Mini Quiche"])
        self.assertEqual(meals[0].cook_time, "25 mins")
        self.assertIn("Lunch 1, Dinner 1", fake.responses.calls[0]["input"])

    def test_object_instead_of_list(self):
        ai, _ = client_with(json.dumps({"title": "Soup"}), "")
        with self.assertRaises(AlternativesError):
            ai.get_alternatives(PREFS, "dinner", Meal("Dinner 1"), [])


class TestJsonHelpers(unittest.TestCase):

    def test_balancing_ignores_brackets_in_strings(self):
        text = 'noise {"title": "Rice {and} peas", "x": [1, 2]} trailing }'
        self.assertEqual(_extract_json_by_balancing(text), '{"title": "Rice {and} peas", "x": [1, 2]}')


if __name__ == '__main__':
    unittest.main()
