import unittest
from threemeals.domain.Meal import Meal
from threemeals.domain.DailyPlan import DailyPlan
from threemeals.domain.WeeklyData import WeeklyData
from threemeals.domain.UserPreferences import UserPreferences
from threemeals.domain.SessionRecord import SessionRecord


class TestMeal(unittest.TestCase):

    def test_meal_is_immutable(self):
        m = Meal("Porridge", "Soak overnight", "5 mins", "10 mins")
        with self.assertRaises(AttributeError):
            m.title = "Something else"

    def test_with_text_keeps_times(self):
        m = Meal("Porridge", "Soak overnight", "5 mins", "10 mins")
        edited = m.with_text("Oatmeal", "Add banana")
        self.assertEqual(edited.title, "Oatmeal")
        self.assertEqual(edited.prep_notes, "Add banana")
        self.assertEqual(edited.prep_time, "5 mins")
        self.assertEqual(edited.cook_time, "10 mins")
        self.assertEqual(m.title, "Porridge")

    def test_to_dict_omits_missing_times(self):
        self.assertEqual(Meal("Toast").to_dict(), {"title": "Toast", "prepNotes": ""})
        self.assertEqual(Meal("Toast", "", "1 min").time_label(), "Prep: 1 min")


class TestDailyPlanAndWeeks(unittest.TestCase):

    def test_week_bucketing(self):
        meal = Meal("x")
        self.assertEqual(DailyPlan(1, meal, meal, meal).week, 1)
        self.assertEqual(DailyPlan(7, meal, meal, meal).week, 1)
        self.assertEqual(DailyPlan(8, meal, meal, meal).week, 2)
        self.assertEqual(DailyPlan(30, meal, meal, meal).week, 5)

    def test_grocery_list_is_distinct(self):
        week = WeeklyData.from_dict({"week": 1, "groceryList": ["eggs", "milk", "eggs"], "batchPrepTips": []})
        self.assertEqual(week.grocery_list, ["eggs", "milk"])


class TestUserPreferences(unittest.TestCase):

    def test_token_fields_are_trimmed_deduplicated_sets(self):
        prefs = UserPreferences.from_dict({"age": "2 years", "favorites": " pasta, berries ,pasta,, "})
        self.assertEqual(prefs.favorites, "pasta, berries")
        self.assertEqual(prefs.tokens("favorites"), ["pasta", "berries"])

    def test_none_is_not_a_member(self):
        prefs = UserPreferences.from_dict({"allergies": "None"})
        self.assertEqual(prefs.allergies, "")
        self.assertEqual(prefs.describe("allergies"), "none")

    def test_defaults_for_absent_fields(self):
        prefs = UserPreferences.from_dict({})
        self.assertEqual(prefs.eating_style, "mixed")
        self.assertEqual(prefs.cooking_situation, "mixed")
        self.assertEqual(prefs.to_dict()["wantsMoreOf"], "")


class TestSessionRecord(unittest.TestCase):

    def test_absent_fields_default(self):
        record = SessionRecord.from_dict({"email": "a@b.co"})
        self.assertIsNone(record.meal_plan)
        self.assertFalse(record.email_captured)
        self.assertEqual(record.prefs, UserPreferences())


if __name__ == '__main__':
    unittest.main()
