"""3meals: a meal-planning wizard service (plan generation, editing, export)."""
__version__ = "0.1.0"
