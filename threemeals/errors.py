"""Domain exceptions shared by the planner, the AI client and the plan stores."""


class ThreeMealsError(Exception):
    """Base class for all application errors."""


class InvalidPlanError(ThreeMealsError):
    """A meal plan payload failed validation and must not reach the editor."""


class PlanGenerationError(ThreeMealsError):
    """The model call failed or returned empty / malformed output."""


class AIUnavailableError(PlanGenerationError):
    """No API key configured for the model client."""


class AlternativesError(ThreeMealsError):
    """Fetching alternative meals for a swap failed."""


class PlanBusyError(ThreeMealsError):
    """A mutation was attempted while another operation of the same class is in progress."""


class StoreError(ThreeMealsError):
    """A Remote Persistence backend failed to read or write."""


__all__ = [
    'ThreeMealsError', 'InvalidPlanError', 'PlanGenerationError', 'AIUnavailableError',
    'AlternativesError', 'PlanBusyError', 'StoreError'
]
