"""Core planning logic.

Subpackages:
- editing: the plan editor (working copy mutations, swap tickets, shuffle)
- views: today / calendar projections
- gating: email-gated unlock state machine
- preferences: multi-select preference helpers
- planning: template plan expansion
"""
__all__ = ["editing", "views", "gating", "preferences", "planning"]
