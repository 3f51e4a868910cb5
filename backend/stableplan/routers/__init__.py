"""API routers package."""

from stableplan.routers import applied_plans, programmes, workouts

__all__ = ["applied_plans", "programmes", "workouts"]
