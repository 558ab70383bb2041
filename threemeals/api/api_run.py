from contextlib import asynccontextmanager

from fastapi import FastAPI
import logging

from threemeals.api.api_ai import router as ai_router, create_ai_client
from threemeals.api.routes import plans, session
from threemeals.infra.Plan_Store import PlanStore, create_plan_store
from threemeals.infra.Session_Repository import SessionRepository
from threemeals.logic.session import PlannerSession

# Logging
logger = logging.getLogger("threemeals_app")


def create_app(ai=None, store: PlanStore = None, planner: PlannerSession = None,
               repository: SessionRepository = None, restore: bool = True) -> FastAPI:
    """Build the API with its collaborators.

    Anything not passed in is built from configuration: the OpenAI client, the plan store
    backend (PLAN_STORE_BACKEND) and the file-backed session repository.
    """
    ai = ai if ai is not None else create_ai_client()
    store = store if store is not None else create_plan_store()
    if planner is None:
        planner = PlannerSession(ai=ai, store=store, repository=repository)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Pick up the saved session so a restart does not lose the plan."""
        if restore and planner.restore():
            logger.info("Restored saved planning session (state: %s)", planner.gate.state.value)
        yield
        planner.observer.stop()

    app = FastAPI(title="3meals Meal Planner API", lifespan=lifespan)
    app.state.ai = ai
    app.state.store = store
    app.state.planner = planner

    app.include_router(ai_router)
    app.include_router(plans.router)
    app.include_router(session.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
