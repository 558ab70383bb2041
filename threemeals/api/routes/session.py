"""Endpoints driving the single planning session (editor, views, email gate)."""
import logging

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response

from threemeals.domain.Meal import Meal
from threemeals.domain.UserPreferences import UserPreferences
from threemeals.errors import AIUnavailableError, AlternativesError, InvalidPlanError, PlanBusyError, PlanGenerationError
from threemeals.logic.session import PlannerSession, NOT_FOUND_MESSAGE, LOOKUP_FAILED_MESSAGE
from threemeals.utilities.validators import (
    AddSnackInput, ApplySwapInput, EditMealInput, EmailSubmitInput, GroceryToggleInput, PreferencesInput,
    SwapInput, TogglePreferenceInput, ViewInput
)

router = APIRouter(prefix="/api/session")
logger = logging.getLogger(__name__)


def _session(request: Request) -> PlannerSession:
    return request.app.state.planner


def _require_plan(planner: PlannerSession):
    if planner.editor.plan is None:
        raise HTTPException(status_code=404, detail="No meal plan yet")


@router.get("")
def get_session(request: Request):
    return _session(request).snapshot()


@router.put("/prefs")
def put_prefs(request: Request, prefs: PreferencesInput):
    planner = _session(request)
    planner.update_prefs(UserPreferences.from_dict(prefs.model_dump(by_alias=True)))
    return planner.prefs.to_dict()


@router.post("/prefs/toggle")
def toggle_pref(request: Request, body: TogglePreferenceInput):
    try:
        return _session(request).toggle_pref(body.field, body.item).to_dict()
    except KeyError:
        raise HTTPException(status_code=400, detail=f"{body.field} is not a multi-select field")


@router.post("/generate")
async def generate(request: Request):
    planner = _session(request)
    try:
        await planner.generate()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AIUnavailableError as e:
        raise HTTPException(status_code=503, detail=planner.error or str(e))
    except PlanGenerationError as e:
        raise HTTPException(status_code=502, detail=planner.error or str(e))
    return planner.snapshot()


@router.post("/email")
def submit_email(request: Request, body: EmailSubmitInput):
    planner = _session(request)
    message = planner.submit_email(body.email)
    if message:
        raise HTTPException(status_code=400, detail=message)
    return planner.snapshot()


@router.post("/returning-user")
async def returning_user(request: Request, body: EmailSubmitInput):
    planner = _session(request)
    try:
        message = await planner.lookup_returning_user(body.email)
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if message == NOT_FOUND_MESSAGE:
        raise HTTPException(status_code=404, detail=message)
    if message:
        status = 500 if message == LOOKUP_FAILED_MESSAGE else 400
        raise HTTPException(status_code=status, detail=message)
    return planner.snapshot()


@router.post("/meals/edit")
def edit_meal(request: Request, body: EditMealInput):
    planner = _session(request)
    _require_plan(planner)
    try:
        changed = planner.edit_meal(body.day, body.slot, body.title, body.prep_notes, body.snack_index)
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"changed": changed, "day": _day(planner, body.day)}


@router.post("/snacks")
def add_snack(request: Request, body: AddSnackInput):
    planner = _session(request)
    _require_plan(planner)
    try:
        changed = planner.add_snack(body.day, body.title, body.prep_notes, body.prep_time, body.cook_time)
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"changed": changed, "day": _day(planner, body.day)}


@router.delete("/snacks/{day}/{index}")
def remove_snack(request: Request, day: int, index: int):
    planner = _session(request)
    _require_plan(planner)
    try:
        changed = planner.remove_snack(day, index)
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"changed": changed, "day": _day(planner, day)}


@router.post("/swap")
async def start_swap(request: Request, body: SwapInput):
    planner = _session(request)
    _require_plan(planner)
    try:
        ticket, alternatives = await planner.start_swap(body.day, body.slot, body.snack_index)
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AIUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AlternativesError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if ticket is None:
        raise HTTPException(status_code=404, detail="Nothing to swap at that slot")
    if alternatives is None:
        # superseded by a newer swap or cancelled while loading
        return Response(status_code=204)
    return {"swap": ticket.to_dict(), "alternatives": [m.to_dict() for m in alternatives]}


@router.post("/swap/apply")
def apply_swap(request: Request, body: ApplySwapInput):
    planner = _session(request)
    meal = Meal(body.meal.title, body.meal.prep_notes, body.meal.prep_time, body.meal.cook_time)
    try:
        applied = planner.apply_swap(body.ticket, meal)
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not applied:
        raise HTTPException(status_code=409, detail="That swap is no longer active")
    return planner.snapshot()


@router.delete("/swap")
def cancel_swap(request: Request):
    _session(request).cancel_swap()
    return {"swap": None}


@router.post("/shuffle")
async def shuffle(request: Request):
    planner = _session(request)
    _require_plan(planner)
    try:
        await planner.shuffle()
    except PlanBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return planner.snapshot()


@router.get("/today")
def today(request: Request):
    view = _session(request).today()
    if view is None:
        raise HTTPException(status_code=404, detail="No meal plan yet")
    return view.to_dict()


@router.post("/today/next")
def next_day(request: Request):
    planner = _session(request)
    with planner.lock:
        planner.projector.next_day(planner.editor.plan)
    return today(request)


@router.post("/today/prev")
def prev_day(request: Request):
    planner = _session(request)
    with planner.lock:
        planner.projector.prev_day(planner.editor.plan)
    return today(request)


@router.get("/calendar")
def calendar(request: Request, week: Optional[int] = Query(default=None)):
    planner = _session(request)
    if week is not None and week < 1:
        raise HTTPException(status_code=400, detail="Weeks are numbered from 1")
    with planner.lock:
        view = planner.calendar(week)
    if view is None:
        raise HTTPException(status_code=404, detail="No meal plan yet")
    return view.to_dict()


@router.post("/view")
def set_view(request: Request, body: ViewInput):
    planner = _session(request)
    projector = planner.projector
    with planner.lock:
        if body.mode is not None:
            projector.set_view_mode(body.mode)
        if body.show_snacks is not None:
            projector.set_show_snacks(body.show_snacks)
        if body.week is not None:
            projector.select_week(body.week)
        return projector.to_dict()


@router.post("/grocery/toggle")
def toggle_grocery(request: Request, body: GroceryToggleInput):
    planner = _session(request)
    with planner.lock:
        checked = planner.projector.toggle_check(body.item)
    return {"item": body.item, "checked": checked}


@router.get("/pdf")
def session_pdf(request: Request):
    try:
        pdf_bytes = _session(request).export_pdf()
    except InvalidPlanError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="3meals-plan.pdf"'},
    )


@router.post("/reset")
def reset(request: Request):
    planner = _session(request)
    planner.reset()
    return planner.snapshot()


def _day(planner: PlannerSession, day: int):
    found = planner.editor.plan.find_day(day)
    return found.to_dict() if found is not None else None
