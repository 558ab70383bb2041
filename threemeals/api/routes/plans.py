"""Stateless persistence/export endpoints (save-email, get-plan, emails, export-pdf)."""
import logging

from fastapi import APIRouter, HTTPException, Request, Response

from threemeals.domain.FullMealPlan import FullMealPlan
from threemeals.errors import StoreError
from threemeals.infra.Plan_Store import save_plan, get_plan
from threemeals.infra.pdf_utils import generate_pdf_for_plan
from threemeals.logic.editing.legacy import upgrade_plan
from threemeals.utilities.constants import SUGGESTED_SNACKS
from threemeals.utilities.validators import EmailInput, ExportRequest, SaveEmailRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/save-email")
def save_email(request: Request, body: SaveEmailRequest):
    plan = body.meal_plan.model_dump(by_alias=True, exclude_none=True) if body.meal_plan else None
    prefs = body.prefs.model_dump(by_alias=True) if body.prefs else None
    result = save_plan(request.app.state.store, body.email, plan, prefs)
    if not result["success"]:
        raise HTTPException(status_code=500, detail="Failed to save email")
    return result


@router.post("/api/get-plan")
def fetch_plan(request: Request, body: EmailInput):
    try:
        return get_plan(request.app.state.store, body.email)
    except StoreError:
        logger.exception("Error fetching plan")
        raise HTTPException(status_code=500, detail="Failed to fetch plan")


@router.get("/api/emails")
def list_emails(request: Request):
    try:
        emails = request.app.state.store.list_emails()
    except StoreError:
        logger.exception("Error fetching emails")
        raise HTTPException(status_code=500, detail="Failed to fetch emails")
    return {"count": len(emails), "emails": emails}


@router.post("/api/export-pdf")
def export_pdf(body: ExportRequest):
    raw = body.meal_plan.model_dump(by_alias=True, exclude_none=True)
    plan = FullMealPlan.from_dict(upgrade_plan(raw))
    pdf_bytes = generate_pdf_for_plan(plan, body.prefs.age)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="3meals-plan.pdf"'},
    )


@router.get("/api/suggested-snacks")
def suggested_snacks():
    return SUGGESTED_SNACKS
