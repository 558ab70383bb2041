import io
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak, KeepTogether
from xml.sax.saxutils import escape

from threemeals.domain.DailyPlan import DailyPlan
from threemeals.domain.FullMealPlan import FullMealPlan

BRAND_DARK = colors.HexColor("#1A1F2B")
SLOT_COLORS = {
    "Breakfast": colors.HexColor("#F59E0B"),
    "Lunch": colors.HexColor("#3B82F6"),
    "Dinner": colors.HexColor("#F43F5E"),
    "Snack": colors.HexColor("#22C55E"),
}


def _styles():
    styles = getSampleStyleSheet()
    return {
        "brand": ParagraphStyle("brand", parent=styles["Title"], textColor=BRAND_DARK, fontSize=24),
        "subtitle": ParagraphStyle("subtitle", parent=styles["Normal"], alignment=1, fontSize=14,
                                   textColor=colors.grey, spaceAfter=4),
        "cheer": ParagraphStyle("cheer", parent=styles["Italic"], alignment=1, textColor=SLOT_COLORS["Breakfast"]),
        "day": ParagraphStyle("day", parent=styles["Heading2"], textColor=BRAND_DARK),
        "section": ParagraphStyle("section", parent=styles["Heading2"], textColor=BRAND_DARK),
        "meal": ParagraphStyle("meal", parent=styles["Normal"], fontSize=10),
        "notes": ParagraphStyle("notes", parent=styles["Normal"], fontSize=9, textColor=colors.grey),
        "times": ParagraphStyle("times", parent=styles["Normal"], fontSize=8, textColor=colors.grey, alignment=2),
        "item": ParagraphStyle("item", parent=styles["Normal"], fontSize=10, leftIndent=10),
        "closing": ParagraphStyle("closing", parent=styles["Title"], textColor=BRAND_DARK, fontSize=16),
        "body": ParagraphStyle("body", parent=styles["Normal"], alignment=1, fontSize=11),
    }


def _labelled_meals(day: DailyPlan):
    meals = [("Breakfast", day.breakfast), ("Lunch", day.lunch), ("Dinner", day.dinner)]
    for idx, snack in enumerate(day.snacks):
        label = f"Snack {idx + 1}" if len(day.snacks) > 1 else "Snack"
        meals.append((label, snack))
    return meals


def _day_block(day: DailyPlan, st) -> List:
    rows = []
    style_cmds = [
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("LINEBELOW", (0, 0), (-1, -2), 0.25, colors.HexColor("#E6E6E6")),
    ]
    for row, (label, meal) in enumerate(_labelled_meals(day)):
        color = SLOT_COLORS.get(label.split()[0], colors.black)
        rows.append([
            Paragraph(f"<b>{escape(label)}:</b>", ParagraphStyle(f"l{row}", parent=st["meal"], textColor=color)),
            [Paragraph(escape(meal.title), st["meal"]), Paragraph(escape(meal.prep_notes), st["notes"])],
            Paragraph(escape(meal.time_label()), st["times"]),
        ])
    table = Table(rows, colWidths=[70, 320, 120])
    table.setStyle(TableStyle(style_cmds))
    return [KeepTogether([Paragraph(f"Day {day.day}", st["day"]), table]), Spacer(1, 8)]


def generate_pdf_for_plan(plan: FullMealPlan, age: Optional[str] = None) -> bytes:
    """Render the plan week by week: meals per day, then the grocery list and prep tips.

    The document ends with a short closing page.
    """
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=A4,
        rightMargin=40, leftMargin=40, topMargin=40, bottomMargin=40,
        title="3meals - Meal Plan",
    )
    st = _styles()
    header_age = (age or "").strip() or "little one"
    total_weeks = max(plan.week_count(), 1)

    elements = []
    for week in range(1, total_weeks + 1):
        if week > 1:
            elements.append(PageBreak())
        elements += [
            Paragraph("3MEALS", st["brand"]),
            Paragraph(escape(f"Your {header_age} old's Meal Plan"), st["subtitle"]),
            Paragraph(f"Week {week} of {total_weeks}", st["subtitle"]),
            Paragraph("\"You've got this!\"", st["cheer"]),
            Spacer(1, 16),
        ]
        for day in plan.days_in_week(week):
            elements += _day_block(day, st)

        week_data = plan.find_week(week)
        if week_data is None:
            continue
        elements.append(Paragraph(f"Grocery List - Week {week}", st["section"]))
        for item in week_data.grocery_list:
            elements.append(Paragraph(f"[&nbsp;&nbsp;]&nbsp;&nbsp;{escape(item)}", st["item"]))
        elements.append(Spacer(1, 10))
        elements.append(Paragraph("Batch Prep Tips", st["section"]))
        for i, tip in enumerate(week_data.batch_prep_tips, start=1):
            elements.append(Paragraph(f"{i}. {escape(tip)}", st["item"]))

    elements += [
        PageBreak(),
        Spacer(1, 200),
        Paragraph("You did the planning. That was the hard part.", st["closing"]),
        Spacer(1, 12),
        Paragraph("Homemade or store-bought, fed is best.", st["body"]),
        Spacer(1, 6),
        Paragraph("Made with 3meals", st["body"]),
    ]
    doc.build(elements)
    return buf.getvalue()
