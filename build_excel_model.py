"""
Build a formula-driven Cost to Serve Excel workbook.

The Summary sheet carries the values computed by the Python engine; the
Engine sheet recomputes the same figures with live formulas so the workbook
keeps working when yellow input cells are edited.

Run this script to write the baseline scenario:
    python build_excel_model.py -o Cost_to_Serve_Model.xlsx
"""

import argparse
import io
import logging

from openpyxl import Workbook
from openpyxl.comments import Comment
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from config import ModelConfig, ModelResult
from defaults import indirect_cost_label, starter_baseline
from model import run_model

logger = logging.getLogger(__name__)

# ── Palette ──────────────────────────────────────────────────────────────
NAVY = "051C2C"
BLUE = "2251FF"
TEAL = "00A9F4"
GREY = "7F8C8D"
LIGHT = "F5F6F7"
WHITE = "FFFFFF"
DARK = "1A1A2E"
YELLOW_INPUT = "FFF9E6"

EUR_FORMAT = "€#,##0.00"
RATE_FORMAT = "€#,##0.0000"

# ── Styles ───────────────────────────────────────────────────────────────
navy_fill = PatternFill(start_color=NAVY, end_color=NAVY, fill_type="solid")
light_fill = PatternFill(start_color=LIGHT, end_color=LIGHT, fill_type="solid")
white_fill = PatternFill(start_color=WHITE, end_color=WHITE, fill_type="solid")
input_fill = PatternFill(start_color=YELLOW_INPUT, end_color=YELLOW_INPUT, fill_type="solid")

title_font = Font(name="Calibri", size=16, bold=True, color=NAVY)
sub_font = Font(name="Calibri", size=11, color=GREY)
section_font = Font(name="Calibri", size=12, bold=True, color=NAVY)
label_font = Font(name="Calibri", size=10, color=DARK)
input_font = Font(name="Calibri", size=10, color=BLUE, bold=True)
formula_font = Font(name="Calibri", size=10, color=GREY, italic=True)
hdr_font = Font(name="Calibri", size=10, bold=True, color=WHITE)
bold_font = Font(name="Calibri", size=10, bold=True, color=DARK)

thin_border = Border(
    left=Side(style="thin", color="D0D5DD"),
    right=Side(style="thin", color="D0D5DD"),
    top=Side(style="thin", color="D0D5DD"),
    bottom=Side(style="thin", color="D0D5DD"),
)

align_center = Alignment(horizontal="center", vertical="center")

COMMENT_AUTHOR = "Cost to Serve"


def _cmt(text):
    return Comment(text, COMMENT_AUTHOR)


def _style_header_row(ws, row, first_col, last_col):
    for c in range(first_col, last_col + 1):
        cell = ws.cell(row=row, column=c)
        cell.fill = navy_fill
        cell.font = hdr_font
        cell.alignment = align_center
        cell.border = thin_border


def _input_cell(ws, row, col, value, number_format=None):
    cell = ws.cell(row=row, column=col, value=value)
    cell.fill = input_fill
    cell.font = input_font
    cell.border = thin_border
    if number_format:
        cell.number_format = number_format
    return cell


def _formula_cell(ws, row, col, formula, number_format=None, alt=False):
    cell = ws.cell(row=row, column=col, value=formula)
    cell.fill = light_fill if alt else white_fill
    cell.font = formula_font
    cell.border = thin_border
    if number_format:
        cell.number_format = number_format
    return cell


# ═════════════════════════════════════════════════════════════════════════
# SHEET: INPUTS
# Returns the cell references the other sheets point at.
# ═════════════════════════════════════════════════════════════════════════
def build_inputs_sheet(wb, cfg: ModelConfig):
    ws = wb.create_sheet("Inputs")
    ws.sheet_properties.tabColor = NAVY
    ws["B2"] = "Model Inputs"
    ws["B2"].font = title_font
    ws["B3"] = "Yellow cells are inputs. Grey italic cells are formulas."
    ws["B3"].font = sub_font

    refs = {}

    ws["B5"] = "CALENDAR & ORGANISATION"
    ws["B5"].font = section_font
    rows = [
        ("days", "Working days per year", cfg.calendar.working_days_per_year),
        ("hours_per_day", "Hours per day", cfg.calendar.hours_per_day),
        ("staff", "Total staff", cfg.org.total_staff_count),
        ("customers", "Customers served", cfg.org.customer_count),
    ]
    row = 6
    for key, label, value in rows:
        ws.cell(row=row, column=2, value=label).font = label_font
        _input_cell(ws, row, 3, value, "#,##0.0" if isinstance(value, float) else "#,##0")
        refs[key] = f"Inputs!$C${row}"
        row += 1

    ws.cell(row=row, column=2, value="Hours per year").font = label_font
    _formula_cell(ws, row, 3, "=C6*C7", "#,##0.0")
    ws.cell(row=row, column=3).comment = _cmt("Working days per year × hours per day")
    refs["hours_per_year"] = f"Inputs!$C${row}"
    row += 1
    ws.cell(row=row, column=2, value="Minutes per year").font = label_font
    _formula_cell(ws, row, 3, f"=C{row - 1}*60", "#,##0")
    row += 2

    ws.cell(row=row, column=2, value="INDIRECT COSTS (annual)").font = section_font
    row += 1
    ws.cell(row=row, column=2, value="Category")
    ws.cell(row=row, column=3, value="Amount")
    _style_header_row(ws, row, 2, 3)
    row += 1
    first = row
    for category, amount in cfg.indirect_costs.items():
        ws.cell(row=row, column=2, value=indirect_cost_label(category)).font = label_font
        _input_cell(ws, row, 3, amount, EUR_FORMAT)
        row += 1
    last = row - 1
    ws.cell(row=row, column=2, value="Total indirect costs").font = bold_font
    if last >= first:
        _formula_cell(ws, row, 3, f"=SUM(C{first}:C{last})", EUR_FORMAT)
    else:
        _formula_cell(ws, row, 3, 0, EUR_FORMAT)
    total_row = row
    row += 1
    ws.cell(row=row, column=2, value="Overhead per employee").font = bold_font
    _formula_cell(ws, row, 3, f"=IF(C8=0,0,C{total_row}/C8)", EUR_FORMAT)
    ws.cell(row=row, column=3).comment = _cmt(
        "Shown as a separate KPI. It is not added into total cost or cost to serve."
    )
    refs["overhead"] = f"Inputs!$C${row}"
    row += 2

    ws.cell(row=row, column=2, value="ACTORS").font = section_font
    row += 1
    for ci, h in enumerate(["Actor", "Annual salary"], 2):
        ws.cell(row=row, column=ci, value=h)
    _style_header_row(ws, row, 2, 3)
    row += 1
    refs["salary_rows"] = {}
    for actor in cfg.actors:
        ws.cell(row=row, column=2, value=actor.name).font = label_font
        _input_cell(ws, row, 3, actor.annual_salary, EUR_FORMAT)
        refs["salary_rows"][actor.id] = row
        row += 1

    ws.column_dimensions["A"].width = 3
    ws.column_dimensions["B"].width = 30
    ws.column_dimensions["C"].width = 18
    return ws, refs


# ═════════════════════════════════════════════════════════════════════════
# SHEET: TIME ALLOCATION
# Layout: Row 4 = stage headers, Rows 5+ = one actor per row, C+ = minutes
# ═════════════════════════════════════════════════════════════════════════
def build_time_sheet(wb, cfg: ModelConfig):
    ws = wb.create_sheet("Time Allocation")
    ws.sheet_properties.tabColor = TEAL
    ws["B2"] = "Minutes per customer"
    ws["B2"].font = title_font

    ws.cell(row=4, column=2, value="Actor")
    for si, stage in enumerate(cfg.stages):
        ws.cell(row=4, column=3 + si, value=stage.name)
    _style_header_row(ws, 4, 2, 2 + len(cfg.stages))

    for ai, actor in enumerate(cfg.actors):
        r = 5 + ai
        ws.cell(row=r, column=2, value=actor.name).font = label_font
        for si, stage in enumerate(cfg.stages):
            minutes = cfg.time_allocation.get((actor.id, stage.id), 0.0)
            _input_cell(ws, r, 3 + si, minutes, "0.0")

    ws.column_dimensions["A"].width = 3
    ws.column_dimensions["B"].width = 24
    for si in range(len(cfg.stages)):
        ws.column_dimensions[get_column_letter(3 + si)].width = 14
    return ws


# ═════════════════════════════════════════════════════════════════════════
# SHEET: ENGINE
# Layout: Row 4 = headers, Rows 5+ = actors, last rows = stage totals & KPIs
# Columns: B=Actor, C=Hourly rate, D=Per-minute rate, E+ = cost per stage
# ═════════════════════════════════════════════════════════════════════════
def build_engine_sheet(wb, cfg: ModelConfig, refs):
    ws = wb.create_sheet("Engine")
    ws.sheet_properties.tabColor = GREY
    ws["B2"] = "Cost Engine (formulas)"
    ws["B2"].font = title_font

    n_stages = len(cfg.stages)
    cost_col = 5
    total_col = cost_col + n_stages
    hpy = refs["hours_per_year"]

    headers = ["Actor", "Hourly rate", "Per-minute rate"] + [s.name for s in cfg.stages] + ["Total"]
    for ci, h in enumerate(headers, 2):
        ws.cell(row=4, column=ci, value=h)
    _style_header_row(ws, 4, 2, total_col)

    first = 5
    for ai, actor in enumerate(cfg.actors):
        r = first + ai
        alt = ai % 2 == 1
        salary_ref = f"Inputs!$C${refs['salary_rows'][actor.id]}"
        ws.cell(row=r, column=2, value=actor.name).font = label_font
        _formula_cell(ws, r, 3, f"=IF({hpy}=0,0,{salary_ref}/{hpy})", RATE_FORMAT, alt)
        _formula_cell(ws, r, 4, f"=C{r}/60", RATE_FORMAT, alt)
        for si in range(n_stages):
            time_ref = f"'Time Allocation'!{get_column_letter(3 + si)}{r}"
            _formula_cell(ws, r, cost_col + si, f"={time_ref}*$D{r}", EUR_FORMAT, alt)
        _formula_cell(
            ws, r, total_col,
            f"=SUM({get_column_letter(cost_col)}{r}:{get_column_letter(total_col - 1)}{r})",
            EUR_FORMAT, alt,
        )
    last = first + len(cfg.actors) - 1

    tr = last + 1
    ws.cell(row=tr, column=2, value="Cost by stage").font = bold_font
    for c in range(cost_col, total_col + 1):
        col = get_column_letter(c)
        _formula_cell(ws, tr, c, f"=SUM({col}{first}:{col}{last})", EUR_FORMAT)
    grand_ref = f"${get_column_letter(total_col)}${tr}"

    kr = tr + 2
    ws.cell(row=kr, column=2, value="Total cost").font = bold_font
    _formula_cell(ws, kr, 3, f"={grand_ref}", EUR_FORMAT)
    ws.cell(row=kr + 1, column=2, value="Cost to serve").font = bold_font
    _formula_cell(
        ws, kr + 1, 3,
        f"=IF({refs['customers']}=0,0,{grand_ref}/{refs['customers']})",
        RATE_FORMAT,
    )
    ws.cell(row=kr + 1, column=3).comment = _cmt("Total cost ÷ customers served (0 when no customers)")
    ws.cell(row=kr + 2, column=2, value="Overhead per employee").font = bold_font
    _formula_cell(ws, kr + 2, 3, f"={refs['overhead']}", EUR_FORMAT)

    ws.column_dimensions["A"].width = 3
    ws.column_dimensions["B"].width = 24
    for c in range(3, total_col + 1):
        ws.column_dimensions[get_column_letter(c)].width = 15
    return ws


# ═════════════════════════════════════════════════════════════════════════
# SHEET: SUMMARY (values from the Python engine)
# ═════════════════════════════════════════════════════════════════════════
def build_summary_sheet(ws, cfg: ModelConfig, result: ModelResult):
    ws.title = "Summary"
    ws.sheet_properties.tabColor = BLUE
    ws.merge_cells("B2:E2")
    ws["B2"] = "Cost to Serve"
    ws["B2"].font = Font(name="Calibri", size=22, bold=True, color=NAVY)
    ws["B3"] = "Cost to Serve = Total Cost of Service ÷ Number of Customers"
    ws["B3"].font = sub_font

    kpis = [
        ("Total cost", result.total_cost, EUR_FORMAT),
        ("Cost per customer", result.cost_to_serve, RATE_FORMAT),
        ("Customers served", cfg.org.customer_count, "#,##0"),
        ("Hours per year", result.hours_per_year, "#,##0.0"),
        ("Indirect costs", result.indirect_total, EUR_FORMAT),
        ("Overhead per employee", result.overhead_per_employee, EUR_FORMAT),
        ("Actors", len(cfg.actors), "0"),
        ("Journey stages", len(cfg.stages), "0"),
    ]
    row = 5
    for label, value, fmt in kpis:
        ws.cell(row=row, column=2, value=label).font = bold_font
        cell = ws.cell(row=row, column=3, value=value)
        cell.font = label_font
        cell.number_format = fmt
        row += 1

    row += 1
    for title, frame, key in [
        ("COST BY STAGE", result.stage_summary, "stage"),
        ("COST BY ACTOR", result.actor_summary, "actor"),
    ]:
        ws.cell(row=row, column=2, value=title).font = section_font
        row += 1
        for ci, h in enumerate([key.capitalize(), "Cost", "Share of total"], 2):
            ws.cell(row=row, column=ci, value=h)
        _style_header_row(ws, row, 2, 4)
        row += 1
        for i, (_, dr) in enumerate(frame.iterrows()):
            fill = light_fill if i % 2 else white_fill
            cells = [
                ws.cell(row=row, column=2, value=dr[key]),
                ws.cell(row=row, column=3, value=float(dr["cost"])),
                ws.cell(row=row, column=4, value=float(dr["share_of_total"])),
            ]
            cells[1].number_format = EUR_FORMAT
            cells[2].number_format = "0.0%"
            for cell in cells:
                cell.fill = fill
                cell.font = label_font
                cell.border = thin_border
            row += 1
        row += 1

    ws.column_dimensions["A"].width = 3
    ws.column_dimensions["B"].width = 26
    ws.column_dimensions["C"].width = 18
    ws.column_dimensions["D"].width = 16
    return ws


def build_glossary_sheet(wb):
    ws = wb.create_sheet("Glossary")
    ws.sheet_properties.tabColor = TEAL
    ws["B2"] = "Glossary"
    ws["B2"].font = title_font
    terms = [
        ("Actor", "A role or person whose time contributes cost to the service."),
        ("Stage", "One step in the customer or citizen journey being costed."),
        ("Time allocation", "Minutes an actor spends per customer at a given stage."),
        ("Indirect cost", "Organisational overhead not tied to an actor-stage cell, allocated per employee."),
        ("Cost to serve", "Total service delivery cost divided by the number of customers served."),
        ("Per-minute rate", "Annual salary ÷ (working days × hours per day) ÷ 60. Zero when the calendar has no hours."),
    ]
    for ri, (term, meaning) in enumerate(terms, 4):
        ws.cell(row=ri, column=2, value=term).font = bold_font
        ws.cell(row=ri, column=3, value=meaning).font = label_font
    ws.column_dimensions["A"].width = 3
    ws.column_dimensions["B"].width = 20
    ws.column_dimensions["C"].width = 90
    return ws


def build_workbook(cfg: ModelConfig, result: ModelResult) -> Workbook:
    wb = Workbook()
    build_summary_sheet(wb.active, cfg, result)
    _, refs = build_inputs_sheet(wb, cfg)
    build_time_sheet(wb, cfg)
    build_engine_sheet(wb, cfg, refs)
    build_glossary_sheet(wb)
    return wb


def generate_excel(cfg: ModelConfig, result: ModelResult) -> bytes:
    buf = io.BytesIO()
    build_workbook(cfg, result).save(buf)
    logger.debug("Workbook generated: %d bytes", buf.tell())
    return buf.getvalue()


# ═════════════════════════════════════════════════════════════════════════
# MAIN
# ═════════════════════════════════════════════════════════════════════════
def main(argv=None):
    parser = argparse.ArgumentParser(description="Write the baseline Cost to Serve workbook.")
    parser.add_argument("-o", "--output", default="Cost_to_Serve_Model.xlsx",
                        help="Path of the .xlsx file to write")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    cfg = starter_baseline()
    result = run_model(cfg)

    print("Building workbook...")
    wb = build_workbook(cfg, result)
    wb.save(args.output)
    print(f"\nSaved to: {args.output}")
    print("Open in Excel and try changing a yellow cell on the Inputs or Time Allocation sheet!")
    return args.output


if __name__ == "__main__":
    main()
