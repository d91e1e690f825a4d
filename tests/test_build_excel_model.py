"""Tests for the Excel workbook export."""

import io

import pytest
from openpyxl import load_workbook

import roster
from build_excel_model import build_workbook, generate_excel, main
from defaults import starter_baseline
from model import run_model


def _cfg():
    cfg = starter_baseline()
    cfg = roster.set_time(cfg, 1, 2, 30)
    cfg = roster.set_time(cfg, 2, 4, 15)
    return cfg


class TestWorkbook:
    def test_sheets(self):
        cfg = _cfg()
        wb = build_workbook(cfg, run_model(cfg))
        assert wb.sheetnames == ["Summary", "Inputs", "Time Allocation", "Engine", "Glossary"]

    def test_summary_values_match_engine(self):
        cfg = _cfg()
        result = run_model(cfg)
        wb = load_workbook(io.BytesIO(generate_excel(cfg, result)))
        ws = wb["Summary"]
        values = {ws.cell(row=r, column=2).value: ws.cell(row=r, column=3).value
                  for r in range(5, 13)}
        assert values["Total cost"] == pytest.approx(result.total_cost)
        assert values["Cost per customer"] == pytest.approx(result.cost_to_serve)
        assert values["Overhead per employee"] == pytest.approx(result.overhead_per_employee)

    def test_time_allocation_grid(self):
        cfg = _cfg()
        wb = build_workbook(cfg, run_model(cfg))
        ws = wb["Time Allocation"]
        assert [ws.cell(row=4, column=c).value for c in range(3, 8)] == [
            "Awareness", "Join", "Use", "Support", "Exit"
        ]
        # Actor 1 / Join and Actor 2 / Support
        assert ws.cell(row=5, column=4).value == 30.0
        assert ws.cell(row=6, column=6).value == 15.0
        assert ws.cell(row=5, column=3).value == 0.0

    def test_engine_uses_formulas(self):
        cfg = _cfg()
        wb = build_workbook(cfg, run_model(cfg))
        ws = wb["Engine"]
        assert ws.cell(row=5, column=3).value.startswith("=IF(Inputs!")
        assert ws.cell(row=5, column=5).value == "='Time Allocation'!C5*$D5"

    def test_cli_writes_file(self, tmp_path):
        out = tmp_path / "model.xlsx"
        assert main(["-o", str(out)]) == str(out)
        wb = load_workbook(out)
        assert "Engine" in wb.sheetnames
