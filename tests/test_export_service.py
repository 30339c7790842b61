"""
PDF/Excel出力のテスト
"""

import io
from decimal import Decimal

import pandas as pd
from openpyxl import load_workbook

from property_office.core import report_store
from property_office.core.report_generator import report_generator
from property_office.services.export_service import (
    excel_service,
    format_period,
    pdf_service,
)


def make_report(db_session):
    config = report_store.update_configuration(db_session, "1", {"mortgage_total": 1016157})
    report_store.save_memo(db_session, "1", "incomeMemo", "3月分家賃")
    sums = {
        "houseRentTotal": Decimal("1423051"),
        "otherIncomeTotal": Decimal("0"),
        "manageAmount": Decimal("0"),
        "manageTax": Decimal("0"),
    }
    memos = report_store.list_memos(db_session, "1")
    return report_generator.build_report(sums, config, memos, {"year": 2024, "month": 3, "day": None})


class TestFormatPeriod:
    def test_all(self):
        assert format_period(None) == "全期間"
        assert format_period({"year": None}) == "全期間"

    def test_year_month_day(self):
        assert format_period({"year": 2024}) == "2024年"
        assert format_period({"year": 2024, "month": 3}) == "2024年3月"
        assert format_period({"year": 2024, "month": 3, "day": 5}) == "2024年3月5日"


class TestReportExport:
    """収支報告書の出力"""

    def test_pdf(self, db_session):
        content = pdf_service.generate_report_pdf(make_report(db_session), "タフビル")
        assert content.startswith(b"%PDF")

    def test_excel(self, db_session):
        content = excel_service.generate_report_excel(make_report(db_session), "タフビル")

        wb = load_workbook(io.BytesIO(content))
        ws = wb["収支報告"]
        assert ws["A1"].value == "収支報告書 タフビル 2024年3月"
        assert ws["A3"].value == "区分"
        assert ws["G4"].value == "3月分家賃"

        values = [cell.value for row in ws.iter_rows() for cell in row]
        assert "第1分配" in values
        assert 203447 + 1016157 in values


class TestLedgerWorkbook:
    """台帳ブックの出力"""

    def test_one_sheet_per_frame(self):
        frames = {
            "レントロール": pd.DataFrame([{"階": "1", "賃料": 100000.0}]),
            "預託金等": pd.DataFrame(columns=["階", "敷金"]),
        }

        content = excel_service.generate_ledger_workbook(frames)

        wb = load_workbook(io.BytesIO(content))
        assert wb.sheetnames == ["レントロール", "預託金等"]
        ws = wb["レントロール"]
        assert [c.value for c in ws[1]] == ["階", "賃料"]
        assert [c.value for c in ws[2]] == ["1", 100000]
        assert wb["預託金等"].max_row == 1
