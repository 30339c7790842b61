"""
PDF/Excel出力サービス
収支報告書・台帳ブックをPDF/Excel形式で出力
"""

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
import io
import os
from typing import Dict, List, Optional
import logging
from datetime import datetime
import pandas as pd

logger = logging.getLogger(__name__)


def format_period(period: Optional[Dict]) -> str:
    """対象期間の表示（未選択は「全期間」）"""
    period = period or {}
    year, month, day = period.get("year"), period.get("month"), period.get("day")
    if not year:
        return "全期間"
    text = f"{year}年"
    if month:
        text += f"{month}月"
        if day:
            text += f"{day}日"
    return text


def _yen(value) -> str:
    if value is None:
        return ""
    return f"{value:,.0f}"


def _statement_rows(report: Dict) -> List[List[str]]:
    """収支報告書の表（区分・分類コード・科目・本体・消費税・合計・備考）"""
    rows = [["区分", "コード", "科目", "本体金額", "消費税", "合計", "備考"]]

    for i, item in enumerate(report["income"]):
        rows.append(
            [
                "(1) 収入" if i == 0 else "",
                item["code"],
                item["subject"],
                _yen(item["amount"]),
                _yen(item["tax"]),
                _yen(item["total"]),
                item["memo"],
            ]
        )
    rows.append(["", "", "収入合計", "", "", _yen(report["incomeTotal"]), ""])

    for i, item in enumerate(report["expenses"]):
        rows.append(
            [
                "(2) 支出" if i == 0 else "",
                item["code"],
                item["subject"],
                _yen(item["amount"]),
                _yen(item["tax"]),
                _yen(item["total"]),
                item["memo"],
            ]
        )
    rows.append(["", "", "支出合計", "", "", _yen(report["expenseTotal"]), ""])
    rows.append(["(3) 収支", "", "(1) - (2)", "", "", _yen(report["difference"]), ""])

    for i, item in enumerate(report["advances"]):
        rows.append(
            [
                "(4) 立替金" if i == 0 else "",
                item["code"],
                item["subject"],
                "",
                "",
                _yen(item["total"]),
                item["memo"],
            ]
        )
    rows.append(["", "", "立替金合計", "", "", _yen(report["totalAdvance"]), ""])
    rows.append(["(5) 純収益", "", "(3) - (4)", "", "", _yen(report["netIncome"]), ""])
    return rows


def _distribution_rows(report: Dict) -> List[List[str]]:
    rows = [["分配", "配分率", "端数", "配分額", "立替金", "前月調整", "振込額", "翌月調整", "振込先"]]
    for d in report["distributions"]:
        account = d["account"]
        rows.append(
            [
                f"第{d['position']}分配",
                f"{d['rate']:g}%",
                f"{'+' if d['rounding'] == 'UP' else '-'}{d['roundingUnit']}",
                _yen(d["allocated"]),
                _yen(d["advance"]),
                _yen(d["previousAdjustment"]),
                _yen(d["payout"]),
                _yen(d["carryForward"]),
                " ".join(
                    v
                    for v in [
                        account["bank"],
                        account["branch"],
                        account["accountType"],
                        account["accountNumber"],
                        account["accountHolder"],
                    ]
                    if v
                ),
            ]
        )
    return rows


class PDFService:
    """PDF生成サービス"""

    def __init__(self):
        self.font_registered = False
        self._register_fonts()

    def _register_fonts(self):
        """日本語フォント登録"""
        if self.font_registered:
            return

        font_paths = [
            "/usr/share/fonts/ipa-gothic/ipag.ttf",
            "/usr/share/fonts/truetype/ipa-gothic/ipag.ttf",
            "/usr/share/fonts/opentype/ipaexfont-gothic/ipaexg.ttf",
            "/System/Library/Fonts/ヒラギノ角ゴシック W3.ttc",
            "/Library/Fonts/Arial Unicode.ttf",
        ]

        for font_path in font_paths:
            if os.path.exists(font_path):
                try:
                    pdfmetrics.registerFont(TTFont("IPAGothic", font_path))
                    self.font_registered = True
                    logger.info(f"Registered font: {font_path}")
                    return
                except Exception as e:
                    logger.warning(f"Failed to register font {font_path}: {e}")

        logger.warning("No Japanese font found, using default")

    def _get_font_name(self):
        return "IPAGothic" if self.font_registered else "Helvetica"

    def generate_report_pdf(self, report: Dict, property_name: str = "") -> bytes:
        """収支報告書PDF生成"""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4, leftMargin=12 * mm, rightMargin=12 * mm
        )

        elements = []
        font_name = self._get_font_name()

        title_style = ParagraphStyle(
            "Title", fontName=font_name, fontSize=16, alignment=1, spaceAfter=12
        )
        heading = f"収支報告書 {property_name}".strip()
        elements.append(
            Paragraph(f"{heading} ({format_period(report.get('period'))})", title_style)
        )

        date_style = ParagraphStyle("Date", fontName=font_name, fontSize=9, alignment=2)
        elements.append(
            Paragraph(f"作成日: {datetime.now().strftime('%Y-%m-%d %H:%M')}", date_style)
        )
        elements.append(Spacer(1, 6 * mm))

        statement = Table(
            _statement_rows(report),
            colWidths=[20 * mm, 14 * mm, 40 * mm, 24 * mm, 20 * mm, 26 * mm, 42 * mm],
        )
        statement.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("FONTNAME", (0, 0), (-1, -1), font_name),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("ALIGN", (3, 1), (5, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        elements.append(statement)
        elements.append(Spacer(1, 6 * mm))

        account = report["rentAccount"]
        account_style = ParagraphStyle("Account", fontName=font_name, fontSize=9)
        elements.append(
            Paragraph(
                "賃料管理口座: "
                + " ".join(
                    v
                    for v in [
                        account["bank"],
                        account["branch"],
                        account["accountType"],
                        account["accountNumber"],
                        account["accountHolder"],
                    ]
                    if v
                ),
                account_style,
            )
        )
        elements.append(Spacer(1, 4 * mm))

        distributions = Table(
            _distribution_rows(report),
            colWidths=[
                18 * mm, 14 * mm, 14 * mm, 20 * mm, 20 * mm, 18 * mm, 20 * mm, 18 * mm, 44 * mm
            ],
        )
        distributions.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("FONTNAME", (0, 0), (-1, -1), font_name),
                    ("FONTSIZE", (0, 0), (-1, -1), 7),
                    ("ALIGN", (3, 1), (7, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
                ]
            )
        )
        elements.append(distributions)

        doc.build(elements)
        buffer.seek(0)
        return buffer.read()


class ExcelService:
    """Excel生成サービス"""

    def __init__(self):
        self.header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        self.header_font = Font(bold=True, color="FFFFFF")
        self.border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

    def _write_table(self, ws, start_row: int, rows: List[List], amount_columns=()) -> int:
        """先頭行をヘッダーとして表を書き込み、次の空き行を返す"""
        for offset, values in enumerate(rows):
            row_num = start_row + offset
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = self.border
                if offset == 0:
                    cell.font = self.header_font
                    cell.fill = self.header_fill
                    cell.alignment = Alignment(horizontal="center")
                elif col in amount_columns:
                    cell.number_format = "#,##0"
        return start_row + len(rows)

    def generate_report_excel(self, report: Dict, property_name: str = "") -> bytes:
        """収支報告書Excel生成"""
        wb = Workbook()
        ws = wb.active
        ws.title = "収支報告"

        ws["A1"] = f"収支報告書 {property_name}".strip() + f" {format_period(report.get('period'))}"
        ws["A1"].font = Font(bold=True, size=14)
        ws.merge_cells("A1:G1")

        rows = [["区分", "コード", "科目", "本体金額", "消費税", "合計", "備考"]]
        sections = [
            ("(1) 収入", report["income"], "収入合計", report["incomeTotal"]),
            ("(2) 支出", report["expenses"], "支出合計", report["expenseTotal"]),
        ]
        for label, items, total_label, total in sections:
            for i, item in enumerate(items):
                rows.append(
                    [
                        label if i == 0 else "",
                        item["code"],
                        item["subject"],
                        item["amount"],
                        item["tax"],
                        item["total"],
                        item["memo"],
                    ]
                )
            rows.append(["", "", total_label, None, None, total, ""])
        rows.append(["(3) 収支", "", "(1) - (2)", None, None, report["difference"], ""])
        for i, item in enumerate(report["advances"]):
            rows.append(
                ["(4) 立替金" if i == 0 else "", item["code"], item["subject"], None, None,
                 item["total"], item["memo"]]
            )
        rows.append(["", "", "立替金合計", None, None, report["totalAdvance"], ""])
        rows.append(["(5) 純収益", "", "(3) - (4)", None, None, report["netIncome"], ""])

        next_row = self._write_table(ws, 3, rows, amount_columns=(4, 5, 6))

        distribution_rows = [
            ["分配", "配分率(%)", "端数", "端数単位", "配分額", "立替金", "前月調整", "振込額", "翌月調整",
             "銀行", "支店", "種別", "口座番号", "名義"]
        ]
        for d in report["distributions"]:
            account = d["account"]
            distribution_rows.append(
                [
                    f"第{d['position']}分配",
                    d["rate"],
                    "+" if d["rounding"] == "UP" else "-",
                    d["roundingUnit"],
                    d["allocated"],
                    d["advance"],
                    d["previousAdjustment"],
                    d["payout"],
                    d["carryForward"],
                    account["bank"],
                    account["branch"],
                    account["accountType"],
                    account["accountNumber"],
                    account["accountHolder"],
                ]
            )
        self._write_table(ws, next_row + 1, distribution_rows, amount_columns=(5, 6, 7, 8, 9))

        column_widths = [12, 8, 24, 14, 12, 14, 30, 12, 12, 14, 14, 8, 14, 20]
        for i, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(i)].width = width

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer.read()

    def generate_ledger_workbook(self, frames: Dict[str, pd.DataFrame]) -> bytes:
        """台帳ブックExcel生成（1台帳1シート）"""
        wb = Workbook()
        wb.remove(wb.active)

        for sheet_name, df in frames.items():
            ws = wb.create_sheet(title=sheet_name)
            rows = [list(df.columns)]
            for _, row in df.iterrows():
                rows.append([None if pd.isna(v) else v for v in row.tolist()])

            amount_columns = [
                i for i, dtype in enumerate(df.dtypes, 1) if pd.api.types.is_numeric_dtype(dtype)
            ]
            self._write_table(ws, 1, rows, amount_columns=amount_columns)

            for i, column in enumerate(df.columns, 1):
                ws.column_dimensions[get_column_letter(i)].width = max(10, len(str(column)) * 2 + 2)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer.read()


pdf_service = PDFService()
excel_service = ExcelService()
