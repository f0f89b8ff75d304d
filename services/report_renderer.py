"""Render a ReportData bundle to PDF (reportlab) or an Excel workbook (openpyxl)."""
import io

from matplotlib.figure import Figure
from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from services.report_service import ReportData, ReportOptions
from utils.constants import REPORT_FORMATS
from utils.currency import format_currency

BOLD = Font(bold=True)
NO_DATA = "No data available"

TRANSACTION_COLUMNS = ["id", "name", "amount", "date", "category"]
RECURRING_COLUMNS = [
    "id", "type", "name", "category", "amount", "frequency",
    "day_of_month", "weekday", "next_run_date", "last_run_date",
]
BUDGET_COLUMNS = ["category", "monthly_limit", "spent_amount", "remaining_amount", "percentage_used"]


class ReportRenderer:
    def __init__(self, currency_symbol: str = "€"):
        self._symbol = currency_symbol

    def render(self, report: ReportData, fmt: str, options: ReportOptions | None = None) -> bytes:
        options = options or ReportOptions()
        if fmt not in REPORT_FORMATS:
            raise ValueError(f"Unsupported report format: {fmt}")
        if fmt == "excel":
            return self.render_excel(report, options)
        return self.render_pdf(report, options)

    # ── PDF ───────────────────────────────────────────────────────────────────

    def render_pdf(self, report: ReportData, options: ReportOptions) -> bytes:
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf, pagesize=A4,
            leftMargin=40, rightMargin=40, topMargin=40, bottomMargin=40,
            title="Expense Tracker Report",
        )
        styles = getSampleStyleSheet()

        story = [
            Paragraph("Expense Tracker Report", styles["Title"]),
            Paragraph(f"Period: {report.start_date} - {report.end_date}", styles["Normal"]),
            Paragraph(f"Generated: {report.generated_at}", styles["Normal"]),
            Spacer(1, 0.2 * inch),
            Paragraph("Summary", styles["Heading2"]),
            self._pdf_table([
                ["Total Income", self._money(report.totals.total_credits)],
                ["Total Expenses", self._money(report.totals.total_expenses)],
                ["Balance", self._money(report.totals.balance)],
            ]),
        ]

        if options.include_trends and report.trends:
            story += [Spacer(1, 0.15 * inch), Image(self._trend_chart(report.trends), 6 * inch, 2.6 * inch)]

        story += self._pdf_section(
            "Expenses", styles,
            [[e.date, e.name, e.category, self._money(e.amount)] for e in report.expenses],
            ["Date", "Name", "Category", "Amount"],
            "No expenses recorded in this period.",
        )
        story += self._pdf_section(
            "Income", styles,
            [[c.date, c.name, c.category, self._money(c.amount)] for c in report.credits],
            ["Date", "Name", "Category", "Amount"],
            "No income recorded in this period.",
        )
        if options.include_budget_overview:
            story += self._pdf_section(
                "Budget", styles,
                [
                    [g.category, self._money(g.monthly_limit), self._money(g.spent_amount), f"{g.percentage_used:.2f}%"]
                    for g in report.budget_goals
                ],
                ["Category", "Monthly limit", "Spent", "Used"],
                "No active budget goals.",
            )
        if options.include_recurring:
            story += self._pdf_section(
                "Recurring", styles,
                [
                    [r.type.upper(), r.name, self._money(r.amount), r.frequency, r.next_run_date]
                    for r in report.recurring
                ],
                ["Type", "Name", "Amount", "Frequency", "Next run"],
                "No active recurring transactions.",
            )

        doc.build(story)
        return buf.getvalue()

    def _pdf_section(self, title, styles, rows, header, empty_text) -> list:
        flowables = [Spacer(1, 0.2 * inch), Paragraph(title, styles["Heading2"])]
        if rows:
            flowables.append(self._pdf_table([header] + rows, header_row=True))
        else:
            flowables.append(Paragraph(empty_text, styles["Normal"]))
        return flowables

    @staticmethod
    def _pdf_table(rows, header_row: bool = False) -> Table:
        table = Table(rows, hAlign="LEFT")
        style = [
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]
        if header_row:
            style += [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ]
        table.setStyle(TableStyle(style))
        return table

    def _trend_chart(self, trends: list[dict]) -> io.BytesIO:
        fig = Figure(figsize=(6, 2.6), dpi=100, layout="tight")
        ax = fig.add_subplot(111)
        labels = [t["month"] for t in trends]
        x = list(range(len(trends)))
        w = 0.38
        ax.bar([i - w / 2 for i in x], [t["income"] for t in trends], w, color="#4CAF50", label="Income")
        ax.bar([i + w / 2 for i in x], [t["expense"] for t in trends], w, color="#F44336", label="Expenses")
        ax.set_xticks(x)
        ax.set_xticklabels(labels, fontsize=8)
        ax.tick_params(axis="y", labelsize=8)
        ax.set_title("Monthly Income vs Expenses", fontsize=10)
        ax.legend(fontsize=8)
        out = io.BytesIO()
        fig.savefig(out, format="png")
        out.seek(0)
        return out

    # ── Excel ─────────────────────────────────────────────────────────────────

    def render_excel(self, report: ReportData, options: ReportOptions) -> bytes:
        wb = Workbook()
        summary = wb.active
        summary.title = "Summary"
        self._write_rows(summary, ["Metric", "Value"], [
            ["Period Start", report.start_date],
            ["Period End", report.end_date],
            ["Generated At", report.generated_at],
            ["Total Income", report.totals.total_credits],
            ["Total Expenses", report.totals.total_expenses],
            ["Balance", report.totals.balance],
        ])
        if options.include_trends and report.trends:
            summary.append([])
            summary.append(["Month", "Income", "Expenses", "Net"])
            for cell in summary[summary.max_row]:
                cell.font = BOLD
            for t in report.trends:
                summary.append([t["month"], t["income"], t["expense"], t["net"]])
        summary.column_dimensions["A"].width = 30
        summary.column_dimensions["B"].width = 20

        self._write_records(wb.create_sheet("Expenses"), TRANSACTION_COLUMNS, report.expenses)
        self._write_records(wb.create_sheet("Income"), TRANSACTION_COLUMNS, report.credits)
        if options.include_recurring:
            self._write_records(wb.create_sheet("Recurring"), RECURRING_COLUMNS, report.recurring)
        if options.include_budget_overview:
            self._write_records(wb.create_sheet("Budget"), BUDGET_COLUMNS, report.budget_goals)

        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    def _write_records(self, ws, columns: list[str], records: list):
        if not records:
            ws.append([NO_DATA])
            return
        self._write_rows(ws, columns, [[getattr(r, c) for c in columns] for r in records])

    @staticmethod
    def _write_rows(ws, header: list[str], rows: list[list]):
        ws.append(header)
        for cell in ws[1]:
            cell.font = BOLD
        for row in rows:
            ws.append(row)
        for idx in range(1, len(header) + 1):
            ws.column_dimensions[ws.cell(row=1, column=idx).column_letter].width = 20

    def _money(self, value) -> str:
        return format_currency(float(value or 0), self._symbol)
