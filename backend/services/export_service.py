"""
Export Service - ISO 2859-1 Inspection Plan Documents
Renders the printable sampling plan record for an inspection.

Features:
- CSV: flat Section / Field / Value rows for import into other systems.
- Excel: single styled sheet with Context, Sampling and Acceptance blocks.
- PDF: one printable page with the same content.
"""
import csv
import io
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

import config
from models import ExportFormat, InspectionContext, PlanMetadata

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportServiceError(Exception):
    """Custom exception for plan export errors"""
    pass


class ExportService:
    """
    Generates the plan document from a reconciled inspection context.
    """

    # ==================
    # Color Scheme & Styles
    # ==================
    HEADER_BG = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")  # Dark Blue
    HEADER_FONT = Font(bold=True, color="FFFFFF", size=10, name="Arial")

    SUBHEADER_BG = PatternFill(start_color="D6DCE4", end_color="D6DCE4", fill_type="solid")  # Light Gray
    TITLE_FONT = Font(bold=True, color="000000", size=14, name="Arial")
    LABEL_FONT = Font(bold=True, color="000000", size=9, name="Arial")
    DATA_FONT = Font(color="000000", size=9, name="Arial")
    NOTE_FONT = Font(italic=True, color="666666", size=8, name="Arial")

    ACCEPT_FONT = Font(bold=True, color="2E7D32", size=9, name="Arial")
    REJECT_FONT = Font(bold=True, color="C62828", size=9, name="Arial")

    THIN_BORDER = Border(
        left=Side(style='thin'), right=Side(style='thin'),
        top=Side(style='thin'), bottom=Side(style='thin')
    )
    CENTER = Alignment(horizontal='center', vertical='center', wrap_text=True)
    LEFT = Alignment(horizontal='left', vertical='center', wrap_text=True)

    def generate_plan_export(
        self,
        context: InspectionContext,
        format: ExportFormat,
        metadata: Optional[PlanMetadata] = None,
        filename: str = "inspection_plan",
        generated_at: Optional[datetime] = None
    ) -> Tuple[bytes, str, str]:
        """Orchestrator for generating plan documents."""
        if context.plan is None:
            raise ExportServiceError("No sampling plan: enter a positive lot size first")

        metadata = metadata or PlanMetadata()
        generated_at = generated_at or datetime.now()
        sections = self._build_sections(context, metadata)

        if format == ExportFormat.CSV:
            return self._generate_csv(sections, metadata, filename)
        if format == ExportFormat.XLSX:
            return self._generate_xlsx(sections, context, metadata, filename, generated_at)
        if format == ExportFormat.PDF:
            return self._generate_pdf(sections, context, metadata, filename, generated_at)

        raise ExportServiceError(f"Unsupported export format: {format}")

    # ==================
    # Content
    # ==================

    def _build_sections(self, context: InspectionContext, metadata: PlanMetadata) -> List[Tuple[str, List[Tuple[str, str]]]]:
        plan = context.plan
        level = context.aql_level.value if context.aql_level else config.DEFAULT_AQL_LEVEL

        return [
            ("Context", [
                ("Inspection Type", metadata.inspection_type.value.replace("_", " ").title()),
                ("Factory", metadata.supplier_name or ""),
                ("Brand", metadata.brand or ""),
                ("Inspector", metadata.inspector_name or ""),
                ("Item", metadata.item_name or "N/A"),
                ("PO Number", metadata.po_number or ""),
                ("Style Number", metadata.style_number or ""),
                ("Batch", metadata.batch_lot_number or ""),
            ]),
            ("Sampling (ISO 2859-1)", [
                ("Lot Size", f"{context.lot_size} units"),
                ("Sample Size", f"{context.sample_size} units"),
                ("AQL Level", f"Level {level} (Code {plan.code_letter})"),
                ("Plan Sample Size", f"{plan.sample_size} units"),
                ("Tags To Print", str(context.tag_quantity)),
            ]),
            ("Acceptance", [
                (f"Major ({context.aql_major})", f"Ac: {plan.major.ac} | Re: {plan.major.re}"),
                (f"Minor ({context.aql_minor})", f"Ac: {plan.minor.ac} | Re: {plan.minor.re}"),
            ]),
        ]

    def _document_filename(self, filename: str, metadata: PlanMetadata, extension: str) -> str:
        parts = [filename]
        if metadata.po_number:
            parts.insert(0, metadata.po_number)
        if metadata.style_number:
            parts.append(metadata.style_number)
        return "_".join(p.replace(" ", "-") for p in parts) + f".{extension}"

    # ==================
    # Writers
    # ==================

    def _generate_csv(self, sections, metadata: PlanMetadata, filename: str) -> Tuple[bytes, str, str]:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["Section", "Field", "Value"])
        for section, rows in sections:
            for label, value in rows:
                writer.writerow([section, label, value])

        return (output.getvalue().encode("utf-8"), "text/csv", self._document_filename(filename, metadata, "csv"))

    def _generate_xlsx(self, sections, context, metadata, filename, generated_at) -> Tuple[bytes, str, str]:
        wb = Workbook()
        ws = wb.active
        ws.title = config.PLAN_DOCUMENT_TITLE

        ws.column_dimensions['A'].width = 24
        ws.column_dimensions['B'].width = 40

        ws.merge_cells('A1:B1')
        title = ws.cell(row=1, column=1, value=config.PLAN_DOCUMENT_TITLE.upper())
        title.font = self.TITLE_FONT
        title.alignment = self.CENTER

        ws.merge_cells('A2:B2')
        ref = ws.cell(row=2, column=1, value=f"Ref: {metadata.po_number or ''} / {metadata.style_number or ''}")
        ref.font = self.NOTE_FONT
        ref.alignment = self.CENTER

        row = 4
        for section, rows in sections:
            ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=2)
            header = ws.cell(row=row, column=1, value=section)
            header.font = self.HEADER_FONT
            header.fill = self.HEADER_BG
            header.alignment = self.LEFT
            row += 1

            for label, value in rows:
                l_cell = ws.cell(row=row, column=1, value=label)
                l_cell.font = self.LABEL_FONT
                l_cell.fill = self.SUBHEADER_BG
                l_cell.border = self.THIN_BORDER

                v_cell = ws.cell(row=row, column=2, value=value)
                v_cell.font = self.DATA_FONT
                v_cell.border = self.THIN_BORDER
                v_cell.alignment = self.LEFT
                row += 1
            row += 1

        # Numeric Ac/Re block for downstream formulas
        plan = context.plan
        for col, text in enumerate(["Severity", "AQL", "Ac", "Re"], start=4):
            cell = ws.cell(row=4, column=col, value=text)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_BG
            cell.alignment = self.CENTER
        for offset, (severity, aql, limits) in enumerate([
            ("Major", context.aql_major, plan.major),
            ("Minor", context.aql_minor, plan.minor),
        ], start=5):
            ws.cell(row=offset, column=4, value=severity).font = self.LABEL_FONT
            ws.cell(row=offset, column=5, value=aql).font = self.DATA_FONT
            ws.cell(row=offset, column=6, value=limits.ac).font = self.ACCEPT_FONT
            ws.cell(row=offset, column=7, value=limits.re).font = self.REJECT_FONT
            for col in range(4, 8):
                ws.cell(row=offset, column=col).border = self.THIN_BORDER
                ws.cell(row=offset, column=col).alignment = self.CENTER

        row += 1
        ws.merge_cells(f'A{row}:B{row}')
        ws.cell(
            row=row, column=1,
            value=f"Generated by {config.EXPORT_ORGANIZATION} | {generated_at.strftime('%Y-%m-%d %H:%M')}"
        ).font = self.NOTE_FONT

        ws.page_setup.orientation = 'portrait'

        output = io.BytesIO()
        wb.save(output)
        return (output.getvalue(), XLSX_CONTENT_TYPE, self._document_filename(filename, metadata, "xlsx"))

    def _generate_pdf(self, sections, context, metadata, filename, generated_at) -> Tuple[bytes, str, str]:
        buffer = io.BytesIO()
        width, height = A4
        c = canvas.Canvas(buffer, pagesize=A4)
        c.setTitle(config.PLAN_DOCUMENT_TITLE)

        margin = 50
        y = height - margin

        c.setFont("Helvetica-Bold", 18)
        c.drawString(margin, y, config.PLAN_DOCUMENT_TITLE)
        c.setFont("Helvetica", 9)
        c.drawRightString(width - margin, y, metadata.inspection_type.value.replace("_", " ").upper())
        y -= 16
        c.drawString(margin, y, f"Ref: {metadata.po_number or ''} / {metadata.style_number or ''}")
        c.drawRightString(width - margin, y, f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}")
        y -= 12
        c.line(margin, y, width - margin, y)
        y -= 24

        for section, rows in sections:
            c.setFont("Helvetica-Bold", 11)
            c.drawString(margin, y, section.upper())
            y -= 16
            for label, value in rows:
                c.setFont("Helvetica", 9)
                c.drawString(margin + 10, y, f"{label}:")
                c.setFont("Helvetica-Bold", 9)
                c.drawString(margin + 150, y, value)
                y -= 14
            y -= 10

        c.setFont("Helvetica-Oblique", 8)
        c.drawString(margin, margin, f"Generated by {config.EXPORT_ORGANIZATION}")
        c.showPage()
        c.save()

        logger.info(f"Rendered plan PDF for code {context.plan.code_letter}")
        return (buffer.getvalue(), "application/pdf", self._document_filename(filename, metadata, "pdf"))


# Singleton instance
export_service = ExportService()
