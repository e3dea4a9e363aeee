"""PDF export of the weekly performance dashboard."""

import io
from datetime import datetime
from typing import Any, Optional, Sequence

import structlog
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from grid_dashboard.models.domain_models import KPISummary, WeeklyRecord
from grid_dashboard.utils.exceptions import ReportExportError

logger = structlog.get_logger()

REPORT_TITLE = "GRIDCo Performance Dashboard"
FOOTER_NOTICE = "© 2025 PURC - ESPM Analytics Portal"
HISTORY_WEEKS = 10

BANNER_COLOR = colors.Color(41 / 255, 128 / 255, 185 / 255)
ACCENT_COLOR = colors.Color(52 / 255, 152 / 255, 219 / 255)
BANNER_HEIGHT = 35 * mm


def report_filename(generated_at: datetime) -> str:
    return f"GRIDCo_Performance_Report_{generated_at.date().isoformat()}.pdf"


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers page footers until the page count is known."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict[str, Any]] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count)
            super().showPage()
        super().save()

    def _draw_footer(self, page_count: int) -> None:
        width, _ = self._pagesize
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawCentredString(width / 2, 10 * mm, f"Page {self._pageNumber} of {page_count}")
        self.drawCentredString(width / 2, 5 * mm, FOOTER_NOTICE)
        self.restoreState()


def _table(rows: list[list[str]], header_color: colors.Color, striped: bool) -> Table:
    table = Table(rows, hAlign="LEFT", repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), header_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    if striped:
        style.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]))
    else:
        style.append(("GRID", (0, 0), (-1, -1), 0.5, colors.grey))
    table.setStyle(TableStyle(style))
    return table


def build_report(
    records: Sequence[WeeklyRecord],
    kpis: Optional[KPISummary],
    generated_at: datetime,
) -> bytes:
    """Render records and KPIs into a paginated PDF report.

    Args:
        records: Weekly records in chronological order
        kpis: Summary derived from the records, if any
        generated_at: Timestamp printed in the banner

    Returns:
        PDF document bytes

    Raises:
        ReportExportError: If the document cannot be rendered
    """
    styles = getSampleStyleSheet()
    heading = styles["Heading2"]
    story: list[Any] = [Spacer(1, BANNER_HEIGHT - 10 * mm)]

    if kpis is not None:
        story.append(Paragraph("Key Performance Indicators", heading))
        story.append(
            _table(
                [
                    ["Metric", "Value"],
                    ["Peak Demand", f"{kpis.peak_demand.value:.2f} MW"],
                    ["Total Generation", f"{kpis.total_generation.value:.2f} GWh"],
                    ["Grid Stability", f"{kpis.grid_stability.value:.2f}%"],
                    ["System Availability", f"{kpis.system_availability.value:.2f}%"],
                ],
                BANNER_COLOR,
                striped=False,
            )
        )
        story.append(Spacer(1, 8 * mm))

    if records:
        latest = records[-1]
        story.append(Paragraph("Latest Week Summary", heading))
        story.append(
            _table(
                [
                    ["Period", "Metric", "Value"],
                    [latest.date, "Total Energy Generated", f"{latest.total_energy_generated:.2f} GWh"],
                    [latest.date, "Max Ghana Demand", f"{latest.max_ghana_demand:.2f} MW"],
                    [latest.date, "Max Domestic Demand", f"{latest.max_domestic_demand:.2f} MW"],
                    [latest.date, "Average Demand", f"{latest.average_demand:.2f} MW"],
                    [latest.date, "Load Factor", f"{latest.load_factor:.2f}%"],
                    [latest.date, "Frequency Within Range", f"{latest.frequency_within_range:.2f}%"],
                ],
                ACCENT_COLOR,
                striped=True,
            )
        )
        story.append(Spacer(1, 8 * mm))

        story.append(Paragraph("Transmission Line Availability", heading))
        story.append(
            _table(
                [
                    ["Voltage Level", "Availability (%)"],
                    ["69 kV", f"{latest.availability_69kv:.2f}"],
                    ["161 kV", f"{latest.availability_161kv:.2f}"],
                    ["225 kV", f"{latest.availability_225kv:.2f}"],
                    ["330 kV", f"{latest.availability_330kv:.2f}"],
                ],
                BANNER_COLOR,
                striped=False,
            )
        )

    story.append(PageBreak())
    story.append(Paragraph("Historical Weekly Data", heading))
    history = [
        ["Week", "Generation (GWh)", "Peak Demand (MW)", "Load Factor (%)", "Freq. In Range (%)"]
    ]
    for week in records[-HISTORY_WEEKS:]:
        history.append(
            [
                week.date,
                f"{week.total_energy_generated:.2f}",
                f"{week.max_ghana_demand:.2f}",
                f"{week.load_factor:.2f}",
                f"{week.frequency_within_range:.2f}",
            ]
        )
    story.append(_table(history, ACCENT_COLOR, striped=True))

    def draw_banner(pdf: canvas.Canvas, doc: SimpleDocTemplate) -> None:
        width, height = doc.pagesize
        pdf.saveState()
        pdf.setFillColor(BANNER_COLOR)
        pdf.rect(0, height - BANNER_HEIGHT, width, BANNER_HEIGHT, stroke=0, fill=1)
        pdf.setFillColor(colors.white)
        pdf.setFont("Helvetica-Bold", 20)
        pdf.drawCentredString(width / 2, height - 15 * mm, REPORT_TITLE)
        pdf.setFont("Helvetica", 10)
        pdf.drawCentredString(
            width / 2,
            height - 25 * mm,
            f"Report Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        )
        pdf.restoreState()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=REPORT_TITLE,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
    )

    try:
        doc.build(story, onFirstPage=draw_banner, canvasmaker=_NumberedCanvas)
    except Exception as e:
        logger.error("report_build_failed", error=str(e), error_type=type(e).__name__)
        raise ReportExportError(f"Failed to build PDF report: {e}") from e

    content = buffer.getvalue()
    logger.info("report_built", weeks=len(records), size_bytes=len(content))
    return content
