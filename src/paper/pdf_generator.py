"""
Exam Cell Question Bank - Question Paper PDF Generator
Renders an assembled QuestionPaper with ReportLab.
"""
import io
import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.colors import black, gray, HexColor
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, KeepTogether
)
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from config.settings import get_settings
from src.question_bank.paper import (
    PaperHeader, PaperQuestion, PaperSection, PaperSubquestion, QuestionPaper, split_math_segments
)

logger = logging.getLogger(__name__)
settings = get_settings()

# Unicode font for symbols that Helvetica lacks
FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf",
]


def register_fonts() -> str:
    """Register DejaVu when installed; otherwise fall back to Helvetica."""
    registered = pdfmetrics.getRegisteredFontNames()
    for font_path in FONT_PATHS:
        if not os.path.exists(font_path):
            continue
        if "Bold" in font_path:
            name = "PaperBold"
        elif "Oblique" in font_path:
            name = "PaperItalic"
        else:
            name = "Paper"
        if name in registered:
            continue
        try:
            pdfmetrics.registerFont(TTFont(name, font_path))
        except Exception as e:
            logger.warning(f"Could not register font {font_path}: {e}")

    return "Paper" if "Paper" in pdfmetrics.getRegisteredFontNames() else "Helvetica"


def render_inline(text: str, italic_font: str) -> str:
    """Paragraph markup for block content: plain runs escaped, $...$ runs in italics."""
    parts = []
    for is_math, segment in split_math_segments(text):
        segment = escape(segment).replace("\n", "<br/>")
        if is_math:
            parts.append(f'<font name="{italic_font}">{segment}</font>')
        else:
            parts.append(segment)
    return "".join(parts)


class QuestionPaperPDFGenerator:
    """Question paper PDF generator."""

    PAGE_WIDTH, PAGE_HEIGHT = A4
    MARGIN = 1.5 * cm

    PRIMARY_COLOR = HexColor("#1a365d")
    LIGHT_BG = HexColor("#f7fafc")

    # S.NO, QUESTION, CO, BL, MARKS
    COLUMN_RATIOS = [0.08, 0.62, 0.10, 0.10, 0.10]

    def __init__(self, output_dir: Optional[str] = None):
        """
        Args:
            output_dir: PDF output directory
        """
        self.output_dir = Path(output_dir or settings.paper_output_dir)

        self.font_name = register_fonts()
        names = pdfmetrics.getRegisteredFontNames()
        self.bold_font = "PaperBold" if "PaperBold" in names else "Helvetica-Bold"
        self.italic_font = "PaperItalic" if "PaperItalic" in names else "Helvetica-Oblique"

        self._setup_styles()

    def _setup_styles(self):
        self.styles = getSampleStyleSheet()

        self.styles.add(ParagraphStyle(
            name="PaperTitle",
            fontName=self.bold_font,
            fontSize=14,
            textColor=self.PRIMARY_COLOR,
            alignment=TA_CENTER,
            spaceAfter=6
        ))

        self.styles.add(ParagraphStyle(
            name="ModuleTitle",
            fontName=self.bold_font,
            fontSize=12,
            alignment=TA_CENTER,
            spaceBefore=12,
            spaceAfter=6
        ))

        self.styles.add(ParagraphStyle(
            name="Cell",
            fontName=self.font_name,
            fontSize=9.5,
            leading=12,
            textColor=black,
            alignment=TA_LEFT
        ))

        self.styles.add(ParagraphStyle(
            name="CellCenter",
            parent=self.styles["Cell"],
            alignment=TA_CENTER
        ))

        self.styles.add(ParagraphStyle(
            name="HeaderCell",
            fontName=self.bold_font,
            fontSize=9.5,
            alignment=TA_CENTER
        ))

    # ================== HEADER ==================

    def _create_header(self, header: PaperHeader) -> List:
        elements = []
        institution = header.institution or settings.institution_name
        elements.append(Paragraph(escape(institution), self.styles["PaperTitle"]))
        elements.append(Paragraph("QUESTION BANK", self.styles["PaperTitle"]))

        cell = self.styles["Cell"]
        credits = "" if header.credits is None else f"{header.credits:g}"
        rows = [
            ["Course Code", header.course_code, "Course Title", header.course_title],
            ["Program", header.program, "Regulation", header.regulation],
            ["Year of Study", header.year_of_study, "Semester", header.semester],
            ["Academic Year", header.academic_year, "Credits", credits],
            ["Faculty", ", ".join(header.faculty), "", ""],
        ]
        data = [[Paragraph(escape(str(value)), cell) for value in row] for row in rows]

        width = self.PAGE_WIDTH - 2 * self.MARGIN
        table = Table(data, colWidths=[width * 0.18, width * 0.32, width * 0.18, width * 0.32])
        table.setStyle(TableStyle([
            ("GRID", (0, 0), (-1, -1), 0.5, gray),
            ("BACKGROUND", (0, 0), (0, -1), self.LIGHT_BG),
            ("BACKGROUND", (2, 0), (2, -2), self.LIGHT_BG),
            ("SPAN", (1, -1), (3, -1)),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 0.4 * cm))
        return elements

    # ================== SECTIONS ==================

    def _subquestion_cell(self, sub: PaperSubquestion) -> List:
        text = render_inline(sub.content, self.italic_font)
        if sub.label:
            text = f'<font name="{self.bold_font}">{sub.label}</font> {text}'
        flowables = [Paragraph(text or "&nbsp;", self.styles["Cell"])]
        for index, url in enumerate(sub.image_urls, 1):
            href = escape(url, {'"': "&quot;"})
            link = f'<link href="{href}" color="blue">[Figure {index}]</link>'
            flowables.append(Paragraph(link, self.styles["Cell"]))
        return flowables

    def _question_rows(self, question: PaperQuestion) -> List[List]:
        center = self.styles["CellCenter"]
        outcome = "" if question.course_outcome is None else f"CO{question.course_outcome}"
        rows = []
        for index, sub in enumerate(question.subquestions):
            rows.append([
                Paragraph(str(question.sno), center) if index == 0 else "",
                self._subquestion_cell(sub),
                Paragraph(outcome, center) if index == 0 else "",
                Paragraph("" if sub.bloom_level is None else f"L{sub.bloom_level}", center),
                Paragraph("" if sub.marks is None else str(sub.marks), center),
            ])
        return rows

    def _create_section(self, section: PaperSection) -> List:
        header_style = self.styles["HeaderCell"]
        width = self.PAGE_WIDTH - 2 * self.MARGIN

        data = [
            [Paragraph(escape(section.title), header_style), "", "", "", ""],
            [Paragraph(label, header_style) for label in ("S.NO", "QUESTION", "CO", "BL", "MARKS")],
        ]
        style = [
            ("GRID", (0, 0), (-1, -1), 0.5, gray),
            ("SPAN", (0, 0), (-1, 0)),
            ("BACKGROUND", (0, 0), (-1, 1), self.LIGHT_BG),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]

        for question in section.questions:
            start = len(data)
            data.extend(self._question_rows(question))
            end = len(data) - 1
            if end > start:
                # S.NO and CO span every sub-question row
                style.append(("SPAN", (0, start), (0, end)))
                style.append(("SPAN", (2, start), (2, end)))

        table = Table(data, colWidths=[width * r for r in self.COLUMN_RATIOS], repeatRows=2)
        table.setStyle(TableStyle(style))
        return [table, Spacer(1, 0.3 * cm)]

    def build_elements(self, paper: QuestionPaper, header: Optional[PaperHeader] = None) -> List:
        elements = self._create_header(header or PaperHeader())
        for module in paper.modules:
            title = Paragraph(escape(module.title), self.styles["ModuleTitle"])
            sections = [self._create_section(section) for section in module.sections]
            if not sections:
                elements.append(title)
                continue
            # Keep the module title with its first table
            elements.append(KeepTogether([title] + sections[0]))
            for flowables in sections[1:]:
                elements.extend(flowables)
        return elements

    def _build(self, target: Union[str, io.BytesIO], paper: QuestionPaper, header: Optional[PaperHeader]) -> None:
        doc = SimpleDocTemplate(
            target,
            pagesize=A4,
            leftMargin=self.MARGIN,
            rightMargin=self.MARGIN,
            topMargin=self.MARGIN,
            bottomMargin=self.MARGIN,
            title="Question Bank"
        )
        doc.build(self.build_elements(paper, header))

    def render(self, paper: QuestionPaper, header: Optional[PaperHeader] = None) -> bytes:
        """Render to memory, for streaming over HTTP."""
        buffer = io.BytesIO()
        self._build(buffer, paper, header)
        return buffer.getvalue()

    def generate(self, paper: QuestionPaper, header: Optional[PaperHeader] = None) -> str:
        """
        Write the paper to output_dir.

        Args:
            paper: Assembled question paper
            header: Course details for the title block

        Returns:
            Path of the written PDF
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        paper_id = str(uuid.uuid4())[:8]
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = self.output_dir / f"question_bank_{timestamp}_{paper_id}.pdf"

        self._build(str(output_path), paper, header)

        logger.info(f"PDF written: {output_path} ({paper.question_count} questions)")
        return str(output_path)
