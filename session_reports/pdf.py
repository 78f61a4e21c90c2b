from __future__ import annotations  # Styled PDF rendering for interview feedback reports

import os
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from persona_builder import InterviewDetails


DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_EMPHASIS = re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _plain(text: str) -> str:  # Drop inline markdown markers
    return _EMPHASIS.sub(r"\1", _BOLD.sub(r"\1", text)).strip()


class ReportPDF(FPDF):  # PDF with custom header/footer styling
    def __init__(self, *args, accent: Tuple[int, int, int] = ACCENT, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.accent = accent
        self.header_title = "Interview Feedback"
        self.font_regular = "Helvetica"
        self.font_bold = "Helvetica"
        self.supports_unicode = False

    def use_unicode_fonts(self) -> None:  # Switch to DejaVu when the system ships it
        if not (os.path.exists(DEJAVU_SANS) and os.path.exists(DEJAVU_SANS_BOLD)):
            return
        self.add_font("DejaVu", "", DEJAVU_SANS)
        self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        self.font_regular = "DejaVu"
        self.font_bold = "DejaVu"
        self.supports_unicode = True

    def prepare_text(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self.supports_unicode:
            return value
        cleaned = value.replace("•", "-").replace("’", "'").replace("–", "-").replace("—", "-")
        return cleaned.encode("latin-1", "ignore").decode("latin-1")

    def line_block(self, text: str, *, size: int = 11, bold: bool = False, color: Tuple[int, int, int] = TEXT, height: float = 6) -> None:
        self.set_x(self.l_margin)
        self.set_text_color(*color)
        self.set_font(self.font_bold if bold else self.font_regular, "B" if bold else "", size)
        self.multi_cell(_effective_width(self), height, self.prepare_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def header(self) -> None:  # Render header banner
        if self.page_no() == 1:
            self.set_fill_color(*self.accent)
            self.rect(0, 0, self.w, 18, style="F")
            self.set_text_color(255, 255, 255)
            self.set_font(self.font_bold, "B", 16)
            self.set_xy(self.l_margin, 5)
            self.cell(_effective_width(self), 8, self.prepare_text(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.set_text_color(*TEXT)
            self.set_y(24)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self.font_bold, "B", 12)
            self.cell(_effective_width(self), 6, self.prepare_text(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            mark = self.get_y()
            self.set_draw_color(*self.accent)
            self.set_line_width(0.4)
            self.line(self.l_margin, mark + 1, self.w - self.r_margin, mark + 1)
            self.set_text_color(*TEXT)
            self.ln(4)

    def footer(self) -> None:  # Render footer with pagination
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:  # Render styled section title
    pdf.ln(2)
    pdf.line_block(title, size=13, bold=True, height=9)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _details_rows(details: Optional[InterviewDetails], conversation_id: Optional[str]) -> List[Tuple[str, str]]:
    rows: List[Tuple[str, str]] = []
    if conversation_id:
        rows.append(("Conversation", conversation_id))
    if details is not None:
        rows.extend(
            [
                ("Category", details.shown("category")),
                ("Role", details.shown("role")),
                ("Industry", details.shown("industry")),
                ("Experience Level", details.shown("experience_level")),
                ("Interview Type", details.shown("interview_type")),
            ]
        )
    rows.append(("Generated", datetime.now(timezone.utc).strftime("%d %b %Y, %H:%M UTC")))
    return rows


def _render_markdown(pdf: ReportPDF, markdown: str) -> None:  # Headings, bullets and paragraphs only
    bullet = "•" if pdf.supports_unicode else "-"
    for raw in markdown.splitlines():
        line = raw.strip()
        if not line:
            pdf.ln(2)
        elif line.startswith("#"):
            _section_title(pdf, _plain(line.lstrip("#")))
        elif line.startswith(("- ", "* ")):
            pdf.line_block(f"{bullet} {_plain(line[2:])}")
        else:
            pdf.line_block(_plain(line))


def generate_feedback_report_pdf(  # Build PDF payload for generated interview feedback
    feedback: str,
    *,
    details: Optional[InterviewDetails] = None,
    conversation_id: Optional[str] = None,
) -> bytes:
    pdf = ReportPDF()
    pdf.use_unicode_fonts()
    pdf.alias_nb_pages()
    if details is not None and details.role:
        pdf.header_title = f"{details.role} - Interview Feedback"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Interview Details")
    for label, value in _details_rows(details, conversation_id):
        pdf.line_block(f"{label}: {value}", size=10, color=MUTED, height=5)

    _render_markdown(pdf, feedback)
    return bytes(pdf.output())


__all__ = ["ReportPDF", "generate_feedback_report_pdf"]
