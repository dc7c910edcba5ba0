"""
PDF rendering of design requests.

A ``RequestDocumentBuilder`` collects ordered section writes (title block,
headings, field lines, wrapped paragraphs, footer) into a reportlab
platypus story held in memory. ``build()`` lays the story out on Letter
pages and returns the PDF bytes.

All text is cleaned again here, independently of intake sanitization,
because the renderer may be fed records that were written by another path.
"""

from __future__ import annotations

import logging
import unicodedata
from datetime import datetime, timezone as dt_timezone, tzinfo
from io import BytesIO
from typing import List, Tuple
from xml.sax.saxutils import escape
from zoneinfo import ZoneInfo

from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from .errors import RenderError
from .models import DesignRequest

logger = logging.getLogger(__name__)

DOCUMENT_TITLE = "Design Request Submission"
MAX_TEXT_LENGTH = 10000
PAGE_MARGIN = 50

_STYLES = {
    "title": ParagraphStyle("title", fontName="Helvetica-Bold", fontSize=24, leading=29, alignment=TA_CENTER),
    "subtitle": ParagraphStyle("subtitle", fontName="Helvetica", fontSize=10, leading=12, alignment=TA_CENTER),
    "heading": ParagraphStyle("heading", fontName="Helvetica-Bold", fontSize=16, leading=19, spaceBefore=6),
    "field": ParagraphStyle("field", fontName="Helvetica", fontSize=12, leading=15, leftIndent=20),
    "body": ParagraphStyle("body", fontName="Helvetica", fontSize=11, leading=14, leftIndent=20, alignment=TA_LEFT),
    "footer": ParagraphStyle("footer", fontName="Helvetica", fontSize=8, leading=10, alignment=TA_CENTER),
}


def clean_text(value: str, limit: int = MAX_TEXT_LENGTH) -> str:
    """Drop non-printable characters (newlines kept) and cap the length."""
    printable = "".join(
        char for char in value
        if char == "\n" or not unicodedata.category(char).startswith("C")
    )
    return printable[:limit]


def _resolve_zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return dt_timezone.utc
    return ZoneInfo(name)


def format_submitted_at(created_at: datetime, timezone: str = "UTC") -> str:
    """
    Human-readable submission time, e.g. ``October 18, 2026, 08:53 PM UTC``.
    """
    local = created_at.astimezone(_resolve_zone(timezone))
    return f"{local:%B} {local.day}, {local.year}, {local:%I:%M %p} {local.tzname()}"


class RequestDocumentBuilder:
    """
    Accumulates document sections in order and finalizes them into a PDF.

    Attributes:
        outline: ``(kind, text)`` pairs of everything written so far, in
            order, after text cleaning
        page_count: Number of pages produced by the last ``build()``
    """

    def __init__(self, title: str = DOCUMENT_TITLE, max_text_length: int = MAX_TEXT_LENGTH) -> None:
        self.title = title
        self.max_text_length = max_text_length
        self.outline: List[Tuple[str, str]] = []
        self.page_count = 0
        self._story: list = []

    def _write(self, kind: str, text: str, style: str) -> "RequestDocumentBuilder":
        cleaned = clean_text(text, self.max_text_length)
        self.outline.append((kind, cleaned))
        markup = escape(cleaned).replace("\n", "<br/>")
        self._story.append(Paragraph(markup, _STYLES[style]))
        return self

    def _space(self, points: float) -> None:
        self._story.append(Spacer(1, points))

    def title_block(self, title: str, subtitle: str) -> "RequestDocumentBuilder":
        self._write("title", title, "title")
        self._space(6)
        self._write("subtitle", subtitle, "subtitle")
        self._space(12)
        return self

    def heading(self, text: str) -> "RequestDocumentBuilder":
        self._write("heading", text, "heading")
        self._space(4)
        return self

    def field(self, label: str, value: str) -> "RequestDocumentBuilder":
        return self._write("field", f"{label}: {value}", "field")

    def paragraph(self, text: str) -> "RequestDocumentBuilder":
        return self._write("paragraph", text, "body")

    def end_section(self) -> "RequestDocumentBuilder":
        self._space(8)
        return self

    def footer(self, text: str) -> "RequestDocumentBuilder":
        self._space(24)
        return self._write("footer", text, "footer")

    def headings(self) -> List[str]:
        return [text for kind, text in self.outline if kind == "heading"]

    def build(self) -> bytes:
        buffer = BytesIO()
        document = SimpleDocTemplate(
            buffer,
            pagesize=LETTER,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
            title=self.title,
            invariant=1,
        )
        document.build(list(self._story))
        self.page_count = document.page
        return buffer.getvalue()


def compose_request_document(
    request: DesignRequest,
    timezone: str = "UTC",
    max_text_length: int = MAX_TEXT_LENGTH,
) -> RequestDocumentBuilder:
    builder = RequestDocumentBuilder(max_text_length=max_text_length)
    builder.title_block(DOCUMENT_TITLE, f"Submitted: {format_submitted_at(request.created_at, timezone)}")

    builder.heading("Client Information")
    builder.field("Name", request.client_name)
    builder.field("Email", request.email)
    if request.phone_number:
        builder.field("Phone", request.phone_number)
    builder.end_section()

    builder.heading("Project Details")
    builder.field("Project Type", request.project_type.value)
    builder.field("Timeline", request.timeline.value)
    builder.field("Budget Range", f"${request.budget.value}")
    builder.end_section()

    builder.heading("Project Description")
    builder.paragraph(request.design_description)
    builder.end_section()

    if request.color_preferences or request.style_preferences:
        builder.heading("Design Preferences")
        if request.color_preferences:
            builder.field("Color Preferences", request.color_preferences)
        if request.style_preferences:
            builder.field("Style Preferences", request.style_preferences)
        builder.end_section()

    if request.key_features:
        builder.heading("Key Features Required")
        builder.paragraph(request.key_features)
        builder.end_section()

    if request.reference_websites:
        builder.heading("Reference Websites")
        builder.paragraph(request.reference_websites)

    builder.footer(f"Request ID: {request.id}")
    return builder


def render_request_pdf(
    request: DesignRequest,
    timezone: str = "UTC",
    max_text_length: int = MAX_TEXT_LENGTH,
) -> bytes:
    """
    Render a design request as a paginated PDF.

    Raises:
        RenderError: If the document could not be composed or laid out
    """
    try:
        pdf_bytes = compose_request_document(request, timezone, max_text_length).build()
    except Exception as exc:  # noqa: BLE001
        raise RenderError(f"Failed to render request {request.id}: {exc}") from exc
    logger.info(f"Rendered request {request.id} ({len(pdf_bytes)} bytes)")
    return pdf_bytes
