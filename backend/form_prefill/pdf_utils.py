"""
Low-level PDF utilities for filling AcroForm-based templates.

The fill pipeline is: load the template bytes into an editable PyMuPDF
document, apply a descriptor's mapping rules field by field, bake the widgets
into static page content, append a plain-text review page and serialize.
Template I/O is not done here; callers pass the raw bytes in, so every fill
works on its own freshly opened document.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, List, Mapping, Optional, Tuple

import fitz  # PyMuPDF

from .errors import (
    FieldWriteError,
    FormPrefillError,
    SerializationFailed,
    TemplateLoadFailed,
)
from .templates import TemplateDescriptor

logger = logging.getLogger(__name__)

FIELD_FONT_SIZE = 10

SUMMARY_TITLE = "Auto-filled summary (for review only):"
SUMMARY_MAX_ENTRIES = 30
SUMMARY_PAGE_SIZE: Tuple[float, float] = (595.28, 841.89)
SUMMARY_MARGIN_X = 50
SUMMARY_TITLE_Y = 50
SUMMARY_FIRST_LINE_Y = 70
SUMMARY_LINE_PITCH = 14
SUMMARY_BOTTOM_MARGIN = 40


class PdfFormHandle:
    """Field access for an open document, keyed by fully qualified field name."""

    def __init__(self, doc: "fitz.Document"):
        # Pages are kept alive for as long as the handle writes to their widgets.
        self._pages = list(doc)
        self._index: Dict[str, List[int]] = {}
        for page_no, page in enumerate(self._pages):
            for widget in page.widgets():
                pages = self._index.setdefault(widget.field_name, [])
                if page_no not in pages:
                    pages.append(page_no)

    @property
    def field_names(self) -> List[str]:
        return list(self._index)

    def _widgets(self, name: str):
        page_numbers = self._index.get(name)
        if not page_numbers:
            raise FieldWriteError(name)
        for page_no in page_numbers:
            for widget in self._pages[page_no].widgets():
                if widget.field_name == name:
                    yield widget

    def set_text(self, name: str, value: str) -> None:
        for widget in self._widgets(name):
            if widget.field_type != fitz.PDF_WIDGET_TYPE_TEXT:
                raise FieldWriteError(name, f"not a text field ({widget.field_type_string})")
            text = value
            if widget.text_maxlen and len(text) > widget.text_maxlen:
                text = text[: widget.text_maxlen]
            if not widget.text_fontsize:
                widget.text_fontsize = FIELD_FONT_SIZE
            widget.field_value = text
            widget.update()

    def select_radio(self, name: str, value: str) -> None:
        wanted = value.strip().lower()
        states = []
        for widget in self._widgets(name):
            if widget.field_type != fitz.PDF_WIDGET_TYPE_RADIOBUTTON:
                raise FieldWriteError(name, f"not a radio group ({widget.field_type_string})")
            state = widget.on_state()
            states.append(state.strip().lower() if isinstance(state, str) else "")
        if wanted not in states:
            raise FieldWriteError(name, f"no option '{value}'")

        for widget in self._widgets(name):
            state = widget.on_state()
            selected = isinstance(state, str) and state.strip().lower() == wanted
            widget.field_value = bool(selected)
            widget.update()


def load_template(template_bytes: bytes, label: str = "template") -> "fitz.Document":
    """Open template bytes as an editable PDF or raise `TemplateLoadFailed`."""
    if not template_bytes:
        raise TemplateLoadFailed(f"PDF template '{label}' is empty")
    try:
        doc = fitz.open(stream=bytes(template_bytes), filetype="pdf")
    except Exception as exc:
        logger.error("Failed to open PDF template %s: %s", label, exc, exc_info=True)
        raise TemplateLoadFailed(f"PDF template '{label}' could not be opened: {exc}") from exc

    if not doc.is_pdf or doc.page_count == 0 or doc.needs_pass:
        doc.close()
        raise TemplateLoadFailed(f"PDF template '{label}' has no usable pages")
    return doc


def flatten_form(doc: "fitz.Document") -> None:
    """Bake every widget into page content and drop the interactive form."""
    doc.bake(annots=False, widgets=True)
    catalog = doc.pdf_catalog()
    if doc.xref_get_key(catalog, "AcroForm")[0] != "null":
        doc.xref_set_key(catalog, "AcroForm", "null")


def summary_entries(form_data: Mapping[str, object]) -> List[Tuple[str, str]]:
    entries = []
    for key, value in form_data.items():
        if value is None:
            continue
        text = " ".join(str(value).split())
        if text:
            entries.append((str(key), text))
    return entries[:SUMMARY_MAX_ENTRIES]


def append_summary_page(
    doc: "fitz.Document",
    form_data: Mapping[str, object],
    page_size: Tuple[float, float] = SUMMARY_PAGE_SIZE,
) -> int:
    """
    Append the review page listing the submitted values.

    Lines that would run into the bottom margin are dropped rather than
    continued on another page. Returns the number of value lines written.
    """
    width, height = page_size
    page = doc.new_page(width=width, height=height)
    page.insert_text((SUMMARY_MARGIN_X, SUMMARY_TITLE_Y), SUMMARY_TITLE, fontsize=12)

    written = 0
    for index, (key, value) in enumerate(summary_entries(form_data)):
        y = SUMMARY_FIRST_LINE_Y + index * SUMMARY_LINE_PITCH
        if y > height - SUMMARY_BOTTOM_MARGIN:
            break
        page.insert_text((SUMMARY_MARGIN_X, y), f"{key}: {value}", fontsize=10)
        written += 1
    return written


def serialize(doc: "fitz.Document") -> bytes:
    try:
        result = doc.tobytes(garbage=3, deflate=True, no_new_id=True)
    except Exception as exc:
        logger.error("Failed to serialize filled PDF: %s", exc, exc_info=True)
        raise SerializationFailed(f"Failed to write filled PDF: {exc}") from exc
    if not result:
        raise SerializationFailed("Failed to write filled PDF: no output generated")
    return result


def fill_template(
    template_bytes: bytes,
    descriptor: TemplateDescriptor,
    form_data: Mapping[str, object],
    today: Optional[dt.date] = None,
    summary_page_size: Tuple[float, float] = SUMMARY_PAGE_SIZE,
) -> bytes:
    """
    Fill a template with form data and return the flattened PDF bytes.

    Args:
        template_bytes: Raw bytes of the fillable PDF template.
        descriptor: Template descriptor holding the field-mapping rules.
        form_data: FormData bag (field id -> value) for the form type.
        today: Date used for signature-date fields; defaults to today.
        summary_page_size: Width/height of the appended review page.

    Raises:
        TemplateLoadFailed: the template bytes are not a usable PDF.
        SerializationFailed: the final document could not be written.
        FormPrefillError: flattening or the review page failed.
    """
    doc = load_template(template_bytes, descriptor.template_location)
    try:
        form = PdfFormHandle(doc)
        if not form.field_names:
            logger.warning("PDF %s has no fillable form fields", descriptor.template_location)

        report = descriptor.fill(form, form_data, today=today)

        try:
            flatten_form(doc)
            append_summary_page(doc, form_data, summary_page_size)
        except (RuntimeError, ValueError) as exc:
            logger.error("Failed to finalize %s: %s", descriptor.template_location, exc, exc_info=True)
            raise FormPrefillError(f"Failed to finalize filled PDF: {exc}") from exc

        result = serialize(doc)
    finally:
        doc.close()

    logger.info(
        "Filled template %s (%d fields, %d skipped)",
        descriptor.template_location,
        len(report.filled),
        len(report.skipped),
    )
    return result
