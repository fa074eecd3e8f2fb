"""
PDF Template Scanner

Lists the fillable fields of a template and checks a descriptor's mapping
table against them, so field-name drift between template revisions shows up
before users hit silently blank exports.
"""

import io
import logging
from typing import Dict

from pypdf import PdfReader

from .errors import TemplateLoadFailed
from .templates import TemplateDescriptor

logger = logging.getLogger(__name__)


def _open(template_bytes: bytes, label: str) -> PdfReader:
    if not template_bytes:
        raise TemplateLoadFailed(f"PDF template '{label}' is empty")
    try:
        return PdfReader(io.BytesIO(template_bytes), strict=False)
    except Exception as exc:
        logger.error("Error reading template %s: %s", label, exc)
        raise TemplateLoadFailed(f"PDF template '{label}' could not be read: {exc}") from exc


def list_template_fields(template_bytes: bytes, label: str = "template") -> Dict[str, str]:
    """
    Return fully qualified field names mapped to their visible label.

    The label is the field's /TU (alternate name) when the template has one,
    otherwise the field name itself.
    """
    reader = _open(template_bytes, label)
    try:
        fields = reader.get_fields() or {}
    except Exception as exc:
        logger.debug("Error extracting fields for %s: %s", label, exc)
        fields = {}

    labels = {}
    for name, field in fields.items():
        # Parent nodes of hierarchical names carry no widget of their own.
        if field.get("/FT") is None and field.get("/Kids"):
            continue
        alt_name = field.get("/TU")
        labels[name] = str(alt_name) if alt_name else name
    return labels


def scan_template(descriptor: TemplateDescriptor, template_bytes: bytes) -> Dict:
    """
    Scan a template against the descriptor's mapping rules.

    Returns: {
        "form_type": "section-8",
        "template_file": "hud-52641-....pdf",
        "form_fields": ["Name", ...],
        "field_labels": {"Name": "Name", ...},
        "mapped_fields": [...],     # rule targets found in the template
        "missing_fields": [...],    # rule targets the template lacks
        "has_fields": bool
    }
    """
    field_labels = list_template_fields(template_bytes, descriptor.template_location)
    targets = descriptor.target_fields
    missing = [name for name in targets if name not in field_labels]
    mapped = [name for name in targets if name in field_labels]

    if missing:
        logger.info(
            "Template %s is missing %d of %d mapped fields",
            descriptor.template_location,
            len(missing),
            len(targets),
        )

    return {
        "form_type": descriptor.form_type,
        "template_file": descriptor.template_location,
        "form_fields": list(field_labels),
        "field_labels": field_labels,
        "mapped_fields": mapped,
        "missing_fields": missing,
        "has_fields": bool(field_labels),
    }
