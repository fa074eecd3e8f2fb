"""
High-level service that exposes form pre-fill and PDF export to the API layer.

Responsibilities
----------------
* decide whether a form type can be exported (template registry allow-list)
* locate the saved form data to export (explicit id or most recent of a type)
* read the template through the configured source and run the fill engine
* pre-populate a form from the user's profile
"""

from __future__ import annotations

import datetime as dt
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .catalog import lookup
from .errors import FormDataNotFound, TemplateLoadFailed, TemplateUnsupported, UnknownFormType
from .field_resolver import autofill_form_data
from .pdf_utils import fill_template
from .storage import (
    CachedTemplateSource,
    FileTemplateSource,
    FormStore,
    ProfileStore,
    S3TemplateSource,
    SavedForm,
)
from .template_scanner import scan_template
from .templates import TemplateDescriptor, get_template, list_supported_form_types

logger = logging.getLogger(__name__)

_OLDEST = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def _updated_at(form: SavedForm) -> dt.datetime:
    """Sort key for saved forms; missing or malformed timestamps sort oldest."""
    value = (form.updated_at or "").strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(value)
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def latest_form(forms: List[SavedForm], form_type: str) -> Optional[SavedForm]:
    """Most recently updated form of `form_type`; ties keep listing order."""
    matching = [form for form in forms if form.form_type == form_type]
    if not matching:
        return None
    return sorted(matching, key=_updated_at, reverse=True)[0]


class FormExportService:
    def __init__(
        self,
        form_store: FormStore,
        template_source,
        profile_store: Optional[ProfileStore] = None,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self.form_store = form_store
        self.template_source = template_source
        self.profile_store = profile_store
        self.today = today

    @classmethod
    def from_env(cls, base_dir: Optional[Path] = None, s3_client=None) -> "FormExportService":
        base = Path(base_dir or os.getenv("FORM_PREFILL_BASE_DIR") or Path(__file__).resolve().parent)
        templates_dir = Path(os.getenv("FORM_PREFILL_TEMPLATES_DIR") or base / "pdf_templates")
        data_dir = Path(os.getenv("FORM_PREFILL_DATA_DIR") or base / "user_data")

        bucket = os.getenv("FORM_PREFILL_S3_BUCKET")
        if bucket:
            source = S3TemplateSource(bucket, os.getenv("FORM_PREFILL_S3_PREFIX", "templates/"), s3_client)
        else:
            source = FileTemplateSource(templates_dir)

        ttl = int(os.getenv("FORM_PREFILL_TEMPLATE_CACHE_TTL", "300"))
        if ttl > 0:
            source = CachedTemplateSource(source, ttl=ttl)

        return cls(FormStore(data_dir), source, profile_store=ProfileStore(data_dir))

    # ------------------------------------------------------------------
    # Template availability
    # ------------------------------------------------------------------
    def is_supported(self, form_type: str) -> bool:
        return get_template(form_type) is not None

    def list_supported_form_types(self) -> List[str]:
        return list_supported_form_types()

    def _require_template(self, form_type: str) -> TemplateDescriptor:
        descriptor = get_template(form_type)
        if descriptor is None:
            raise TemplateUnsupported(f"No PDF template available for {form_type}")
        return descriptor

    def _read_template(self, descriptor: TemplateDescriptor) -> bytes:
        try:
            return self.template_source.read_template(descriptor.template_location)
        except Exception as exc:
            logger.error("Failed to read template %s: %s", descriptor.template_location, exc, exc_info=True)
            raise TemplateLoadFailed(
                f"PDF template file for '{descriptor.form_type}' could not be read"
            ) from exc

    def scan_template(self, form_type: str) -> Dict:
        descriptor = self._require_template(form_type)
        return scan_template(descriptor, self._read_template(descriptor))

    # ------------------------------------------------------------------
    # Form data
    # ------------------------------------------------------------------
    def resolve_form_data(self, user_id: str, form_type: str, form_id: Optional[str] = None) -> Dict[str, str]:
        if form_id:
            form = self.form_store.get_form(user_id, form_id)
            if form is not None and form.form_type != form_type:
                logger.info("Form %s is a %s, not a %s", form_id, form.form_type, form_type)
                form = None
        else:
            form = latest_form(self.form_store.list_forms(user_id), form_type)

        if form is None:
            raise FormDataNotFound("Form data not found for this user/form type")
        return form.form_data

    def autofill_form(self, user_id: str, form_type: str, user_email: str = "") -> Dict[str, str]:
        definition = lookup(form_type)
        if definition is None:
            raise UnknownFormType(f"Unknown form type '{form_type}'")
        profile = self.profile_store.get_profile(user_id) if self.profile_store else None
        return autofill_form_data(definition, profile, user_email)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_form(self, user_id: str, form_type: str, form_id: Optional[str] = None) -> bytes:
        descriptor = self._require_template(form_type)
        form_data = self.resolve_form_data(user_id, form_type, form_id)
        template_bytes = self._read_template(descriptor)

        pdf_bytes = fill_template(template_bytes, descriptor, form_data, today=self.today())
        logger.info("Exported %s for user %s (%d bytes)", form_type, user_id, len(pdf_bytes))
        return pdf_bytes
