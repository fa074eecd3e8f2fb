"""
Form pre-fill package for the housing-assistance backend.

This module bundles reusable utilities for:
  - the catalog of logical application forms and their fields
  - resolving profile data onto form fields (auto-fill)
  - mapping form data onto PDF templates, flattening and exporting them
"""

from .errors import (
    FormDataNotFound,
    FormPrefillError,
    SerializationFailed,
    TemplateLoadFailed,
    TemplateUnsupported,
    UnknownFormType,
)
from .service import FormExportService

__all__ = [
    "FormExportService",
    "FormPrefillError",
    "FormDataNotFound",
    "SerializationFailed",
    "TemplateLoadFailed",
    "TemplateUnsupported",
    "UnknownFormType",
]
