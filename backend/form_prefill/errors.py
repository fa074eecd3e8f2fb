"""
Error taxonomy for the form pre-fill service.

Every condition that aborts an export derives from `FormPrefillError` and
carries the HTTP status the transport layer should answer with. Individual
field writes that hit a missing template field raise `FieldWriteError`, which
the fill engine absorbs and logs.
"""

from __future__ import annotations


class FormPrefillError(RuntimeError):
    """Domain-specific exception for service errors."""

    status_code = 500


class TemplateUnsupported(FormPrefillError):
    """The form type has no PDF template registered."""

    status_code = 400


class UnknownFormType(FormPrefillError):
    """The form type is not in the catalog."""

    status_code = 404


class TemplateLoadFailed(FormPrefillError):
    """Template bytes are missing, unreadable or not a usable PDF."""

    status_code = 500


class FormDataNotFound(FormPrefillError):
    """No saved form data exists for the requested user/form."""

    status_code = 404


class SerializationFailed(FormPrefillError):
    """The filled document could not be written out."""

    status_code = 500


class FieldWriteError(LookupError):
    """A single field write could not be applied to the loaded template."""

    def __init__(self, field_name: str, reason: str = "field not found in template"):
        super().__init__(f"{field_name}: {reason}")
        self.field_name = field_name
        self.reason = reason
