"""
Resolve auto-fill keys against a stored user profile.

Auto-fill keys are small path expressions: a scalar attribute (`firstName`),
a one-level group path (`veteranStatus.branch`), or one of the special root
keys in `SPECIAL_KEYS`. Absent data always resolves to an empty string so
nothing downstream ever sees `None`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .catalog import FormDefinition

logger = logging.getLogger(__name__)

ADDRESS_PARTS = ("street", "city", "state", "zipCode")


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    return str(value).strip()


def _group(profile: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = profile.get(name)
    return value if isinstance(value, Mapping) else {}


def _session_email(profile: Mapping[str, Any], fallback_email: str) -> str:
    # The authenticated session owns the email identity, not the profile.
    return fallback_email or ""


def _joined_address(profile: Mapping[str, Any], fallback_email: str) -> str:
    address = _group(profile, "address")
    parts = [_as_text(address.get(part)) for part in ADDRESS_PARTS]
    return ", ".join(part for part in parts if part)


SPECIAL_KEYS: Dict[str, Callable[[Mapping[str, Any], str], str]] = {
    "email": _session_email,
    "address": _joined_address,
}


def resolve(profile: Optional[Mapping[str, Any]], key: str, fallback_email: str = "") -> str:
    """Return the flat string value `key` points to in `profile`."""
    if not isinstance(profile, Mapping):
        profile = {}
    key = (key or "").strip()

    special = SPECIAL_KEYS.get(key)
    if special is not None:
        return special(profile, fallback_email)

    group, sep, subfield = key.partition(".")
    if sep:
        if not group or not subfield or "." in subfield:
            logger.debug("Unsupported auto-fill path %r", key)
            return ""
        return _as_text(_group(profile, group).get(subfield))

    return _as_text(profile.get(key))


def autofill_form_data(
    definition: FormDefinition,
    profile: Optional[Mapping[str, Any]],
    user_email: str = "",
) -> Dict[str, str]:
    """
    Build a FormData bag for `definition` from a profile.

    Every field of the form gets an entry; fields without an auto-fill key
    start out blank.
    """
    data: Dict[str, str] = {}
    for field in definition.fields:
        if field.auto_fill_key:
            data[field.id] = resolve(profile, field.auto_fill_key, user_email)
        else:
            data[field.id] = ""
    return data

