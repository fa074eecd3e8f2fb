"""
Storage helpers for profiles, saved forms and PDF templates.

Profiles and forms are persisted as JSON under `user_data/<user_id>/` inside a
configurable base path, one file per saved form. Templates are read from a
directory or an S3 bucket, optionally through a short-lived byte cache.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import re
import threading
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from cachetools import TTLCache

logger = logging.getLogger(__name__)

FORM_STATUSES = ("draft", "completed", "exported")

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.@-]+$")


def _utc_now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z")


def _check_id(kind: str, value: str) -> str:
    if not value or not _SAFE_ID.match(value) or value in (".", ".."):
        raise ValueError(f"Invalid {kind} '{value}'")
    return value


@dataclass
class SavedForm:
    """A user's saved form progress."""

    id: str
    user_id: str
    form_type: str
    form_data: Dict[str, str] = field(default_factory=dict)
    status: str = "draft"
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _utc_now()
        if not self.updated_at:
            self.updated_at = self.created_at

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedForm":
        return cls(
            id=data["id"],
            user_id=data.get("user_id", ""),
            form_type=data.get("form_type", ""),
            form_data=dict(data.get("form_data") or {}),
            status=data.get("status", "draft"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


class UserDataStore:
    """Handles per-user directories under `user_data/`."""

    def __init__(self, base_dir: Path):
        self.user_data_dir = Path(base_dir)

    def get_user_dir(self, user_id: str, create: bool = False) -> Path:
        user_dir = self.user_data_dir / _check_id("user id", user_id)
        if create:
            user_dir.mkdir(parents=True, exist_ok=True)
        return user_dir

    def _read_json(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable record %s: %s", path, exc)
            return None

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        tmp = path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp.replace(path)


class ProfileStore(UserDataStore):
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._read_json(self.get_user_dir(user_id) / "profile.json")

    def save_profile(self, user_id: str, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Merge `profile` over the stored one and persist it."""
        existing = self.get_profile(user_id) or {"id": user_id, "createdAt": _utc_now()}
        updated = {**existing, **profile, "id": user_id, "updatedAt": _utc_now()}
        self._write_json(self.get_user_dir(user_id, create=True) / "profile.json", updated)
        return updated


class FormStore(UserDataStore):
    def get_forms_dir(self, user_id: str, create: bool = False) -> Path:
        forms_dir = self.get_user_dir(user_id, create=create) / "forms"
        if create:
            forms_dir.mkdir(parents=True, exist_ok=True)
        return forms_dir

    def save_form(
        self,
        user_id: str,
        form_type: str,
        form_data: Dict[str, str],
        status: str = "draft",
        form_id: Optional[str] = None,
    ) -> SavedForm:
        if status not in FORM_STATUSES:
            raise ValueError(f"Unknown form status '{status}'")
        existing = self.get_form(user_id, form_id) if form_id else None
        form = SavedForm(
            id=_check_id("form id", form_id or f"{form_type}-{uuid.uuid4().hex[:8]}"),
            user_id=user_id,
            form_type=form_type,
            form_data=dict(form_data),
            status=status,
            created_at=existing.created_at if existing else "",
            updated_at=_utc_now(),
        )
        target = self.get_forms_dir(user_id, create=True) / f"{form.id}.json"
        self._write_json(target, asdict(form))
        return form

    def get_form(self, user_id: str, form_id: str) -> Optional[SavedForm]:
        try:
            path = self.get_forms_dir(user_id) / f"{_check_id('form id', form_id)}.json"
        except ValueError:
            return None
        data = self._read_json(path)
        if data is None:
            return None
        try:
            return SavedForm.from_dict(data)
        except KeyError as exc:
            logger.warning("Skipping malformed form %s for %s: %s", form_id, user_id, exc)
            return None

    def list_forms(self, user_id: str) -> List[SavedForm]:
        forms_dir = self.get_forms_dir(user_id)
        if not forms_dir.exists():
            return []
        forms = []
        for form_file in sorted(forms_dir.glob("*.json")):
            form = self.get_form(user_id, form_file.stem)
            if form is not None:
                forms.append(form)
        return forms


class FileTemplateSource:
    """Reads template PDFs from a local directory."""

    def __init__(self, templates_dir: Path):
        self.templates_dir = Path(templates_dir)

    def read_template(self, location: str) -> bytes:
        path = (self.templates_dir / location).resolve()
        if self.templates_dir.resolve() not in path.parents:
            raise FileNotFoundError(f"Template '{location}' is outside {self.templates_dir}")
        with path.open("rb") as f:
            return f.read()


class S3TemplateSource:
    """Reads template PDFs from an S3 bucket."""

    def __init__(self, bucket: str, prefix: str = "", s3_client=None):
        self.bucket = bucket
        self.prefix = prefix
        self.s3 = s3_client if s3_client is not None else boto3.client("s3")

    def read_template(self, location: str) -> bytes:
        key = f"{self.prefix}{location}"
        obj = self.s3.get_object(Bucket=self.bucket, Key=key)
        return obj["Body"].read()


class CachedTemplateSource:
    """
    Keeps raw template bytes for a while to spare repeated reads.

    Only the immutable template bytes are cached; every fill still opens its
    own document from them.
    """

    def __init__(self, source, ttl: int = 300, maxsize: int = 32):
        self.source = source
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    def read_template(self, location: str) -> bytes:
        with self._lock:
            cached = self._cache.get(location)
        if cached is not None:
            return cached
        data = self.source.read_template(location)
        with self._lock:
            self._cache[location] = data
        return data
