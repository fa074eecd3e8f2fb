import logging
import os
from dataclasses import asdict
from typing import Optional

from dotenv import load_dotenv

load_dotenv(".env.local"); load_dotenv()  # also loads .env if present

from fastapi import FastAPI, HTTPException, Response  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from pydantic import BaseModel  # noqa: E402

from form_prefill import FormExportService, FormPrefillError  # noqa: E402
from form_prefill.catalog import FORM_TYPES, lookup, missing_required_fields  # noqa: E402
from form_prefill.storage import FORM_STATUSES, ProfileStore  # noqa: E402
from form_prefill.templates import list_coming_soon_form_types  # noqa: E402

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)


class ProfileSaveRequest(BaseModel):
    user_id: str
    profile: dict


class FormSaveRequest(BaseModel):
    user_id: str
    form_type: str
    form_data: dict
    status: str = "draft"
    form_id: Optional[str] = None


class FormExportRequest(BaseModel):
    user_id: str
    form_type: str
    form_id: Optional[str] = None


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, FormPrefillError):
        return HTTPException(status_code=exc.status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def create_app(
    service: Optional[FormExportService] = None,
    profile_store: Optional[ProfileStore] = None,
) -> FastAPI:
    service = service or FormExportService.from_env()
    profile_store = profile_store or service.profile_store
    if service.profile_store is None:
        service.profile_store = profile_store

    app = FastAPI(title="Housing Form Pre-fill")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:8501",
            "http://127.0.0.1:8501",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Form catalog ---------------------------------------------------------

    @app.get("/forms/types")
    def list_form_types():
        return {"forms": [form.to_dict() for form in FORM_TYPES]}

    @app.get("/forms/types/{form_type}")
    def get_form_type(form_type: str):
        definition = lookup(form_type)
        if definition is None:
            raise HTTPException(status_code=404, detail=f"Form type '{form_type}' not found")
        return {"form": definition.to_dict(), "pdf_supported": service.is_supported(form_type)}

    # --- PDF templates --------------------------------------------------------

    @app.get("/pdf/templates")
    def pdf_list_templates():
        return {
            "supported": service.list_supported_form_types(),
            "coming_soon": list_coming_soon_form_types(),
        }

    @app.get("/pdf/templates/{form_type}/scan")
    def pdf_scan_template(form_type: str):
        try:
            scan = service.scan_template(form_type)
        except FormPrefillError as exc:
            raise _http_error(exc) from exc
        return {"form_type": form_type, "scan": scan}

    # --- Profiles -------------------------------------------------------------

    @app.post("/profile")
    def save_profile(req: ProfileSaveRequest):
        if profile_store is None:
            raise HTTPException(status_code=503, detail="Profile storage is not configured")
        try:
            profile = profile_store.save_profile(req.user_id, req.profile)
        except ValueError as exc:
            raise _http_error(exc) from exc
        return {"success": True, "profile": profile}

    @app.get("/profile")
    def get_profile(user_id: str):
        if profile_store is None:
            raise HTTPException(status_code=503, detail="Profile storage is not configured")
        try:
            profile = profile_store.get_profile(user_id)
        except ValueError as exc:
            raise _http_error(exc) from exc
        return {"profile": profile}

    @app.get("/forms/{form_type}/autofill")
    def autofill_form(form_type: str, user_id: str, email: str = ""):
        try:
            form_data = service.autofill_form(user_id, form_type, user_email=email)
        except (FormPrefillError, ValueError) as exc:
            raise _http_error(exc) from exc
        return {"form_type": form_type, "form_data": form_data}

    # --- Saved forms ----------------------------------------------------------

    @app.post("/forms")
    def save_form(req: FormSaveRequest):
        definition = lookup(req.form_type)
        if definition is None:
            raise HTTPException(status_code=400, detail=f"Unknown form type '{req.form_type}'")
        if req.status not in FORM_STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown form status '{req.status}'")

        form_data = {key: "" if value is None else str(value) for key, value in req.form_data.items()}
        try:
            form = service.form_store.save_form(
                req.user_id, req.form_type, form_data, status=req.status, form_id=req.form_id
            )
        except ValueError as exc:
            raise _http_error(exc) from exc

        return {
            "success": True,
            "form_id": form.id,
            "missing_required": missing_required_fields(definition, form_data),
            "message": f"Form {'completed' if req.status == 'completed' else 'saved as draft'}",
        }

    @app.get("/forms")
    def get_forms(user_id: str, form_id: Optional[str] = None):
        try:
            if form_id:
                form = service.form_store.get_form(user_id, form_id)
                return {"form": asdict(form) if form else None}
            forms = service.form_store.list_forms(user_id)
        except ValueError as exc:
            raise _http_error(exc) from exc
        return {"forms": [asdict(form) for form in forms]}

    # --- Export ---------------------------------------------------------------

    @app.post("/forms/export")
    def export_form(req: FormExportRequest):
        try:
            pdf_bytes = service.export_form(req.user_id, req.form_type, form_id=req.form_id)
        except (FormPrefillError, ValueError) as exc:
            logger.info("Export of %s for %s failed: %s", req.form_type, req.user_id, exc)
            raise _http_error(exc) from exc

        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{req.form_type}-application.pdf"'},
        )

    return app


app = create_app()
