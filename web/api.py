"""FastAPI admin and widget API over the form mirror"""

from typing import Optional, Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from chat import ChatResponder
from core.enums import Persistence
from core.exceptions import ExportError, ValidationError
from core.models import FormDefinition, FormSubmission, PersistResult, PredefinedResponse
from db import create_remote_store
from export import export_filename, summary_report, report_filename
from services import FormDataService
from storage import JsonFileStorage
from config import settings

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# Pydantic models for request validation
class SubmissionRequest(BaseModel):
    form_id: Optional[str] = Field(default=None, alias="formId")
    form_title: Optional[str] = Field(default=None, alias="formTitle")
    data: dict[str, Any] = {}
    user_agent: Optional[str] = Field(default=None, alias="userAgent")

    class Config:
        populate_by_name = True


class ModifyRequest(BaseModel):
    updates: dict[str, Any]


class ChatRequest(BaseModel):
    message: str


def persist_message(result: PersistResult) -> str:
    if result.persisted == Persistence.REMOTE:
        return "Saved"
    return "Saved locally, not yet synced"


def xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_app(service: Optional[FormDataService] = None) -> FastAPI:
    """Build the API around a service (defaults to settings-driven storage and Supabase)"""
    if service is None:
        service = FormDataService(JsonFileStorage(settings.LOCAL_STORE_PATH), create_remote_store())

    app = FastAPI(
        title="Form Mirror API",
        description="Chat widget form submissions with a local spreadsheet mirror",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service
    responder = ChatResponder()

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "remote_configured": service.remote is not None}

    # Submissions
    @app.post("/api/submissions")
    async def create_submission(body: SubmissionRequest, request: Request):
        """Save a form submission to the active sheet"""
        try:
            form = service.validate_submission(body.data)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})

        submission = FormSubmission(
            form_id=body.form_id or (form.id if form else "unknown"),
            form_title=body.form_title or (form.title if form else ""),
            data=body.data,
            user_agent=body.user_agent or request.headers.get("user-agent"),
        )
        result = await service.save_submission(submission)
        return {**result.model_dump(mode="json"), "message": persist_message(result)}

    @app.get("/api/submissions")
    async def list_submissions():
        result = await service.load_submissions()
        return result.model_dump(mode="json", by_alias=True)

    @app.patch("/api/submissions/{submission_id}")
    async def modify_submission(submission_id: str, body: ModifyRequest):
        result = await service.modify_submission(submission_id, body.updates)
        if not result.found:
            raise HTTPException(status_code=404, detail=f"Submission {submission_id} not found")
        return {**result.model_dump(mode="json"), "message": persist_message(result)}

    @app.delete("/api/submissions/{submission_id}")
    async def delete_submission(submission_id: str):
        result = await service.delete_submission(submission_id)
        if not result.found:
            raise HTTPException(status_code=404, detail=f"Submission {submission_id} not found")
        return {**result.model_dump(mode="json"), "message": persist_message(result)}

    # Sheets
    @app.get("/api/sheets")
    async def list_sheets():
        return [m.model_dump() for m in service.mirror.list_sheet_metadata()]

    @app.get("/api/sheets/content")
    async def sheet_content():
        content = service.mirror.sheet_content()
        content["metadata"] = [m.model_dump() for m in content["metadata"]]
        return content

    @app.get("/api/sheets/{sheet_id}")
    async def get_sheet(sheet_id: str):
        name = service.mirror.find_sheet_by_id(sheet_id)
        if name is None:
            raise HTTPException(status_code=404, detail=f"Sheet {sheet_id} not found")
        rows = service.mirror.get_rows(name) or []
        return {"name": name, "rows": [row.to_flat() for row in rows]}

    # Form configuration
    @app.get("/api/forms/active")
    async def active_form():
        result = await service.load_active_form()
        return result.model_dump(mode="json", by_alias=True)

    @app.post("/api/forms")
    async def save_form(form: FormDefinition):
        result = await service.save_form_configuration(form)
        return {**result.model_dump(mode="json"), "message": persist_message(result)}

    # Custom Q&A
    @app.get("/api/qa")
    async def list_custom_qa():
        result = await service.load_custom_qa()
        return result.model_dump(mode="json", by_alias=True)

    @app.put("/api/qa")
    async def save_custom_qa(qa_list: list[PredefinedResponse]):
        result = await service.save_custom_qa(qa_list)
        return {**result.model_dump(mode="json"), "message": persist_message(result)}

    # Statistics and exports
    @app.get("/api/stats")
    async def stats():
        return {
            "sheets": service.sheet_statistics().model_dump(),
            "submissions": await service.submission_stats(),
        }

    @app.get("/api/export")
    async def export_mirror():
        return xlsx_response(service.export_workbook(), export_filename())

    @app.get("/api/export/report")
    async def export_report():
        loaded = await service.load_submissions()
        form = service.config_store.get_active_form()
        try:
            content = summary_report(loaded.items, form)
        except ExportError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return xlsx_response(content, report_filename())

    # Chat
    @app.post("/api/chat")
    async def chat(body: ChatRequest):
        loaded = await service.load_custom_qa()
        responder.set_custom_qa(loaded.items)
        reply = responder.respond(body.message)
        return {
            "response": reply.text,
            "category": reply.matched.category if reply.matched else None,
            "form": reply.form.model_dump(mode="json", by_alias=True) if reply.form else None,
        }

    return app


app = create_app()
