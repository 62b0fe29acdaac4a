import asyncio
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.auth.deps import get_current_user
from app.config import settings
from app.errors import ValidationError
from app.models.enums import TaskPriority, TaskStatus
from app.models.task import Task
from app.models.task_update import TaskUpdate
from app.models.user import User
from app.repositories.tasks import TaskListQuery
from app.schemas.refs import attachment_out, lead_ref, user_ref
from app.schemas.tasks import (
    BulkDeleteIn,
    TaskCreateIn,
    TaskListOut,
    TaskOut,
    TaskStatusUpdateIn,
    TaskSummaryOut,
    TaskUpdateIn,
    TaskUpdateOut,
)
from app.services.deps import get_blob_store, get_task_service
from app.services.task_lifecycle import LifecycleResult, TaskLifecycleService
from app.uploads import BlobUploader, form_fields, form_files, parse_id_list, store_files

router = APIRouter(prefix="/tasks", tags=["tasks"])

FANOUT_HEADER = "X-Notification-Fanout"

_CREATE_FIELDS = ("title", "description", "due_date", "assigned_to", "lead", "status", "priority")
_STATUS_UPDATE_FIELDS = ("status", "remarks")

def _summary_fields(t: Task) -> dict[str, Any]:
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "due_date": t.due_date,
        "assigned_to": user_ref(t.assignee),
        "assigned_by": user_ref(t.assigner),
        "watchers": [user_ref(w) for w in t.watchers],
        "lead": lead_ref(t.lead),
        "assigned_date": t.assigned_date,
        "status": t.status,
        "priority": t.priority,
        "attachments": [attachment_out(a) for a in t.attachments or []],
        "voice_note": attachment_out(t.voice_note),
        "video_note": attachment_out(t.video_note),
        "created_at": t.created_at,
        "updated_at": t.updated_at,
    }

def _update_out(u: TaskUpdate) -> TaskUpdateOut:
    return TaskUpdateOut(
        id=u.id,
        status=u.status,
        remarks=u.remarks,
        attachments=[attachment_out(a) for a in u.attachments or []],
        voice_notes=[attachment_out(a) for a in u.voice_notes or []],
        video_notes=[attachment_out(a) for a in u.video_notes or []],
        updated_by=user_ref(u.author),
        created_at=u.created_at,
    )

def task_summary_out(t: Task) -> TaskSummaryOut:
    return TaskSummaryOut(**_summary_fields(t))

def task_out(t: Task) -> TaskOut:
    # timeline in storage (insertion) order; newest-first is up to the client
    return TaskOut(**_summary_fields(t), updates=[_update_out(u) for u in t.updates])

def _validate(model: type[BaseModel], raw: dict[str, Any]):
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors()) from e

async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("invalid json") from None
    if not isinstance(body, dict):
        raise ValidationError("expected a JSON object")
    return body

def _is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").startswith("multipart/form-data")

def _with_fanout(response: Response, call: Callable[..., LifecycleResult], *args, **kwargs) -> TaskOut:
    # called through run_in_threadpool; task_out may lazy-load after a fan-out rollback
    result = call(*args, **kwargs)
    response.headers[FANOUT_HEADER] = result.fan_out.status
    return task_out(result.task)

@router.get("", response_model=TaskListOut)
def list_tasks(
    search: str | None = None,
    status: list[TaskStatus] = Query(default=[]),
    priority: list[TaskPriority] = Query(default=[]),
    assigned_to: uuid.UUID | None = None,
    assigned_by: uuid.UUID | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort: str | None = None,
    user: User = Depends(get_current_user),
    service: TaskLifecycleService = Depends(get_task_service),
) -> TaskListOut:
    rows, total = service.list_tasks(
        TaskListQuery(
            search=search,
            statuses=status,
            priorities=priority,
            assigned_to=assigned_to,
            assigned_by=assigned_by,
            page=page,
            limit=limit,
            sort=sort,
        )
    )
    return TaskListOut(results=len(rows), total_count=total, tasks=[task_summary_out(t) for t in rows])

@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    service: TaskLifecycleService = Depends(get_task_service),
    uploader: BlobUploader = Depends(get_blob_store),
) -> TaskOut:
    if not _is_multipart(request):
        payload = _validate(TaskCreateIn, await _json_body(request))
        return await run_in_threadpool(_with_fanout, response, service.create_task, user, payload)

    form = await request.form()
    raw = form_fields(form, _CREATE_FIELDS)
    raw["watchers"] = parse_id_list(form.getlist("watchers"))
    payload = _validate(TaskCreateIn, raw)

    attachments, voice_notes, video_notes = await asyncio.gather(
        store_files(uploader, form_files(form, "attachments", settings.upload_max_attachments)),
        store_files(uploader, form_files(form, "voice_note", 1)),
        store_files(uploader, form_files(form, "video_note", 1)),
    )
    return await run_in_threadpool(
        _with_fanout,
        response,
        service.create_task,
        user,
        payload,
        attachments=attachments,
        voice_note=voice_notes[0] if voice_notes else None,
        video_note=video_notes[0] if video_notes else None,
    )

@router.post("/bulk-delete")
def bulk_delete_tasks(
    payload: BulkDeleteIn,
    user: User = Depends(get_current_user),
    service: TaskLifecycleService = Depends(get_task_service),
) -> dict:
    n = service.delete_tasks(payload.ids)
    return {"deleted": n}

@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: TaskLifecycleService = Depends(get_task_service),
) -> TaskOut:
    return task_out(service.get_task(task_id))

@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdateIn,
    user: User = Depends(get_current_user),
    service: TaskLifecycleService = Depends(get_task_service),
) -> TaskOut:
    return task_out(service.update_task_fields(user, task_id, payload))

@router.post("/{task_id}/updates", response_model=TaskOut)
async def post_status_update(
    task_id: uuid.UUID,
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    service: TaskLifecycleService = Depends(get_task_service),
    uploader: BlobUploader = Depends(get_blob_store),
) -> TaskOut:
    if not _is_multipart(request):
        payload = _validate(TaskStatusUpdateIn, await _json_body(request))
        return await run_in_threadpool(_with_fanout, response, service.post_status_update, user, task_id, payload)

    form = await request.form()
    payload = _validate(TaskStatusUpdateIn, form_fields(form, _STATUS_UPDATE_FIELDS))
    # unknown task must 404 before anything reaches the blob store
    await run_in_threadpool(service.ensure_task_exists, task_id)

    attachments, voice_notes, video_notes = await asyncio.gather(
        store_files(uploader, form_files(form, "attachments", settings.upload_max_attachments)),
        store_files(uploader, form_files(form, "voice_note", 1)),
        store_files(uploader, form_files(form, "video_note", 1)),
    )
    return await run_in_threadpool(
        _with_fanout,
        response,
        service.post_status_update,
        user,
        task_id,
        payload,
        attachments=attachments,
        voice_notes=voice_notes,
        video_notes=video_notes,
    )

@router.delete("/{task_id}")
def delete_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: TaskLifecycleService = Depends(get_task_service),
) -> dict:
    service.delete_task(task_id)
    return {"deleted": True}
