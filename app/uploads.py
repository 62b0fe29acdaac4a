from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from app.config import settings
from app.errors import ValidationError
from app.schemas.refs import Attachment

ALLOWED_MIME_TYPES = {
    # documents
    "application/pdf",
    # images
    "image/png",
    "image/jpeg",
    "image/webp",
    # audio
    "audio/webm",
    "audio/ogg",
    "audio/wav",
    "audio/mp3",
    "audio/mpeg",
    # video
    "video/webm",
    "video/mp4",
    "video/ogg",
}

class BlobUploader(Protocol):
    def upload(self, data: bytes, filename: str, mime_type: str) -> str: ...

def form_files(form: FormData, name: str, max_count: int) -> list[UploadFile]:
    files = [f for f in form.getlist(name) if isinstance(f, UploadFile) and f.filename]
    if len(files) > max_count:
        raise ValidationError(f"at most {max_count} file(s) allowed for {name}")
    return files

async def store_files(uploader: BlobUploader, files: list[UploadFile]) -> list[Attachment]:
    """Validate, then upload concurrently. Order of the result follows `files`."""
    if not files:
        return []

    payloads: list[tuple[UploadFile, bytes]] = []
    for f in files:
        mime = f.content_type or "application/octet-stream"
        if mime not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                f"unsupported file type: {mime}. only PDF, images, audio and video files are allowed"
            )
        data = await f.read()
        if len(data) > settings.upload_max_bytes:
            raise ValidationError(f"{f.filename} exceeds the {settings.upload_max_bytes} byte limit")
        payloads.append((f, data))

    async def _one(f: UploadFile, data: bytes) -> Attachment:
        url = await run_in_threadpool(uploader.upload, data, f.filename, f.content_type)
        return Attachment(original_name=f.filename, mime_type=f.content_type, size=len(data), url=url)

    return list(await asyncio.gather(*(_one(f, d) for f, d in payloads)))

def parse_id_list(values: list[Any]) -> list[str]:
    # form-data sends watchers as a JSON array string, one id, or repeated fields
    out: list[str] = []
    for v in values:
        if not isinstance(v, str):
            continue
        v = v.strip()
        if not v:
            continue
        if v.startswith("["):
            try:
                decoded = json.loads(v)
            except json.JSONDecodeError:
                raise ValidationError("watchers must be a JSON array of ids") from None
            if not isinstance(decoded, list):
                raise ValidationError("watchers must be a JSON array of ids")
            out.extend(str(x) for x in decoded)
        else:
            out.append(v)
    return out

def form_fields(form: FormData, scalar_names: tuple[str, ...]) -> dict[str, Any]:
    """Scalar text fields of a multipart form; empty strings are treated as absent."""
    data: dict[str, Any] = {}
    for name in scalar_names:
        v = form.get(name)
        if isinstance(v, str) and v.strip() != "":
            data[name] = v
    return data
