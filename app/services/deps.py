from pathlib import Path

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.db import get_db
from app.repositories.notifications import NotificationRepository
from app.repositories.tasks import TaskRepository
from app.repositories.users import UserDirectory
from app.services.blob_store import LocalBlobStore
from app.services.mailer import Mailer
from app.services.task_lifecycle import TaskLifecycleService
from app.uploads import BlobUploader

def get_mailer() -> Mailer:
    return Mailer.from_settings(settings)

def get_blob_store() -> BlobUploader:
    return LocalBlobStore(Path(settings.upload_dir), settings.base_url)

def get_notification_repo(db: Session = Depends(get_db)) -> NotificationRepository:
    return NotificationRepository(db)

def get_task_service(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> TaskLifecycleService:
    return TaskLifecycleService(
        tasks=TaskRepository(db),
        notifications=NotificationRepository(db),
        users=UserDirectory(db),
        mailer=mailer,
    )
