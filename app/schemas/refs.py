import uuid

from pydantic import BaseModel

from app.models.lead import Lead
from app.models.user import User

class UserRefOut(BaseModel):
    id: uuid.UUID
    name: str
    email: str

class LeadRefOut(BaseModel):
    id: uuid.UUID
    job_code: str
    project_name: str

class Attachment(BaseModel):
    original_name: str
    mime_type: str
    size: int
    url: str

def user_ref(u: User | None) -> UserRefOut | None:
    if u is None:
        return None
    return UserRefOut(id=u.id, name=u.display_name, email=u.email)

def lead_ref(lead: Lead | None) -> LeadRefOut | None:
    if lead is None:
        return None
    return LeadRefOut(id=lead.id, job_code=lead.job_code, project_name=lead.project_name)

def attachment_out(raw: dict | None) -> Attachment | None:
    if not raw:
        return None
    return Attachment(**raw)
