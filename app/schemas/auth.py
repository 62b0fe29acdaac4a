import uuid

from pydantic import BaseModel, EmailStr, Field

class RequestLinkIn(BaseModel):
    email: EmailStr
    # display name used in notification messages; only applied when set
    name: str | None = Field(default=None, max_length=200)

class RequestLinkOut(BaseModel):
    sent: bool = True
    token: str | None = None
    link: str | None = None

class RedeemIn(BaseModel):
    token: str

class AccessTokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"

class MeOut(BaseModel):
    id: uuid.UUID
    email: str
    name: str
