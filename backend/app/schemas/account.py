from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.hospital import HospitalRecord


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None


class Session(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: CurrentUser


class Credentials(BaseModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=6, max_length=128)


class SignUpBody(Credentials):
    full_name: str = Field(min_length=2, max_length=100)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class PasswordResetBody(BaseModel):
    email: str = Field(max_length=320)


class PasswordUpdateBody(BaseModel):
    password: str = Field(min_length=6, max_length=128)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class ProfileResponse(BaseModel):
    user_id: str
    full_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]


class ProfileUpdate(BaseModel):
    full_name: str = Field(max_length=100)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("phone")
    @classmethod
    def blank_phone_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class FavoriteBody(BaseModel):
    label: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class FavoriteResponse(BaseModel):
    hospital_id: str
    label: Optional[str]
    notes: Optional[str]
    created_at: Optional[str]
    hospital: Optional[HospitalRecord] = None
