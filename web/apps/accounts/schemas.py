"""Pydantic request/response schemas for accounts."""

from pydantic import BaseModel, EmailStr, Field, field_validator


class AddressIn(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    zip_code: str | None = None


class RegisterDTO(BaseModel):
    """Registration payload. Only ``user`` and ``vendor`` can self-register."""

    first_name: str = Field(min_length=1, max_length=150)
    last_name: str = Field(min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    phone: str = Field(min_length=1, max_length=32)
    role: str = "user"

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in ("user", "vendor"):
            raise ValueError("Role must be 'user' or 'vendor'")
        return v


class LoginDTO(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdateDTO(BaseModel):
    first_name: str = Field(min_length=1, max_length=150)
    last_name: str = Field(min_length=1, max_length=150)
    phone: str = Field(min_length=1, max_length=32)
    address: AddressIn | None = None


class PasswordChangeDTO(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)


class ProfileReadDTO(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    phone: str
    address: dict
