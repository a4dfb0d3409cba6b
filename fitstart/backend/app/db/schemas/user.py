from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field
from ..models.user import DevicePlatform, UserRole


class UserRegister(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    email: str = Field(pattern=r"^\S+@\S+\.\S+$", max_length=255)
    password: str = Field(min_length=6, max_length=128)
    phone: str | None = Field(default=None, max_length=32)


class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=64)
    phone: str | None = Field(default=None, max_length=32)
    profile_image: str | None = Field(default=None, max_length=512)
    notifications_enabled: bool | None = None


class User(BaseModel):
    id: int
    username: str
    email: str
    role: UserRole
    phone: str | None = None
    profile_image: str | None = None
    notifications_enabled: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class PasswordUpdate(BaseModel):
    current_password: str = Field(
        min_length=1, validation_alias=AliasChoices("current_password", "currentPassword")
    )
    new_password: str = Field(
        min_length=6, max_length=128, validation_alias=AliasChoices("new_password", "newPassword")
    )


class DeviceTokenIn(BaseModel):
    token: str = Field(min_length=1, max_length=512)
    platform: DevicePlatform = DevicePlatform.android


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User
