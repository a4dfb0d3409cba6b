from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..core import security
from ..core.errors import AuthenticationError, ConflictError, NotFoundError
from ..db import models


def register_user(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    phone: str | None = None,
    role: models.UserRole = models.UserRole.user,
) -> models.User:
    email = email.strip().lower()
    username = username.strip()
    taken = db.execute(
        select(models.User.id).where(
            or_(models.User.email == email, models.User.username == username)
        )
    ).first()
    if taken:
        raise ConflictError("User with this email or username already exists")
    user = models.User(
        username=username,
        email=email,
        password_hash=security.get_password_hash(password),
        phone=phone,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: models.User, changes: dict[str, Any]) -> models.User:
    for key, value in changes.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


def add_device_token(
    db: Session, user: models.User, token: str, platform: models.DevicePlatform
) -> models.DeviceToken:
    for device in user.device_tokens:
        if device.token == token:
            return device
    device = models.DeviceToken(user_id=user.id, token=token, platform=platform)
    db.add(device)
    db.commit()
    db.refresh(device)
    return device


def remove_device_token(db: Session, user: models.User, token: str) -> None:
    device = (
        db.query(models.DeviceToken).filter_by(user_id=user.id, token=token).first()
    )
    if device is None:
        raise NotFoundError("Device token not found")
    db.delete(device)
    db.commit()


def change_password(
    db: Session, user: models.User, current_password: str, new_password: str
) -> models.User:
    if not security.verify_password(current_password, user.password_hash):
        raise AuthenticationError("Password is incorrect")
    user.password_hash = security.get_password_hash(new_password)
    db.commit()
    db.refresh(user)
    return user
