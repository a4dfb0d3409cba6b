from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from ...core import security
from ...core.auth import authenticate_user
from ...core.errors import ServiceError
from ...db.session import get_db
from ...db import models, schemas
from ...services import account_service
from .. import deps
from ..errors import to_http_exception


router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: models.User) -> schemas.TokenResponse:
    token = security.create_user_token(user.id, user.role.value)
    return schemas.TokenResponse(access_token=token, user=schemas.User.model_validate(user))


@router.post("/register", response_model=schemas.TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserRegister, db: Session = Depends(get_db)):
    try:
        user = account_service.register_user(
            db,
            username=payload.username,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return _token_response(user)


@router.post("/login", response_model=schemas.TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return _token_response(user)


@router.get("/me", response_model=schemas.User)
def me(current: models.User = Depends(deps.get_current_user)):
    return current


@router.patch("/me", response_model=schemas.User)
def update_me(
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    return account_service.update_profile(db, current, payload.model_dump(exclude_unset=True))


@router.post("/device-tokens", response_model=schemas.StatusResponse)
def register_device_token(
    payload: schemas.DeviceTokenIn,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    account_service.add_device_token(db, current, payload.token, payload.platform)
    return schemas.StatusResponse(message="Device token registered")


@router.delete("/device-tokens", response_model=schemas.StatusResponse)
def remove_device_token(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    try:
        account_service.remove_device_token(db, current, token)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return schemas.StatusResponse(message="Device token removed")


@router.put("/updatepassword", response_model=schemas.TokenResponse)
def update_password(
    payload: schemas.PasswordUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(deps.get_current_user),
):
    try:
        user = account_service.change_password(
            db, current, payload.current_password, payload.new_password
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return _token_response(user)
