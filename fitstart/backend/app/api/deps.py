from typing import Annotated
from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session, sessionmaker
from ..config import get_settings
from ..core import security
from ..db.session import get_db
from ..db.models import User
from ..services.interaction_service import InteractionLogger
from ..services.notification_service import NotificationDispatcher
from ..services.payments import gateway
from ..services.payments.gateway import BasePaymentGateway


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def _user_from_token(token: str, db: Session) -> User | None:
    try:
        payload = security.decode_access_token(token)
    except JWTError:
        return None
    user_id = payload.get("sub")
    if user_id is None:
        return None
    return db.get(User, int(user_id))


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    user = _user_from_token(token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user


def get_optional_user(
    token: Annotated[str | None, Depends(optional_oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User | None:
    if not token:
        return None
    return _user_from_token(token, db)


def require_roles(*roles: str):
    def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return dependency


def get_session_factory(db: Annotated[Session, Depends(get_db)]) -> sessionmaker:
    # Side effects run after the response, so they get their own sessions on the same engine.
    return sessionmaker(bind=db.get_bind(), autoflush=False, expire_on_commit=False)


def get_notifier(
    background_tasks: BackgroundTasks,
    session_factory: Annotated[sessionmaker, Depends(get_session_factory)],
) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory, background=background_tasks)


def get_interaction_logger(
    background_tasks: BackgroundTasks,
    session_factory: Annotated[sessionmaker, Depends(get_session_factory)],
) -> InteractionLogger:
    return InteractionLogger(session_factory, background=background_tasks)


def get_payment_gateway() -> BasePaymentGateway:
    return gateway.get_gateway(get_settings())
