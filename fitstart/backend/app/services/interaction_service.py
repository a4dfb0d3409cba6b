import logging
from typing import Any, Callable

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.tasks import run_detached
from ..db import models

logger = logging.getLogger(__name__)


class InteractionLogger:
    """Records user/venue events for analytics. Write-only; failures are logged and dropped."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        background: BackgroundTasks | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.background = background

    def record(
        self,
        user_id: int,
        venue_id: int | None,
        interaction_type: models.InteractionType,
        payload: dict[str, Any] | None = None,
    ) -> None:
        run_detached(self.background, self._write, user_id, venue_id, interaction_type, payload)

    def _write(
        self,
        user_id: int,
        venue_id: int | None,
        interaction_type: models.InteractionType,
        payload: dict[str, Any] | None,
    ) -> None:
        try:
            with self.session_factory() as db:
                db.add(
                    models.Interaction(
                        user_id=user_id,
                        venue_id=venue_id,
                        interaction_type=interaction_type,
                        payload=payload or {},
                    )
                )
                db.commit()
        except SQLAlchemyError:
            logger.exception(
                "Failed to record interaction",
                extra={"user_id": user_id, "venue_id": venue_id, "type": interaction_type.value},
            )
