from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, JSON, func
from sqlalchemy.orm import Mapped, mapped_column
from ..session import Base


class InteractionType(str, PyEnum):
    view = "view"
    favorite = "favorite"
    unfavorite = "unfavorite"
    booking = "booking"
    search = "search"
    share = "share"


class Interaction(Base):
    __tablename__ = "interactions"
    __table_args__ = (
        Index("ix_interaction_user_type", "user_id", "interaction_type", "created_at"),
        Index("ix_interaction_venue_type", "venue_id", "interaction_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    venue_id: Mapped[int | None] = mapped_column(ForeignKey("venues.id", ondelete="CASCADE"))
    interaction_type: Mapped[InteractionType] = mapped_column(Enum(InteractionType))
    payload: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
