"""SQLAlchemy models for usage history."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from steamhistory.common.models import Base


class UsageRecordModel(Base):
    """One concurrent-user sample. Rows are only ever inserted or dropped."""

    __tablename__ = "usage_records"
    __table_args__ = (
        Index("ix_usage_records_app_time", "app_id", "recorded_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    app_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("apps.id"), nullable=False
    )
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False)
