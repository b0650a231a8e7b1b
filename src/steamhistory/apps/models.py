"""SQLAlchemy models for the app catalog."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from steamhistory.common.models import Base, TimestampMixin


class AppModel(Base, TimestampMixin):
    __tablename__ = "apps"

    # Steam's own appid, never generated locally
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    usable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        return f"<App {self.id} {self.name!r} usable={self.usable}>"
