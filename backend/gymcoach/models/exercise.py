import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gymcoach.models.base import Base, TimestampMixin, generate_uuid


class Exercise(TimestampMixin, Base):
    """Catalog entry referenced by routine exercises."""

    __tablename__ = "exercises"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    muscle_groups: Mapped[str | None] = mapped_column(String(255), nullable=True)
    equipment: Mapped[str | None] = mapped_column(String(255), nullable=True)
