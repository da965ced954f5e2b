import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from api.config import settings
from api.database import Base


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default=lambda: settings.DEFAULT_CURRENCY)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index("idx_companies_slug", "slug"),
    )
