import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Numeric,
    DateTime,
    Text,
    ForeignKey,
    CheckConstraint,
    Index,
    Uuid,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from api.database import Base


def compute_total_cost(quantity, price_per_unit) -> Decimal:
    return Decimal(str(quantity)) * Decimal(str(price_per_unit))


class Purchase(Base):
    __tablename__ = "purchases"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id"), nullable=False
    )
    item_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    category_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    phase_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    project_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(16, 2))
    purchase_date: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    invoice_url: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_purchase_quantity_positive"),
        CheckConstraint("price_per_unit >= 0", name="chk_purchase_price"),
        CheckConstraint(
            "total_cost IS NULL OR total_cost >= 0", name="chk_purchase_total"
        ),
        Index("idx_purchases_company", "company_id"),
        Index("idx_purchases_phase", "phase_id"),
        Index("idx_purchases_project", "project_id"),
        Index("idx_purchases_vendor", "vendor_id"),
        Index("idx_purchases_date", "company_id", "purchase_date"),
    )


@event.listens_for(Purchase, "before_insert")
@event.listens_for(Purchase, "before_update")
def _fill_total_cost(mapper, connection, target: Purchase):
    """An absent (or zero) total is always quantity x price per unit."""
    if not target.total_cost:
        target.total_cost = compute_total_cost(target.quantity, target.price_per_unit)
