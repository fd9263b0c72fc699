from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.crm.models import Base


class DroneSale(Base):
    __tablename__ = "drone_sales"
    __table_args__ = (
        Index("idx_drone_sales_status", "status"),
        Index("idx_drone_sales_sales_rep_id", "sales_rep_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_person: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default="new")  # see constants.DRONE_SALE_STATUSES
    drone_model: Mapped[str | None] = mapped_column(Text, nullable=True)
    drone_type: Mapped[str | None] = mapped_column(Text, nullable=True)

    offer_sent_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    offer_approved_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    contract_signed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    invoice_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    training_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    sales_rep_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    sales_rep = relationship("User", foreign_keys=[sales_rep_id], lazy="selectin")
