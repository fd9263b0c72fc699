from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.crm.models import Base


class Client(Base):
    """
    One inspection project for a photovoltaic plant (FVE) and its owner.
    The record follows the project from first offer to customer feedback.
    """

    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_company_name", "company_name"),
        Index("idx_clients_status", "status"),
        Index("idx_clients_sales_rep_id", "sales_rep_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Basic info
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    ico: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    parent_company: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_company_ico: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_box: Mapped[str | None] = mapped_column(Text, nullable=True)
    fve_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    installed_power: Mapped[float | None] = mapped_column(Float, nullable=True)
    fve_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    gps_coordinates: Mapped[str | None] = mapped_column(Text, nullable=True)
    distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    service_company: Mapped[str | None] = mapped_column(Text, nullable=True)
    service_company_ico: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Contacts
    contact_person: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_role: Mapped[str | None] = mapped_column(Text, nullable=True)
    sales_rep_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sales_rep_email: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Offer & contract
    marketing_ban: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    offer_sent: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    offer_sent_to: Mapped[str | None] = mapped_column(Text, nullable=True)
    offer_sent_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    offer_approved: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    offer_approved_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    offer_rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_ex_vat: Mapped[float | None] = mapped_column(Float, nullable=True)
    data_analysis_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    data_collection_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    transportation_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    margin_group: Mapped[str | None] = mapped_column(Text, nullable=True)
    multiple_inspections: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    inspection_deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    custom_contract: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    contract_signed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    ready_for_billing: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # Invoicing
    first_invoice_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    first_invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    first_invoice_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    first_invoice_paid: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    second_invoice_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    second_invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    second_invoice_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    second_invoice_paid: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    final_invoice_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    final_invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    final_invoice_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    final_invoice_paid: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    total_price_ex_vat: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_price_inc_vat: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Client documents & flight permission
    flight_consent_sent: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    flight_consent_sent_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    flight_consent_signed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    flight_consent_signed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    fve_drawings_received: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    fve_drawings_received_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    permission_required: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    permission_requested: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    permission_requested_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    permission_request_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    permission_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    permission_valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Data collection (pilot)
    assigned_to_pilot: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    pilot_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    pilot_assigned_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expected_flight_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    photos_taken: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    photos_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    photos_time: Mapped[str | None] = mapped_column(Text, nullable=True)
    panel_temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    irradiance: Mapped[float | None] = mapped_column(Float, nullable=True)
    weather: Mapped[str | None] = mapped_column(Text, nullable=True)
    wind_speed: Mapped[float | None] = mapped_column(Float, nullable=True)
    data_uploaded: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # Analysis & report
    analysis_started: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    analysis_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    analysis_completed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    analysis_completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    report_created: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    report_sent: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    report_sent_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Customer experience
    feedback_received: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    feedback_content: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(Text, nullable=False, default="Nový")
    client_type: Mapped[str] = mapped_column(Text, nullable=False, default="fve")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    sales_rep = relationship("User", foreign_keys=[sales_rep_id], lazy="selectin")
