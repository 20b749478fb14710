from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dxcrm.core.clock import utcnow
from dxcrm.core.database import Base
from dxcrm.identity.models import Account
from dxcrm.warehouse.models import Product


ACCOUNT_FK = "accounts.ma_nguoi_dung"


class Competitor(Base):
    __tablename__ = "competitors"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_doi_thu", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("ten_doi_thu", String(255), nullable=False)
    product_code: Mapped[str | None] = mapped_column("san_pham_canh_tranh", ForeignKey("products.ma_hang"), nullable=True)
    pricing_strategy: Mapped[str | None] = mapped_column("chien_luoc_gia_ca", Text, nullable=True)
    competition_level: Mapped[str | None] = mapped_column("danh_gia_muc_do_canh_tranh", String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column("ghi_chu", Text, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    product: Mapped[Product | None] = relationship(Product)


class CustomerGroup(Base):
    __tablename__ = "customer_group"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_nhom_khach_hang", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("nhom_khach_hang", String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column("mo_ta", Text, nullable=True)
    updated_by: Mapped[str | None] = mapped_column("nguoi_cap_nhat", ForeignKey(ACCOUNT_FK), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    updater: Mapped[Account | None] = relationship(Account)
    potential_customers: Mapped[list["PotentialCustomer"]] = relationship(back_populates="customer_group")


class OpportunitySource(Base):
    __tablename__ = "opportunity_source"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_nguon", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("nguon", String(255), nullable=False, unique=True)
    status: Mapped[str | None] = mapped_column("trang_thai", String(50), nullable=True)
    updated_by: Mapped[str | None] = mapped_column("nguoi_cap_nhat", ForeignKey(ACCOUNT_FK), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    updater: Mapped[Account | None] = relationship(Account)
    potential_customers: Mapped[list["PotentialCustomer"]] = relationship(back_populates="opportunity_source")


class PotentialCustomer(Base):
    __tablename__ = "potential_customer"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_khach_hang_tiem_nang", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("ten_khach_hang", String(255), nullable=False, unique=True)
    manager_id: Mapped[str | None] = mapped_column("nguoi_phu_trach", ForeignKey(ACCOUNT_FK), nullable=True)
    next_action: Mapped[str | None] = mapped_column("hanh_dong_tiep_theo", Text, nullable=True)
    next_contact_date: Mapped[datetime | None] = mapped_column("ngay_lien_lac_tiep_theo", DateTime(timezone=True), nullable=True)
    contact_count: Mapped[int] = mapped_column("so_lan_da_lien_lac", Integer, nullable=False, default=0)
    purpose: Mapped[str | None] = mapped_column("muc_dich", Text, nullable=True)
    group_code: Mapped[str | None] = mapped_column("nhom_khach_hang", ForeignKey("customer_group.ma_nhom_khach_hang"), nullable=True)
    source_code: Mapped[str | None] = mapped_column("nguon_tiep_can", ForeignKey("opportunity_source.ma_nguon"), nullable=True)
    status: Mapped[str] = mapped_column("tinh_trang", String(50), nullable=False, default="Mới")
    added_at: Mapped[datetime] = mapped_column("ngay_them_vao", DateTime(timezone=True), nullable=False, default=utcnow)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column("so_dien_thoai", String(20), nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column("dia_chi_cu_the", Text, nullable=True)
    province: Mapped[str | None] = mapped_column("tinh_thanh", String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column("ghi_chu", Text, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    manager: Mapped[Account | None] = relationship(Account)
    customer_group: Mapped[CustomerGroup | None] = relationship(back_populates="potential_customers")
    opportunity_source: Mapped[OpportunitySource | None] = relationship(back_populates="potential_customers")


class QuotationStatus(Base):
    __tablename__ = "quotation_status"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_trang_thai_bao_gia", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("trang_thai_bao_gia", String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column("mo_ta", Text, nullable=True)
    updated_by: Mapped[str | None] = mapped_column("nguoi_cap_nhat", ForeignKey(ACCOUNT_FK), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    updater: Mapped[Account | None] = relationship(Account)
    quotations: Mapped[list["Quotation"]] = relationship(back_populates="status")


class QuotationType(Base):
    __tablename__ = "quotation_type"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_loai_bao_gia", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("loai_bao_gia", String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column("mo_ta", Text, nullable=True)
    updated_by: Mapped[str | None] = mapped_column("nguoi_cap_nhat", ForeignKey(ACCOUNT_FK), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    updater: Mapped[Account | None] = relationship(Account)
    quotations: Mapped[list["Quotation"]] = relationship(back_populates="type")


class Quotation(Base):
    __tablename__ = "quotations"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quotation_no: Mapped[str] = mapped_column("so_bao_gia", String(50), primary_key=True)
    status_code: Mapped[str | None] = mapped_column("tinh_trang", ForeignKey("quotation_status.ma_trang_thai_bao_gia"), nullable=True)
    title: Mapped[str | None] = mapped_column("tieu_de", String(255), nullable=True)
    customer_name: Mapped[str] = mapped_column("ten_khach_hang", String(255), nullable=False)
    type_code: Mapped[str | None] = mapped_column("loai_bao_gia", ForeignKey("quotation_type.ma_loai_bao_gia"), nullable=True)
    quoted_on: Mapped[datetime] = mapped_column("ngay_bao_gia", DateTime(timezone=True), nullable=False)
    price_list: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column("so_dien_thoai", String(20), nullable=True)
    contact_person: Mapped[str | None] = mapped_column("nguoi_lien_he", String(255), nullable=True)
    manager_id: Mapped[str | None] = mapped_column("nguoi_phu_trach", ForeignKey(ACCOUNT_FK), nullable=True)
    total_value: Mapped[Decimal] = mapped_column("tong_tri_gia", Numeric(18, 2), nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column("ghi_chu", Text, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    status: Mapped[QuotationStatus | None] = relationship(back_populates="quotations")
    type: Mapped[QuotationType | None] = relationship(back_populates="quotations")
    manager: Mapped[Account | None] = relationship(Account)


class InteractionType(Base):
    __tablename__ = "interaction_type"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_loai_tuong_tac", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("loai_tuong_tac", String(255), nullable=False, unique=True)
    status: Mapped[str | None] = mapped_column("trang_thai", String(50), nullable=True)
    updated_by: Mapped[str | None] = mapped_column("nguoi_cap_nhat", ForeignKey(ACCOUNT_FK), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    updater: Mapped[Account | None] = relationship(Account)
    interactions: Mapped[list["CustomerInteraction"]] = relationship(back_populates="interaction_type")


class CustomerInteraction(Base):
    __tablename__ = "customer_interactions"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_tuong_tac_khach_hang", String(50), primary_key=True)
    customer_name: Mapped[str] = mapped_column("ten_khach_hang", String(255), nullable=False)
    manager_id: Mapped[str | None] = mapped_column("nguoi_phu_trach", ForeignKey(ACCOUNT_FK), nullable=True)
    type_code: Mapped[str | None] = mapped_column("loai_tuong_tac", ForeignKey("interaction_type.ma_loai_tuong_tac"), nullable=True)
    contact_method: Mapped[str | None] = mapped_column("hinh_thuc_goi", String(100), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column("thoi_gian", DateTime(timezone=True), nullable=False)
    content: Mapped[str | None] = mapped_column("noi_dung_tuong_tac", Text, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)

    manager: Mapped[Account | None] = relationship(Account)
    interaction_type: Mapped[InteractionType | None] = relationship(back_populates="interactions")
