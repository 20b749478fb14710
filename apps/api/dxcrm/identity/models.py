from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dxcrm.core.clock import utcnow
from dxcrm.core.database import Base


class Role(Base):
    __tablename__ = "role"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code: Mapped[str] = mapped_column("ma_vai_tro", String(50), primary_key=True)
    name: Mapped[str | None] = mapped_column("vai_tro", String(100), nullable=True)
    # no FK: accounts already points at role, the updater is checked in the service
    updated_by: Mapped[str | None] = mapped_column("nguoi_cap_nhat", String(50), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column("ngay_cap_nhat", DateTime(timezone=True), nullable=True, default=utcnow)
    notes: Mapped[str | None] = mapped_column("ghi_chu", Text, nullable=True)

    accounts: Mapped[list["Account"]] = relationship(back_populates="role")


class Account(Base):
    __tablename__ = "accounts"

    stt: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id: Mapped[str] = mapped_column("ma_nguoi_dung", String(50), primary_key=True)
    username: Mapped[str] = mapped_column("ten_dang_nhap", String(100), nullable=False, unique=True)
    password: Mapped[str] = mapped_column("mat_khau", String(255), nullable=False)
    full_name: Mapped[str] = mapped_column("ho_va_ten", String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column("so_dien_thoai", String(20), nullable=True)
    role_code: Mapped[str | None] = mapped_column("vai_tro", ForeignKey("role.ma_vai_tro"), nullable=True)
    created_at: Mapped[datetime] = mapped_column("ngay_tao", DateTime(timezone=True), nullable=False, default=utcnow)

    role: Mapped[Role | None] = relationship(back_populates="accounts")
