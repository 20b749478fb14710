from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from dxcrm.core.database import Base


class Product(Base):
    """Warehouse item; the CRM only references it from competitor records."""

    __tablename__ = "products"

    product_code: Mapped[str] = mapped_column("ma_hang", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("ten_hang", String(255), nullable=False)
    price: Mapped[Decimal | None] = mapped_column("gia_thuc", Numeric(18, 2), nullable=True)
    origin_country: Mapped[str | None] = mapped_column("nuoc_xuat_xu", String(100), nullable=True)
    updated_by: Mapped[str | None] = mapped_column("nguoi_cap_nhat", ForeignKey("accounts.ma_nguoi_dung"), nullable=True)
