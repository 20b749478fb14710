"""create crm schema

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

ACCOUNT_FK = "accounts.ma_nguoi_dung"


def _stt() -> sa.Column:
    return sa.Column("stt", sa.Integer(), nullable=True)


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("nguoi_cap_nhat", sa.String(length=50), sa.ForeignKey(ACCOUNT_FK), nullable=True),
        sa.Column("ngay_cap_nhat", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "sequence_counters",
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("value", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("name"),
    )

    op.create_table(
        "role",
        _stt(),
        sa.Column("ma_vai_tro", sa.String(length=50), nullable=False),
        sa.Column("vai_tro", sa.String(length=100), nullable=True),
        sa.Column("nguoi_cap_nhat", sa.String(length=50), nullable=True),
        sa.Column("ngay_cap_nhat", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ghi_chu", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("ma_vai_tro"),
    )

    op.create_table(
        "accounts",
        _stt(),
        sa.Column("ma_nguoi_dung", sa.String(length=50), nullable=False),
        sa.Column("ten_dang_nhap", sa.String(length=100), nullable=False),
        sa.Column("mat_khau", sa.String(length=255), nullable=False),
        sa.Column("ho_va_ten", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("so_dien_thoai", sa.String(length=20), nullable=True),
        sa.Column("vai_tro", sa.String(length=50), sa.ForeignKey("role.ma_vai_tro"), nullable=True),
        sa.Column("ngay_tao", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("ma_nguoi_dung"),
        sa.UniqueConstraint("ten_dang_nhap"),
    )

    op.create_table(
        "products",
        sa.Column("ma_hang", sa.String(length=50), nullable=False),
        sa.Column("ten_hang", sa.String(length=255), nullable=False),
        sa.Column("gia_thuc", sa.Numeric(18, 2), nullable=True),
        sa.Column("nuoc_xuat_xu", sa.String(length=100), nullable=True),
        sa.Column("nguoi_cap_nhat", sa.String(length=50), sa.ForeignKey(ACCOUNT_FK), nullable=True),
        sa.PrimaryKeyConstraint("ma_hang"),
    )

    op.create_table(
        "competitors",
        _stt(),
        sa.Column("ma_doi_thu", sa.String(length=50), nullable=False),
        sa.Column("ten_doi_thu", sa.String(length=255), nullable=False),
        sa.Column("san_pham_canh_tranh", sa.String(length=50), sa.ForeignKey("products.ma_hang"), nullable=True),
        sa.Column("chien_luoc_gia_ca", sa.Text(), nullable=True),
        sa.Column("danh_gia_muc_do_canh_tranh", sa.String(length=100), nullable=True),
        sa.Column("ghi_chu", sa.Text(), nullable=True),
        sa.Column("ngay_cap_nhat", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("ma_doi_thu"),
    )

    op.create_table(
        "customer_group",
        _stt(),
        sa.Column("ma_nhom_khach_hang", sa.String(length=50), nullable=False),
        sa.Column("nhom_khach_hang", sa.String(length=255), nullable=False),
        sa.Column("mo_ta", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("ma_nhom_khach_hang"),
        sa.UniqueConstraint("nhom_khach_hang"),
    )

    op.create_table(
        "opportunity_source",
        _stt(),
        sa.Column("ma_nguon", sa.String(length=50), nullable=False),
        sa.Column("nguon", sa.String(length=255), nullable=False),
        sa.Column("trang_thai", sa.String(length=50), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("ma_nguon"),
        sa.UniqueConstraint("nguon"),
    )

    op.create_table(
        "potential_customer",
        _stt(),
        sa.Column("ma_khach_hang_tiem_nang", sa.String(length=50), nullable=False),
        sa.Column("ten_khach_hang", sa.String(length=255), nullable=False),
        sa.Column("nguoi_phu_trach", sa.String(length=50), sa.ForeignKey(ACCOUNT_FK), nullable=True),
        sa.Column("hanh_dong_tiep_theo", sa.Text(), nullable=True),
        sa.Column("ngay_lien_lac_tiep_theo", sa.DateTime(timezone=True), nullable=True),
        sa.Column("so_lan_da_lien_lac", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("muc_dich", sa.Text(), nullable=True),
        sa.Column(
            "nhom_khach_hang",
            sa.String(length=50),
            sa.ForeignKey("customer_group.ma_nhom_khach_hang"),
            nullable=True,
        ),
        sa.Column("nguon_tiep_can", sa.String(length=50), sa.ForeignKey("opportunity_source.ma_nguon"), nullable=True),
        sa.Column("tinh_trang", sa.String(length=50), nullable=False, server_default="Mới"),
        sa.Column("ngay_them_vao", sa.DateTime(timezone=True), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("so_dien_thoai", sa.String(length=20), nullable=True),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column("dia_chi_cu_the", sa.Text(), nullable=True),
        sa.Column("tinh_thanh", sa.String(length=100), nullable=True),
        sa.Column("ghi_chu", sa.Text(), nullable=True),
        sa.Column("ngay_cap_nhat", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("ma_khach_hang_tiem_nang"),
        sa.UniqueConstraint("ten_khach_hang"),
    )

    op.create_table(
        "quotation_status",
        _stt(),
        sa.Column("ma_trang_thai_bao_gia", sa.String(length=50), nullable=False),
        sa.Column("trang_thai_bao_gia", sa.String(length=255), nullable=False),
        sa.Column("mo_ta", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("ma_trang_thai_bao_gia"),
        sa.UniqueConstraint("trang_thai_bao_gia"),
    )

    op.create_table(
        "quotation_type",
        _stt(),
        sa.Column("ma_loai_bao_gia", sa.String(length=50), nullable=False),
        sa.Column("loai_bao_gia", sa.String(length=255), nullable=False),
        sa.Column("mo_ta", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("ma_loai_bao_gia"),
        sa.UniqueConstraint("loai_bao_gia"),
    )

    op.create_table(
        "quotations",
        _stt(),
        sa.Column("so_bao_gia", sa.String(length=50), nullable=False),
        sa.Column(
            "tinh_trang",
            sa.String(length=50),
            sa.ForeignKey("quotation_status.ma_trang_thai_bao_gia"),
            nullable=True,
        ),
        sa.Column("tieu_de", sa.String(length=255), nullable=True),
        sa.Column("ten_khach_hang", sa.String(length=255), nullable=False),
        sa.Column("loai_bao_gia", sa.String(length=50), sa.ForeignKey("quotation_type.ma_loai_bao_gia"), nullable=True),
        sa.Column("ngay_bao_gia", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price_list", sa.String(length=255), nullable=False),
        sa.Column("so_dien_thoai", sa.String(length=20), nullable=True),
        sa.Column("nguoi_lien_he", sa.String(length=255), nullable=True),
        sa.Column("nguoi_phu_trach", sa.String(length=50), sa.ForeignKey(ACCOUNT_FK), nullable=True),
        sa.Column("tong_tri_gia", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("ghi_chu", sa.Text(), nullable=True),
        sa.Column("ngay_cap_nhat", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("so_bao_gia"),
    )

    op.create_table(
        "interaction_type",
        _stt(),
        sa.Column("ma_loai_tuong_tac", sa.String(length=50), nullable=False),
        sa.Column("loai_tuong_tac", sa.String(length=255), nullable=False),
        sa.Column("trang_thai", sa.String(length=50), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("ma_loai_tuong_tac"),
        sa.UniqueConstraint("loai_tuong_tac"),
    )

    op.create_table(
        "customer_interactions",
        _stt(),
        sa.Column("ma_tuong_tac_khach_hang", sa.String(length=50), nullable=False),
        sa.Column("ten_khach_hang", sa.String(length=255), nullable=False),
        sa.Column("nguoi_phu_trach", sa.String(length=50), sa.ForeignKey(ACCOUNT_FK), nullable=True),
        sa.Column(
            "loai_tuong_tac",
            sa.String(length=50),
            sa.ForeignKey("interaction_type.ma_loai_tuong_tac"),
            nullable=True,
        ),
        sa.Column("hinh_thuc_goi", sa.String(length=100), nullable=True),
        sa.Column("thoi_gian", sa.DateTime(timezone=True), nullable=False),
        sa.Column("noi_dung_tuong_tac", sa.Text(), nullable=True),
        sa.Column("ngay_cap_nhat", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("ma_tuong_tac_khach_hang"),
    )

    op.create_table(
        "user_activity_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ma_nguoi_dung", sa.String(length=50), nullable=False),
        sa.Column("activity_type", sa.String(length=50), nullable=False),
        sa.Column("ip_address", sa.String(length=100), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_activity_log_ma_nguoi_dung", "user_activity_log", ["ma_nguoi_dung"], unique=False)
    op.create_index("ix_user_activity_log_activity_type", "user_activity_log", ["activity_type"], unique=False)
    op.create_index("ix_user_activity_log_timestamp", "user_activity_log", ["timestamp"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_user_activity_log_timestamp", table_name="user_activity_log")
    op.drop_index("ix_user_activity_log_activity_type", table_name="user_activity_log")
    op.drop_index("ix_user_activity_log_ma_nguoi_dung", table_name="user_activity_log")
    op.drop_table("user_activity_log")
    op.drop_table("customer_interactions")
    op.drop_table("interaction_type")
    op.drop_table("quotations")
    op.drop_table("quotation_type")
    op.drop_table("quotation_status")
    op.drop_table("potential_customer")
    op.drop_table("opportunity_source")
    op.drop_table("customer_group")
    op.drop_table("competitors")
    op.drop_table("products")
    op.drop_table("accounts")
    op.drop_table("role")
    op.drop_table("sequence_counters")
