from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, foreign, mapped_column, relationship

from dxcrm.core.clock import utcnow
from dxcrm.core.database import Base
from dxcrm.identity.models import Account


class UserActivityLog(Base):
    __tablename__ = "user_activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # failed logins are recorded against "unknown", so this is not a foreign key
    user_id: Mapped[str] = mapped_column("ma_nguoi_dung", String(50), nullable=False, index=True)
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    ip_address: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    account: Mapped[Account | None] = relationship(
        Account,
        primaryjoin=lambda: foreign(UserActivityLog.user_id) == Account.user_id,
        viewonly=True,
    )
