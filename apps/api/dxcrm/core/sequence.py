from __future__ import annotations

from typing import Any

from sqlalchemy import Integer, String, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from dxcrm.core.database import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


def next_sequence(session: Session, model: type[Any]) -> int:
    """Return the next display-order number for ``model`` inside the caller's transaction.

    The counter row is locked with ``SELECT ... FOR UPDATE`` so concurrent creators
    of the same entity queue behind each other until the surrounding commit.
    The first call for a table seeds the counter from the current ``max(stt)``.
    """
    name = model.__tablename__
    counter = session.scalar(
        select(SequenceCounter).where(SequenceCounter.name == name).with_for_update()
    )
    if counter is None:
        current_max = session.scalar(select(func.coalesce(func.max(model.stt), 0)))
        counter = SequenceCounter(name=name, value=int(current_max or 0))
        session.add(counter)

    counter.value += 1
    session.flush()
    return counter.value
