from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dxcrm.core.database import Base
from dxcrm.core.sequence import SequenceCounter, next_sequence
from dxcrm.crm.models import CustomerGroup, InteractionType
from dxcrm.crm.schemas import CustomerGroupCreate
from dxcrm.crm.service import customer_group_service


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def test_counter_increments_per_table(db_session: Session) -> None:
    assert next_sequence(db_session, CustomerGroup) == 1
    assert next_sequence(db_session, CustomerGroup) == 2
    assert next_sequence(db_session, InteractionType) == 1
    db_session.commit()

    counters = {row.name: row.value for row in db_session.scalars(select(SequenceCounter)).all()}
    assert counters == {"customer_group": 2, "interaction_type": 1}


def test_counter_seeds_from_existing_rows(db_session: Session) -> None:
    db_session.add_all(
        [
            CustomerGroup(code="KH01", name="Legacy one", stt=7),
            CustomerGroup(code="KH02", name="Legacy two", stt=41),
        ]
    )
    db_session.commit()

    assert next_sequence(db_session, CustomerGroup) == 42


def test_rolled_back_create_releases_number(db_session: Session) -> None:
    next_sequence(db_session, CustomerGroup)
    db_session.rollback()

    assert next_sequence(db_session, CustomerGroup) == 1


def test_deleting_rows_does_not_reuse_numbers(db_session: Session) -> None:
    first = customer_group_service.create(db_session, CustomerGroupCreate(code="KH01", name="Retail"))
    customer_group_service.delete(db_session, "KH01")
    second = customer_group_service.create(db_session, CustomerGroupCreate(code="KH02", name="Wholesale"))

    assert first.stt == 1
    assert second.stt == 2
