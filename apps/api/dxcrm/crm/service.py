from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar

from pydantic import BaseModel
from sqlalchemy import ColumnElement, Select, extract, func, select
from sqlalchemy.orm import Session, selectinload

from dxcrm.core.clock import utcnow
from dxcrm.core.crud import (
    apply_date_range,
    apply_sort,
    collect_changes,
    commit,
    ensure_key_free,
    ensure_name_free,
    ensure_reference,
    get_or_404,
    ilike_any,
    normalize_values,
)
from dxcrm.core.errors import DependentRowsExist, NotFound
from dxcrm.core.sequence import next_sequence
from dxcrm.crm.models import (
    Competitor,
    CustomerGroup,
    CustomerInteraction,
    InteractionType,
    OpportunitySource,
    PotentialCustomer,
    Quotation,
    QuotationStatus,
    QuotationType,
)
from dxcrm.crm.schemas import (
    CompetitorCreate,
    CompetitorRead,
    CompetitorUpdate,
    CustomerGroupDetail,
    CustomerGroupRead,
    CustomerGroupStats,
    CustomerInteractionBrief,
    CustomerInteractionCreate,
    CustomerInteractionRead,
    CustomerInteractionStats,
    CustomerInteractionUpdate,
    InteractionTypeDetail,
    InteractionTypeRead,
    InteractionTypeStats,
    LabelCount,
    ManagerBucket,
    MonthlyBucket,
    NamedCount,
    OpportunitySourceDetail,
    OpportunitySourceRead,
    OpportunitySourceStats,
    PotentialCustomerBrief,
    PotentialCustomerCreate,
    PotentialCustomerRead,
    PotentialCustomerStats,
    PotentialCustomerUpdate,
    QuotationBrief,
    QuotationCreate,
    QuotationRead,
    QuotationStats,
    QuotationStatusDetail,
    QuotationStatusRead,
    QuotationStatusStats,
    QuotationTypeDetail,
    QuotationTypeRead,
    QuotationTypeStats,
    QuotationUpdate,
    ValueBucket,
)
from dxcrm.identity.models import Account
from dxcrm.warehouse.models import Product


logger = logging.getLogger("dxcrm.crm")

ACTIVE_STATUS = "Hoạt động"
INACTIVE_STATUS = "Không hoạt động"
TOP_LIMIT = 5
RECENT_LIMIT = 5
LATEST_DEPENDENTS = 10


def monthly_window_start(now: datetime, months: int = 12) -> datetime:
    """First instant of the month that opens a ``months``-long window ending in ``now``'s month."""
    index = now.year * 12 + now.month - 1 - (months - 1)
    year, month_zero = divmod(index, 12)
    return datetime(year, month_zero + 1, 1, tzinfo=timezone.utc)


def log_mutation(action: str, entity: str, entity_id: str) -> None:
    logger.info(f"crm.{action}", extra={"entity": entity, "entity_id": entity_id})


@dataclass(frozen=True)
class Dependents:
    model: type[Any]
    key: str
    field: str
    brief: type[BaseModel]
    label: str
    order_by: str
    descending: bool = False
    limit: int | None = None

    @property
    def fk(self) -> Any:
        return getattr(self.model, self.key)

    @property
    def ordering(self) -> Any:
        column = getattr(self.model, self.order_by)
        return column.desc() if self.descending else column.asc()


class ReferenceEntityService:
    """CRUD and aggregates shared by the lookup tables leaf entities point at."""

    model: ClassVar[type[Any]]
    entity: ClassVar[str]
    label: ClassVar[str]
    read_schema: ClassVar[type[BaseModel]]
    detail_schema: ClassVar[type[BaseModel]]
    count_field: ClassVar[str]
    dependents: ClassVar[Dependents]
    search_fields: ClassVar[tuple[str, ...]]
    sort_fields: ClassVar[tuple[str, ...]] = ("stt", "code", "name", "updated_at")

    def _column(self, name: str) -> Any:
        return getattr(self.model, name)

    def _dependent_count(self) -> Any:
        deps = self.dependents
        return (
            select(func.count())
            .select_from(deps.model)
            .where(deps.fk == self.model.code)
            .correlate(self.model)
            .scalar_subquery()
            .label(self.count_field)
        )

    def _base_query(self) -> Select[Any]:
        return select(self.model, self._dependent_count()).options(selectinload(self.model.updater))

    def _read(self, entity: Any, count: int) -> BaseModel:
        return self.read_schema.model_validate(entity).model_copy(update={self.count_field: int(count or 0)})

    def list(
        self,
        session: Session,
        *,
        search: str | None = None,
        filters: dict[str, Any] | None = None,
        sort_by: str = "stt",
        sort_dir: str = "asc",
    ) -> list[BaseModel]:
        query = self._base_query()
        if search:
            query = query.where(ilike_any(search, *(self._column(name) for name in self.search_fields)))
        for name, value in (filters or {}).items():
            if value is not None:
                query = query.where(self._column(name) == value)
        sortable = {name: self._column(name) for name in self.sort_fields}
        query = apply_sort(query, sortable, sort_by, sort_dir)
        return [self._read(entity, count) for entity, count in session.execute(query).all()]

    def get(self, session: Session, code: str) -> BaseModel:
        row = session.execute(self._base_query().where(self.model.code == code)).first()
        if row is None:
            raise NotFound(f"{self.label} not found")
        entity, count = row

        deps = self.dependents
        query = select(deps.model).where(deps.fk == code).order_by(deps.ordering)
        if deps.limit is not None:
            query = query.limit(deps.limit)
        related = [deps.brief.model_validate(item) for item in session.scalars(query).all()]

        read = self._read(entity, count)
        return self.detail_schema.model_validate({**read.model_dump(), deps.field: related})

    def create(self, session: Session, payload: BaseModel) -> BaseModel:
        values = normalize_values(payload.model_dump())
        ensure_key_free(session, self.model, values["code"], self.label)
        ensure_name_free(session, self.model, values["name"], self.label)
        ensure_reference(session, Account, values.get("updated_by"), "Account")

        entity = self.model(**values)
        entity.stt = next_sequence(session, self.model)
        entity.updated_at = utcnow()
        session.add(entity)
        commit(session)
        session.refresh(entity)
        log_mutation("created", self.entity, entity.code)
        return self._read(entity, 0)

    def update(self, session: Session, code: str, payload: BaseModel) -> BaseModel:
        entity = get_or_404(session, self.model, code, self.label)
        changes = collect_changes(payload, required=("name",))
        if "name" in changes:
            ensure_name_free(session, self.model, changes["name"], self.label, exclude=code)
        ensure_reference(session, Account, changes.get("updated_by"), "Account")

        for field_name, value in changes.items():
            setattr(entity, field_name, value)
        entity.updated_at = utcnow()
        commit(session)
        log_mutation("updated", self.entity, code)

        row = session.execute(self._base_query().where(self.model.code == code)).one()
        return self._read(*row)

    def delete(self, session: Session, code: str) -> None:
        entity = get_or_404(session, self.model, code, self.label)
        deps = self.dependents
        count = session.scalar(select(func.count()).select_from(deps.model).where(deps.fk == code)) or 0
        if count:
            raise DependentRowsExist(
                f"Cannot delete {self.label.lower()}: {count} {deps.label} still reference it",
                count=count,
            )
        session.delete(entity)
        commit(session)
        log_mutation("deleted", self.entity, code)

    def total(self, session: Session) -> int:
        return session.scalar(select(func.count()).select_from(self.model)) or 0

    def count_where(self, session: Session, condition: ColumnElement[bool]) -> int:
        return session.scalar(select(func.count()).select_from(self.model).where(condition)) or 0

    def recent(self, session: Session, limit: int = RECENT_LIMIT) -> list[BaseModel]:
        query = self._base_query().order_by(self.model.updated_at.desc()).limit(limit)
        return [self._read(entity, count) for entity, count in session.execute(query).all()]

    def dependent_counts(self, session: Session, limit: int | None = None) -> list[NamedCount]:
        deps = self.dependents
        count = func.count(deps.fk)
        query = (
            select(self.model.code, self.model.name, count.label("count"))
            .outerjoin(deps.model, deps.fk == self.model.code)
            .group_by(self.model.code, self.model.name)
            .order_by(count.desc(), self.model.code.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [NamedCount(code=code, name=name, count=total) for code, name, total in session.execute(query).all()]


class CustomerGroupService(ReferenceEntityService):
    model = CustomerGroup
    entity = "customer_group"
    label = "Customer group"
    read_schema = CustomerGroupRead
    detail_schema = CustomerGroupDetail
    count_field = "potential_customer_count"
    dependents = Dependents(
        model=PotentialCustomer,
        key="group_code",
        field="potential_customers",
        brief=PotentialCustomerBrief,
        label="potential customers",
        order_by="name",
    )
    search_fields = ("code", "name", "description")
    sort_fields = ("stt", "code", "name", "description", "updated_at")

    def stats(self, session: Session) -> CustomerGroupStats:
        return CustomerGroupStats(
            total_count=self.total(session),
            top_groups=self.dependent_counts(session, TOP_LIMIT),
            recent_groups=self.recent(session),
        )


class OpportunitySourceService(ReferenceEntityService):
    model = OpportunitySource
    entity = "opportunity_source"
    label = "Opportunity source"
    read_schema = OpportunitySourceRead
    detail_schema = OpportunitySourceDetail
    count_field = "potential_customer_count"
    dependents = Dependents(
        model=PotentialCustomer,
        key="source_code",
        field="potential_customers",
        brief=PotentialCustomerBrief,
        label="potential customers",
        order_by="name",
    )
    search_fields = ("code", "name")
    sort_fields = ("stt", "code", "name", "status", "updated_at")

    def stats(self, session: Session) -> OpportunitySourceStats:
        return OpportunitySourceStats(
            total_count=self.total(session),
            active_count=self.count_where(session, OpportunitySource.status == ACTIVE_STATUS),
            inactive_count=self.count_where(session, OpportunitySource.status == INACTIVE_STATUS),
            top_sources=self.dependent_counts(session, TOP_LIMIT),
            recent_sources=self.recent(session),
        )


class QuotationStatusService(ReferenceEntityService):
    model = QuotationStatus
    entity = "quotation_status"
    label = "Quotation status"
    read_schema = QuotationStatusRead
    detail_schema = QuotationStatusDetail
    count_field = "quotation_count"
    dependents = Dependents(
        model=Quotation,
        key="status_code",
        field="quotations",
        brief=QuotationBrief,
        label="quotations",
        order_by="quoted_on",
        descending=True,
        limit=LATEST_DEPENDENTS,
    )
    search_fields = ("code", "name", "description")
    sort_fields = ("stt", "code", "name", "description", "updated_at")

    def stats(self, session: Session) -> QuotationStatusStats:
        return QuotationStatusStats(
            total_count=self.total(session),
            quotations_by_status=self.dependent_counts(session),
            recent_statuses=self.recent(session),
        )


class QuotationTypeService(ReferenceEntityService):
    model = QuotationType
    entity = "quotation_type"
    label = "Quotation type"
    read_schema = QuotationTypeRead
    detail_schema = QuotationTypeDetail
    count_field = "quotation_count"
    dependents = Dependents(
        model=Quotation,
        key="type_code",
        field="quotations",
        brief=QuotationBrief,
        label="quotations",
        order_by="quoted_on",
        descending=True,
        limit=LATEST_DEPENDENTS,
    )
    search_fields = ("code", "name", "description")
    sort_fields = ("stt", "code", "name", "description", "updated_at")

    def stats(self, session: Session) -> QuotationTypeStats:
        return QuotationTypeStats(
            total_count=self.total(session),
            quotations_by_type=self.dependent_counts(session),
            recent_types=self.recent(session),
        )


class InteractionTypeService(ReferenceEntityService):
    model = InteractionType
    entity = "interaction_type"
    label = "Interaction type"
    read_schema = InteractionTypeRead
    detail_schema = InteractionTypeDetail
    count_field = "interaction_count"
    dependents = Dependents(
        model=CustomerInteraction,
        key="type_code",
        field="interactions",
        brief=CustomerInteractionBrief,
        label="customer interactions",
        order_by="occurred_at",
        descending=True,
        limit=LATEST_DEPENDENTS,
    )
    search_fields = ("code", "name")
    sort_fields = ("stt", "code", "name", "status", "updated_at")

    def stats(self, session: Session) -> InteractionTypeStats:
        return InteractionTypeStats(
            total_count=self.total(session),
            active_count=self.count_where(session, InteractionType.status == ACTIVE_STATUS),
            inactive_count=self.count_where(session, InteractionType.status == INACTIVE_STATUS),
            interactions_by_type=self.dependent_counts(session),
            recent_updates=self.recent(session),
        )


class CompetitorService:
    sortable = {
        "stt": Competitor.stt,
        "code": Competitor.code,
        "name": Competitor.name,
        "competition_level": Competitor.competition_level,
        "updated_at": Competitor.updated_at,
    }

    def list(
        self,
        session: Session,
        *,
        search: str | None = None,
        product_code: str | None = None,
        sort_by: str = "stt",
        sort_dir: str = "asc",
    ) -> list[CompetitorRead]:
        query = select(Competitor).options(selectinload(Competitor.product))
        if search:
            query = query.where(ilike_any(search, Competitor.code, Competitor.name))
        if product_code:
            query = query.where(Competitor.product_code == product_code)
        query = apply_sort(query, self.sortable, sort_by, sort_dir)
        return [CompetitorRead.model_validate(row) for row in session.scalars(query).all()]

    def get(self, session: Session, code: str) -> CompetitorRead:
        return CompetitorRead.model_validate(get_or_404(session, Competitor, code, "Competitor"))

    def create(self, session: Session, payload: CompetitorCreate) -> CompetitorRead:
        values = normalize_values(payload.model_dump())
        ensure_key_free(session, Competitor, values["code"], "Competitor")
        ensure_reference(session, Product, values.get("product_code"), "Product")

        competitor = Competitor(**values)
        competitor.stt = next_sequence(session, Competitor)
        competitor.updated_at = utcnow()
        session.add(competitor)
        commit(session)
        session.refresh(competitor)
        log_mutation("created", "competitor", competitor.code)
        return CompetitorRead.model_validate(competitor)

    def update(self, session: Session, code: str, payload: CompetitorUpdate) -> CompetitorRead:
        competitor = get_or_404(session, Competitor, code, "Competitor")
        changes = collect_changes(payload, required=("name",))
        ensure_reference(session, Product, changes.get("product_code"), "Product")

        for field_name, value in changes.items():
            setattr(competitor, field_name, value)
        competitor.updated_at = utcnow()
        commit(session)
        session.refresh(competitor)
        log_mutation("updated", "competitor", code)
        return CompetitorRead.model_validate(competitor)

    def delete(self, session: Session, code: str) -> None:
        competitor = get_or_404(session, Competitor, code, "Competitor")
        session.delete(competitor)
        commit(session)
        log_mutation("deleted", "competitor", code)


class PotentialCustomerService:
    sortable = {
        "stt": PotentialCustomer.stt,
        "code": PotentialCustomer.code,
        "name": PotentialCustomer.name,
        "status": PotentialCustomer.status,
        "added_at": PotentialCustomer.added_at,
        "next_contact_date": PotentialCustomer.next_contact_date,
        "contact_count": PotentialCustomer.contact_count,
        "updated_at": PotentialCustomer.updated_at,
    }

    @staticmethod
    def _query() -> Select[Any]:
        return select(PotentialCustomer).options(
            selectinload(PotentialCustomer.manager),
            selectinload(PotentialCustomer.customer_group),
            selectinload(PotentialCustomer.opportunity_source),
        )

    def _rows(self, session: Session, query: Select[Any]) -> list[PotentialCustomerRead]:
        return [PotentialCustomerRead.model_validate(row) for row in session.scalars(query).all()]

    def list(
        self,
        session: Session,
        *,
        search: str | None = None,
        status: str | None = None,
        group_code: str | None = None,
        source_code: str | None = None,
        manager_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        sort_by: str = "stt",
        sort_dir: str = "asc",
    ) -> list[PotentialCustomerRead]:
        query = self._query()
        if search:
            query = query.where(
                ilike_any(
                    search,
                    PotentialCustomer.code,
                    PotentialCustomer.name,
                    PotentialCustomer.email,
                    PotentialCustomer.phone,
                )
            )
        if status:
            query = query.where(PotentialCustomer.status == status)
        if group_code:
            query = query.where(PotentialCustomer.group_code == group_code)
        if source_code:
            query = query.where(PotentialCustomer.source_code == source_code)
        if manager_id:
            query = query.where(PotentialCustomer.manager_id == manager_id)
        query = apply_date_range(query, PotentialCustomer.added_at, start_date, end_date)
        query = apply_sort(query, self.sortable, sort_by, sort_dir)
        return self._rows(session, query)

    def list_by_group(self, session: Session, group_code: str) -> list[PotentialCustomerRead]:
        get_or_404(session, CustomerGroup, group_code, "Customer group")
        query = self._query().where(PotentialCustomer.group_code == group_code)
        return self._rows(session, query.order_by(PotentialCustomer.name.asc()))

    def list_by_source(self, session: Session, source_code: str) -> list[PotentialCustomerRead]:
        get_or_404(session, OpportunitySource, source_code, "Opportunity source")
        query = self._query().where(PotentialCustomer.source_code == source_code)
        return self._rows(session, query.order_by(PotentialCustomer.name.asc()))

    def list_by_manager(self, session: Session, manager_id: str) -> list[PotentialCustomerRead]:
        get_or_404(session, Account, manager_id, "Account")
        query = self._query().where(PotentialCustomer.manager_id == manager_id)
        return self._rows(session, query.order_by(PotentialCustomer.name.asc()))

    def get(self, session: Session, code: str) -> PotentialCustomerRead:
        return PotentialCustomerRead.model_validate(get_or_404(session, PotentialCustomer, code, "Potential customer"))

    def _check_references(self, session: Session, values: dict[str, Any]) -> None:
        ensure_reference(session, Account, values.get("manager_id"), "Account")
        ensure_reference(session, CustomerGroup, values.get("group_code"), "Customer group")
        ensure_reference(session, OpportunitySource, values.get("source_code"), "Opportunity source")

    def create(self, session: Session, payload: PotentialCustomerCreate) -> PotentialCustomerRead:
        values = normalize_values(payload.model_dump())
        ensure_key_free(session, PotentialCustomer, payload.code, "Potential customer")
        ensure_name_free(session, PotentialCustomer, payload.name, "Potential customer")
        self._check_references(session, values)
        if values.get("added_at") is None:
            values["added_at"] = utcnow()

        customer = PotentialCustomer(**values)
        customer.stt = next_sequence(session, PotentialCustomer)
        customer.updated_at = utcnow()
        session.add(customer)
        commit(session)
        session.refresh(customer)
        log_mutation("created", "potential_customer", customer.code)
        return PotentialCustomerRead.model_validate(customer)

    def update(self, session: Session, code: str, payload: PotentialCustomerUpdate) -> PotentialCustomerRead:
        customer = get_or_404(session, PotentialCustomer, code, "Potential customer")
        changes = collect_changes(payload, required=("name", "status", "contact_count"))
        if "name" in changes:
            ensure_name_free(session, PotentialCustomer, changes["name"], "Potential customer", exclude=code)
        self._check_references(session, changes)

        for field_name, value in changes.items():
            setattr(customer, field_name, value)
        customer.updated_at = utcnow()
        commit(session)
        session.refresh(customer)
        log_mutation("updated", "potential_customer", code)
        return PotentialCustomerRead.model_validate(customer)

    def delete(self, session: Session, code: str) -> None:
        customer = get_or_404(session, PotentialCustomer, code, "Potential customer")
        session.delete(customer)
        commit(session)
        log_mutation("deleted", "potential_customer", code)

    def stats(self, session: Session) -> PotentialCustomerStats:
        total = session.scalar(select(func.count()).select_from(PotentialCustomer)) or 0

        status_count = func.count(PotentialCustomer.code)
        by_status = session.execute(
            select(PotentialCustomer.status, status_count)
            .group_by(PotentialCustomer.status)
            .order_by(status_count.desc())
        ).all()

        group_count = func.count(PotentialCustomer.code)
        by_group = session.execute(
            select(CustomerGroup.code, CustomerGroup.name, group_count)
            .join(PotentialCustomer, PotentialCustomer.group_code == CustomerGroup.code)
            .group_by(CustomerGroup.code, CustomerGroup.name)
            .order_by(group_count.desc(), CustomerGroup.code.asc())
            .limit(TOP_LIMIT)
        ).all()

        source_count = func.count(PotentialCustomer.code)
        by_source = session.execute(
            select(OpportunitySource.code, OpportunitySource.name, source_count)
            .join(PotentialCustomer, PotentialCustomer.source_code == OpportunitySource.code)
            .group_by(OpportunitySource.code, OpportunitySource.name)
            .order_by(source_count.desc(), OpportunitySource.code.asc())
            .limit(TOP_LIMIT)
        ).all()

        recent = self._rows(session, self._query().order_by(PotentialCustomer.added_at.desc()).limit(RECENT_LIMIT))

        return PotentialCustomerStats(
            total_count=total,
            by_status=[LabelCount(label=label, count=count) for label, count in by_status],
            by_group=[NamedCount(code=code, name=name, count=count) for code, name, count in by_group],
            by_source=[NamedCount(code=code, name=name, count=count) for code, name, count in by_source],
            recent=recent,
        )


class QuotationService:
    sortable = {
        "stt": Quotation.stt,
        "quotation_no": Quotation.quotation_no,
        "quoted_on": Quotation.quoted_on,
        "customer_name": Quotation.customer_name,
        "title": Quotation.title,
        "total_value": Quotation.total_value,
        "updated_at": Quotation.updated_at,
    }

    @staticmethod
    def _query() -> Select[Any]:
        return select(Quotation).options(
            selectinload(Quotation.status),
            selectinload(Quotation.type),
            selectinload(Quotation.manager),
        )

    def _rows(self, session: Session, query: Select[Any]) -> list[QuotationRead]:
        return [QuotationRead.model_validate(row) for row in session.scalars(query).all()]

    def list(
        self,
        session: Session,
        *,
        search: str | None = None,
        status_code: str | None = None,
        type_code: str | None = None,
        manager_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        min_value: Decimal | None = None,
        max_value: Decimal | None = None,
        sort_by: str = "quoted_on",
        sort_dir: str = "desc",
    ) -> list[QuotationRead]:
        query = self._query()
        if search:
            query = query.where(
                ilike_any(
                    search,
                    Quotation.quotation_no,
                    Quotation.title,
                    Quotation.customer_name,
                    Quotation.contact_person,
                    Quotation.phone,
                )
            )
        if status_code:
            query = query.where(Quotation.status_code == status_code)
        if type_code:
            query = query.where(Quotation.type_code == type_code)
        if manager_id:
            query = query.where(Quotation.manager_id == manager_id)
        query = apply_date_range(query, Quotation.quoted_on, start_date, end_date)
        if min_value is not None:
            query = query.where(Quotation.total_value >= min_value)
        if max_value is not None:
            query = query.where(Quotation.total_value <= max_value)
        query = apply_sort(query, self.sortable, sort_by, sort_dir)
        return self._rows(session, query)

    def list_by_status(self, session: Session, status_code: str) -> list[QuotationRead]:
        get_or_404(session, QuotationStatus, status_code, "Quotation status")
        query = self._query().where(Quotation.status_code == status_code)
        return self._rows(session, query.order_by(Quotation.quoted_on.desc()))

    def list_by_type(self, session: Session, type_code: str) -> list[QuotationRead]:
        get_or_404(session, QuotationType, type_code, "Quotation type")
        query = self._query().where(Quotation.type_code == type_code)
        return self._rows(session, query.order_by(Quotation.quoted_on.desc()))

    def list_by_manager(self, session: Session, manager_id: str) -> list[QuotationRead]:
        get_or_404(session, Account, manager_id, "Account")
        query = self._query().where(Quotation.manager_id == manager_id)
        return self._rows(session, query.order_by(Quotation.quoted_on.desc()))

    def get(self, session: Session, quotation_no: str) -> QuotationRead:
        return QuotationRead.model_validate(get_or_404(session, Quotation, quotation_no, "Quotation"))

    def _check_references(self, session: Session, values: dict[str, Any]) -> None:
        ensure_reference(session, QuotationStatus, values.get("status_code"), "Quotation status")
        ensure_reference(session, QuotationType, values.get("type_code"), "Quotation type")
        ensure_reference(session, Account, values.get("manager_id"), "Account")

    def create(self, session: Session, payload: QuotationCreate) -> QuotationRead:
        values = normalize_values(payload.model_dump())
        ensure_key_free(session, Quotation, payload.quotation_no, "Quotation")
        self._check_references(session, values)

        quotation = Quotation(**values)
        quotation.stt = next_sequence(session, Quotation)
        quotation.updated_at = utcnow()
        session.add(quotation)
        commit(session)
        session.refresh(quotation)
        log_mutation("created", "quotation", quotation.quotation_no)
        return QuotationRead.model_validate(quotation)

    def update(self, session: Session, quotation_no: str, payload: QuotationUpdate) -> QuotationRead:
        quotation = get_or_404(session, Quotation, quotation_no, "Quotation")
        changes = collect_changes(payload, required=("customer_name", "quoted_on", "price_list", "total_value"))
        self._check_references(session, changes)

        for field_name, value in changes.items():
            setattr(quotation, field_name, value)
        quotation.updated_at = utcnow()
        commit(session)
        session.refresh(quotation)
        log_mutation("updated", "quotation", quotation_no)
        return QuotationRead.model_validate(quotation)

    def delete(self, session: Session, quotation_no: str) -> None:
        quotation = get_or_404(session, Quotation, quotation_no, "Quotation")
        session.delete(quotation)
        commit(session)
        log_mutation("deleted", "quotation", quotation_no)

    def stats(self, session: Session, now: datetime | None = None) -> QuotationStats:
        total = session.scalar(select(func.count()).select_from(Quotation)) or 0
        quote_count = func.count(Quotation.quotation_no)
        quote_value = func.coalesce(func.sum(Quotation.total_value), 0)

        by_status = session.execute(
            select(Quotation.status_code, QuotationStatus.name, quote_count, quote_value)
            .outerjoin(QuotationStatus, Quotation.status_code == QuotationStatus.code)
            .group_by(Quotation.status_code, QuotationStatus.name)
            .order_by(quote_count.desc())
        ).all()

        by_type = session.execute(
            select(Quotation.type_code, QuotationType.name, quote_count, quote_value)
            .outerjoin(QuotationType, Quotation.type_code == QuotationType.code)
            .group_by(Quotation.type_code, QuotationType.name)
            .order_by(quote_count.desc())
        ).all()

        year = extract("year", Quotation.quoted_on)
        month = extract("month", Quotation.quoted_on)
        monthly = session.execute(
            select(year, month, quote_count, quote_value)
            .where(Quotation.quoted_on >= monthly_window_start(now or utcnow()))
            .group_by(year, month)
            .order_by(year, month)
        ).all()

        top_managers = session.execute(
            select(Account.user_id, Account.full_name, quote_count, quote_value)
            .join(Quotation, Quotation.manager_id == Account.user_id)
            .group_by(Account.user_id, Account.full_name)
            .order_by(quote_value.desc())
            .limit(TOP_LIMIT)
        ).all()

        recent = self._rows(session, self._query().order_by(Quotation.quoted_on.desc()).limit(RECENT_LIMIT))

        return QuotationStats(
            total_count=total,
            by_status=[
                ValueBucket(code=code, name=name, count=count, total_value=value)
                for code, name, count, value in by_status
            ],
            by_type=[
                ValueBucket(code=code, name=name, count=count, total_value=value)
                for code, name, count, value in by_type
            ],
            monthly=[
                MonthlyBucket(year=int(y), month=int(m), count=count, total_value=value)
                for y, m, count, value in monthly
            ],
            top_managers=[
                ManagerBucket(user_id=user_id, full_name=full_name, count=count, total_value=value)
                for user_id, full_name, count, value in top_managers
            ],
            recent=recent,
        )


class CustomerInteractionService:
    sortable = {
        "stt": CustomerInteraction.stt,
        "code": CustomerInteraction.code,
        "customer_name": CustomerInteraction.customer_name,
        "occurred_at": CustomerInteraction.occurred_at,
        "contact_method": CustomerInteraction.contact_method,
        "updated_at": CustomerInteraction.updated_at,
    }

    @staticmethod
    def _query() -> Select[Any]:
        return select(CustomerInteraction).options(
            selectinload(CustomerInteraction.manager),
            selectinload(CustomerInteraction.interaction_type),
        )

    def _rows(self, session: Session, query: Select[Any]) -> list[CustomerInteractionRead]:
        return [CustomerInteractionRead.model_validate(row) for row in session.scalars(query).all()]

    def list(
        self,
        session: Session,
        *,
        search: str | None = None,
        customer: str | None = None,
        manager_id: str | None = None,
        type_code: str | None = None,
        contact_method: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        sort_by: str = "occurred_at",
        sort_dir: str = "desc",
    ) -> list[CustomerInteractionRead]:
        query = self._query()
        if search:
            query = query.where(
                ilike_any(
                    search,
                    CustomerInteraction.code,
                    CustomerInteraction.customer_name,
                    CustomerInteraction.content,
                )
            )
        if customer:
            query = query.where(CustomerInteraction.customer_name.ilike(f"%{customer.strip()}%"))
        if manager_id:
            query = query.where(CustomerInteraction.manager_id == manager_id)
        if type_code:
            query = query.where(CustomerInteraction.type_code == type_code)
        if contact_method:
            query = query.where(CustomerInteraction.contact_method == contact_method)
        query = apply_date_range(query, CustomerInteraction.occurred_at, start_date, end_date)
        query = apply_sort(query, self.sortable, sort_by, sort_dir)
        return self._rows(session, query)

    def list_by_customer(self, session: Session, customer_name: str) -> list[CustomerInteractionRead]:
        query = self._query().where(CustomerInteraction.customer_name == customer_name)
        return self._rows(session, query.order_by(CustomerInteraction.occurred_at.desc()))

    def list_by_manager(self, session: Session, manager_id: str) -> list[CustomerInteractionRead]:
        get_or_404(session, Account, manager_id, "Account")
        query = self._query().where(CustomerInteraction.manager_id == manager_id)
        return self._rows(session, query.order_by(CustomerInteraction.occurred_at.desc()))

    def list_by_type(self, session: Session, type_code: str) -> list[CustomerInteractionRead]:
        get_or_404(session, InteractionType, type_code, "Interaction type")
        query = self._query().where(CustomerInteraction.type_code == type_code)
        return self._rows(session, query.order_by(CustomerInteraction.occurred_at.desc()))

    def get(self, session: Session, code: str) -> CustomerInteractionRead:
        return CustomerInteractionRead.model_validate(
            get_or_404(session, CustomerInteraction, code, "Customer interaction")
        )

    def _check_references(self, session: Session, values: dict[str, Any]) -> None:
        ensure_reference(session, Account, values.get("manager_id"), "Account")
        ensure_reference(session, InteractionType, values.get("type_code"), "Interaction type")

    def create(self, session: Session, payload: CustomerInteractionCreate) -> CustomerInteractionRead:
        values = normalize_values(payload.model_dump())
        ensure_key_free(session, CustomerInteraction, payload.code, "Customer interaction")
        self._check_references(session, values)

        interaction = CustomerInteraction(**values)
        interaction.stt = next_sequence(session, CustomerInteraction)
        interaction.updated_at = utcnow()
        session.add(interaction)
        commit(session)
        session.refresh(interaction)
        log_mutation("created", "customer_interaction", interaction.code)
        return CustomerInteractionRead.model_validate(interaction)

    def update(self, session: Session, code: str, payload: CustomerInteractionUpdate) -> CustomerInteractionRead:
        interaction = get_or_404(session, CustomerInteraction, code, "Customer interaction")
        changes = collect_changes(payload, required=("customer_name", "occurred_at"))
        self._check_references(session, changes)

        for field_name, value in changes.items():
            setattr(interaction, field_name, value)
        interaction.updated_at = utcnow()
        commit(session)
        session.refresh(interaction)
        log_mutation("updated", "customer_interaction", code)
        return CustomerInteractionRead.model_validate(interaction)

    def delete(self, session: Session, code: str) -> None:
        interaction = get_or_404(session, CustomerInteraction, code, "Customer interaction")
        session.delete(interaction)
        commit(session)
        log_mutation("deleted", "customer_interaction", code)

    def stats(self, session: Session, now: datetime | None = None) -> CustomerInteractionStats:
        total = session.scalar(select(func.count()).select_from(CustomerInteraction)) or 0
        interaction_count = func.count(CustomerInteraction.code)

        by_type = session.execute(
            select(CustomerInteraction.type_code, InteractionType.name, interaction_count)
            .outerjoin(InteractionType, CustomerInteraction.type_code == InteractionType.code)
            .group_by(CustomerInteraction.type_code, InteractionType.name)
            .order_by(interaction_count.desc())
        ).all()

        by_method = session.execute(
            select(CustomerInteraction.contact_method, interaction_count)
            .group_by(CustomerInteraction.contact_method)
            .order_by(interaction_count.desc())
        ).all()

        by_manager = session.execute(
            select(Account.user_id, Account.full_name, interaction_count)
            .join(CustomerInteraction, CustomerInteraction.manager_id == Account.user_id)
            .group_by(Account.user_id, Account.full_name)
            .order_by(interaction_count.desc())
            .limit(TOP_LIMIT)
        ).all()

        year = extract("year", CustomerInteraction.occurred_at)
        month = extract("month", CustomerInteraction.occurred_at)
        monthly = session.execute(
            select(year, month, interaction_count)
            .where(CustomerInteraction.occurred_at >= monthly_window_start(now or utcnow()))
            .group_by(year, month)
            .order_by(year, month)
        ).all()

        recent = self._rows(
            session, self._query().order_by(CustomerInteraction.occurred_at.desc()).limit(RECENT_LIMIT)
        )

        return CustomerInteractionStats(
            total_count=total,
            by_type=[NamedCount(code=code, name=name, count=count) for code, name, count in by_type],
            by_method=[LabelCount(label=label, count=count) for label, count in by_method],
            by_manager=[
                ManagerBucket(user_id=user_id, full_name=full_name, count=count)
                for user_id, full_name, count in by_manager
            ],
            monthly=[MonthlyBucket(year=int(y), month=int(m), count=count) for y, m, count in monthly],
            recent=recent,
        )


customer_group_service = CustomerGroupService()
opportunity_source_service = OpportunitySourceService()
quotation_status_service = QuotationStatusService()
quotation_type_service = QuotationTypeService()
interaction_type_service = InteractionTypeService()
competitor_service = CompetitorService()
potential_customer_service = PotentialCustomerService()
quotation_service = QuotationService()
customer_interaction_service = CustomerInteractionService()
