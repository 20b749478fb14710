from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AccountSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str


class ManagerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str
    email: str | None


class CodeName(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str


class ProductSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_code: str
    name: str


class NamedCount(BaseModel):
    code: str | None
    name: str | None
    count: int


class LabelCount(BaseModel):
    label: str | None
    count: int


class ValueBucket(BaseModel):
    code: str | None
    name: str | None
    count: int
    total_value: Decimal


class MonthlyBucket(BaseModel):
    year: int
    month: int
    count: int
    total_value: Decimal | None = None


class ManagerBucket(BaseModel):
    user_id: str | None
    full_name: str | None
    count: int
    total_value: Decimal | None = None


# Competitors


class CompetitorCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    product_code: str | None = None
    pricing_strategy: str | None = None
    competition_level: str | None = None
    notes: str | None = None


class CompetitorUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    product_code: str | None = None
    pricing_strategy: str | None = None
    competition_level: str | None = None
    notes: str | None = None


class CompetitorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    name: str
    product_code: str | None
    pricing_strategy: str | None
    competition_level: str | None
    notes: str | None
    updated_at: datetime | None
    product: ProductSummary | None = None


# Reference entities


class CustomerGroupCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    updated_by: str | None = None


class CustomerGroupUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    updated_by: str | None = None


class CustomerGroupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    name: str
    description: str | None
    updated_by: str | None
    updated_at: datetime | None
    updater: AccountSummary | None = None
    potential_customer_count: int = 0


class OpportunitySourceCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    status: str | None = None
    updated_by: str | None = None


class OpportunitySourceUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    status: str | None = None
    updated_by: str | None = None


class OpportunitySourceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    name: str
    status: str | None
    updated_by: str | None
    updated_at: datetime | None
    updater: AccountSummary | None = None
    potential_customer_count: int = 0


class QuotationStatusCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    updated_by: str | None = None


class QuotationStatusUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    updated_by: str | None = None


class QuotationStatusRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    name: str
    description: str | None
    updated_by: str | None
    updated_at: datetime | None
    updater: AccountSummary | None = None
    quotation_count: int = 0


class QuotationTypeCreate(QuotationStatusCreate):
    pass


class QuotationTypeUpdate(QuotationStatusUpdate):
    pass


class QuotationTypeRead(QuotationStatusRead):
    pass


class InteractionTypeCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    status: str | None = None
    updated_by: str | None = None


class InteractionTypeUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    status: str | None = None
    updated_by: str | None = None


class InteractionTypeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    name: str
    status: str | None
    updated_by: str | None
    updated_at: datetime | None
    updater: AccountSummary | None = None
    interaction_count: int = 0


# Potential customers


class PotentialCustomerCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    manager_id: str | None = None
    next_action: str | None = None
    next_contact_date: datetime | None = None
    contact_count: int = Field(default=0, ge=0)
    purpose: str | None = None
    group_code: str | None = None
    source_code: str | None = None
    status: str = "Mới"
    added_at: datetime | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    province: str | None = None
    notes: str | None = None


class PotentialCustomerUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    manager_id: str | None = None
    next_action: str | None = None
    next_contact_date: datetime | None = None
    contact_count: int | None = Field(default=None, ge=0)
    purpose: str | None = None
    group_code: str | None = None
    source_code: str | None = None
    status: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    province: str | None = None
    notes: str | None = None


class PotentialCustomerBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    status: str
    email: str | None
    phone: str | None


class PotentialCustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    name: str
    manager_id: str | None
    next_action: str | None
    next_contact_date: datetime | None
    contact_count: int
    purpose: str | None
    group_code: str | None
    source_code: str | None
    status: str
    added_at: datetime
    email: str | None
    phone: str | None
    website: str | None
    address: str | None
    province: str | None
    notes: str | None
    updated_at: datetime | None
    manager: ManagerSummary | None = None
    customer_group: CodeName | None = None
    opportunity_source: CodeName | None = None


class CustomerGroupDetail(CustomerGroupRead):
    potential_customers: list[PotentialCustomerBrief] = Field(default_factory=list)


class OpportunitySourceDetail(OpportunitySourceRead):
    potential_customers: list[PotentialCustomerBrief] = Field(default_factory=list)


# Quotations


class QuotationCreate(BaseModel):
    quotation_no: str = Field(min_length=1, max_length=50)
    customer_name: str = Field(min_length=1, max_length=255)
    quoted_on: datetime
    price_list: str = Field(min_length=1, max_length=255)
    status_code: str | None = None
    type_code: str | None = None
    title: str | None = None
    phone: str | None = None
    contact_person: str | None = None
    manager_id: str | None = None
    total_value: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None


class QuotationUpdate(BaseModel):
    customer_name: str | None = Field(default=None, max_length=255)
    quoted_on: datetime | None = None
    price_list: str | None = Field(default=None, max_length=255)
    status_code: str | None = None
    type_code: str | None = None
    title: str | None = None
    phone: str | None = None
    contact_person: str | None = None
    manager_id: str | None = None
    total_value: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None


class QuotationBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quotation_no: str
    title: str | None
    customer_name: str
    quoted_on: datetime
    total_value: Decimal


class QuotationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    quotation_no: str
    status_code: str | None
    title: str | None
    customer_name: str
    type_code: str | None
    quoted_on: datetime
    price_list: str
    phone: str | None
    contact_person: str | None
    manager_id: str | None
    total_value: Decimal
    notes: str | None
    updated_at: datetime | None
    status: CodeName | None = None
    type: CodeName | None = None
    manager: ManagerSummary | None = None


class QuotationStatusDetail(QuotationStatusRead):
    quotations: list[QuotationBrief] = Field(default_factory=list)


class QuotationTypeDetail(QuotationTypeRead):
    quotations: list[QuotationBrief] = Field(default_factory=list)


# Customer interactions


class CustomerInteractionCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    customer_name: str = Field(min_length=1, max_length=255)
    occurred_at: datetime
    manager_id: str | None = None
    type_code: str | None = None
    contact_method: str | None = None
    content: str | None = None


class CustomerInteractionUpdate(BaseModel):
    customer_name: str | None = Field(default=None, max_length=255)
    occurred_at: datetime | None = None
    manager_id: str | None = None
    type_code: str | None = None
    contact_method: str | None = None
    content: str | None = None


class CustomerInteractionBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    customer_name: str
    occurred_at: datetime
    contact_method: str | None


class CustomerInteractionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stt: int | None
    code: str
    customer_name: str
    manager_id: str | None
    type_code: str | None
    contact_method: str | None
    occurred_at: datetime
    content: str | None
    updated_at: datetime | None
    manager: ManagerSummary | None = None
    interaction_type: CodeName | None = None


class InteractionTypeDetail(InteractionTypeRead):
    interactions: list[CustomerInteractionBrief] = Field(default_factory=list)


# Stats


class CustomerGroupStats(BaseModel):
    total_count: int
    top_groups: list[NamedCount]
    recent_groups: list[CustomerGroupRead]


class OpportunitySourceStats(BaseModel):
    total_count: int
    active_count: int
    inactive_count: int
    top_sources: list[NamedCount]
    recent_sources: list[OpportunitySourceRead]


class QuotationStatusStats(BaseModel):
    total_count: int
    quotations_by_status: list[NamedCount]
    recent_statuses: list[QuotationStatusRead]


class QuotationTypeStats(BaseModel):
    total_count: int
    quotations_by_type: list[NamedCount]
    recent_types: list[QuotationTypeRead]


class InteractionTypeStats(BaseModel):
    total_count: int
    active_count: int
    inactive_count: int
    interactions_by_type: list[NamedCount]
    recent_updates: list[InteractionTypeRead]


class PotentialCustomerStats(BaseModel):
    total_count: int
    by_status: list[LabelCount]
    by_group: list[NamedCount]
    by_source: list[NamedCount]
    recent: list[PotentialCustomerRead]


class QuotationStats(BaseModel):
    total_count: int
    by_status: list[ValueBucket]
    by_type: list[ValueBucket]
    monthly: list[MonthlyBucket]
    top_managers: list[ManagerBucket]
    recent: list[QuotationRead]


class CustomerInteractionStats(BaseModel):
    total_count: int
    by_type: list[NamedCount]
    by_method: list[LabelCount]
    by_manager: list[ManagerBucket]
    monthly: list[MonthlyBucket]
    recent: list[CustomerInteractionRead]
