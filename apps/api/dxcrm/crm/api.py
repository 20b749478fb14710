from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dxcrm.api.envelope import Deleted, Envelope, ListEnvelope, deleted, listed, ok
from dxcrm.core.database import get_db
from dxcrm.crm.schemas import (
    CompetitorCreate,
    CompetitorRead,
    CompetitorUpdate,
    CustomerGroupCreate,
    CustomerGroupDetail,
    CustomerGroupRead,
    CustomerGroupStats,
    CustomerGroupUpdate,
    CustomerInteractionCreate,
    CustomerInteractionRead,
    CustomerInteractionStats,
    CustomerInteractionUpdate,
    InteractionTypeCreate,
    InteractionTypeDetail,
    InteractionTypeRead,
    InteractionTypeStats,
    InteractionTypeUpdate,
    OpportunitySourceCreate,
    OpportunitySourceDetail,
    OpportunitySourceRead,
    OpportunitySourceStats,
    OpportunitySourceUpdate,
    PotentialCustomerCreate,
    PotentialCustomerRead,
    PotentialCustomerStats,
    PotentialCustomerUpdate,
    QuotationCreate,
    QuotationRead,
    QuotationStats,
    QuotationStatusCreate,
    QuotationStatusDetail,
    QuotationStatusRead,
    QuotationStatusStats,
    QuotationStatusUpdate,
    QuotationTypeCreate,
    QuotationTypeDetail,
    QuotationTypeRead,
    QuotationTypeStats,
    QuotationTypeUpdate,
    QuotationUpdate,
)
from dxcrm.crm.service import (
    competitor_service,
    customer_group_service,
    customer_interaction_service,
    interaction_type_service,
    opportunity_source_service,
    potential_customer_service,
    quotation_service,
    quotation_status_service,
    quotation_type_service,
)


competitors_router = APIRouter(prefix="/crm/competitors", tags=["crm.competitors"])
customer_groups_router = APIRouter(prefix="/crm/customer-groups", tags=["crm.customer_groups"])
opportunity_sources_router = APIRouter(prefix="/crm/opportunity-sources", tags=["crm.opportunity_sources"])
potential_customers_router = APIRouter(prefix="/crm/potential-customers", tags=["crm.potential_customers"])
quotation_statuses_router = APIRouter(prefix="/crm/quotation-statuses", tags=["crm.quotation_statuses"])
quotation_types_router = APIRouter(prefix="/crm/quotation-types", tags=["crm.quotation_types"])
quotations_router = APIRouter(prefix="/crm/quotations", tags=["crm.quotations"])
interaction_types_router = APIRouter(prefix="/crm/interaction-types", tags=["crm.interaction_types"])
customer_interactions_router = APIRouter(prefix="/crm/customer-interactions", tags=["crm.customer_interactions"])


# Competitors


@competitors_router.get("", response_model=ListEnvelope[CompetitorRead])
def list_competitors(
    search: str | None = Query(default=None),
    product: str | None = Query(default=None),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = competitor_service.list(db, search=search, product_code=product, sort_by=sort_by, sort_dir=sort_dir)
    return listed("Competitors retrieved", rows)


@competitors_router.get("/{code}", response_model=Envelope[CompetitorRead])
def get_competitor(code: str, db: Session = Depends(get_db)):
    return ok("Competitor retrieved", competitor_service.get(db, code))


@competitors_router.post("", response_model=Envelope[CompetitorRead], status_code=status.HTTP_201_CREATED)
def create_competitor(payload: CompetitorCreate, db: Session = Depends(get_db)):
    return ok("Competitor created", competitor_service.create(db, payload))


@competitors_router.put("/{code}", response_model=Envelope[CompetitorRead])
def update_competitor(code: str, payload: CompetitorUpdate, db: Session = Depends(get_db)):
    return ok("Competitor updated", competitor_service.update(db, code, payload))


@competitors_router.delete("/{code}", response_model=Deleted)
def delete_competitor(code: str, db: Session = Depends(get_db)):
    competitor_service.delete(db, code)
    return deleted("Competitor deleted")


# Customer groups


@customer_groups_router.get("", response_model=ListEnvelope[CustomerGroupRead])
def list_customer_groups(
    search: str | None = Query(default=None),
    updated_by: str | None = Query(default=None, alias="updatedBy"),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = customer_group_service.list(
        db,
        search=search,
        filters={"updated_by": updated_by},
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Customer groups retrieved", rows)


@customer_groups_router.get("/stats/overview", response_model=Envelope[CustomerGroupStats])
def customer_group_stats(db: Session = Depends(get_db)):
    return ok("Customer group statistics retrieved", customer_group_service.stats(db))


@customer_groups_router.get("/{code}", response_model=Envelope[CustomerGroupDetail])
def get_customer_group(code: str, db: Session = Depends(get_db)):
    return ok("Customer group retrieved", customer_group_service.get(db, code))


@customer_groups_router.post("", response_model=Envelope[CustomerGroupRead], status_code=status.HTTP_201_CREATED)
def create_customer_group(payload: CustomerGroupCreate, db: Session = Depends(get_db)):
    return ok("Customer group created", customer_group_service.create(db, payload))


@customer_groups_router.put("/{code}", response_model=Envelope[CustomerGroupRead])
def update_customer_group(code: str, payload: CustomerGroupUpdate, db: Session = Depends(get_db)):
    return ok("Customer group updated", customer_group_service.update(db, code, payload))


@customer_groups_router.delete("/{code}", response_model=Deleted)
def delete_customer_group(code: str, db: Session = Depends(get_db)):
    customer_group_service.delete(db, code)
    return deleted("Customer group deleted")


# Opportunity sources


@opportunity_sources_router.get("", response_model=ListEnvelope[OpportunitySourceRead])
def list_opportunity_sources(
    search: str | None = Query(default=None),
    source_status: str | None = Query(default=None, alias="status"),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = opportunity_source_service.list(
        db,
        search=search,
        filters={"status": source_status},
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Opportunity sources retrieved", rows)


@opportunity_sources_router.get("/stats/overview", response_model=Envelope[OpportunitySourceStats])
def opportunity_source_stats(db: Session = Depends(get_db)):
    return ok("Opportunity source statistics retrieved", opportunity_source_service.stats(db))


@opportunity_sources_router.get("/{code}", response_model=Envelope[OpportunitySourceDetail])
def get_opportunity_source(code: str, db: Session = Depends(get_db)):
    return ok("Opportunity source retrieved", opportunity_source_service.get(db, code))


@opportunity_sources_router.post(
    "", response_model=Envelope[OpportunitySourceRead], status_code=status.HTTP_201_CREATED
)
def create_opportunity_source(payload: OpportunitySourceCreate, db: Session = Depends(get_db)):
    return ok("Opportunity source created", opportunity_source_service.create(db, payload))


@opportunity_sources_router.put("/{code}", response_model=Envelope[OpportunitySourceRead])
def update_opportunity_source(code: str, payload: OpportunitySourceUpdate, db: Session = Depends(get_db)):
    return ok("Opportunity source updated", opportunity_source_service.update(db, code, payload))


@opportunity_sources_router.delete("/{code}", response_model=Deleted)
def delete_opportunity_source(code: str, db: Session = Depends(get_db)):
    opportunity_source_service.delete(db, code)
    return deleted("Opportunity source deleted")


# Potential customers


@potential_customers_router.get("", response_model=ListEnvelope[PotentialCustomerRead])
def list_potential_customers(
    search: str | None = Query(default=None),
    customer_status: str | None = Query(default=None, alias="status"),
    group: str | None = Query(default=None),
    source: str | None = Query(default=None),
    manager: str | None = Query(default=None),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = potential_customer_service.list(
        db,
        search=search,
        status=customer_status,
        group_code=group,
        source_code=source,
        manager_id=manager,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Potential customers retrieved", rows)


@potential_customers_router.get("/stats/overview", response_model=Envelope[PotentialCustomerStats])
def potential_customer_stats(db: Session = Depends(get_db)):
    return ok("Potential customer statistics retrieved", potential_customer_service.stats(db))


@potential_customers_router.get("/group/{group_code}", response_model=ListEnvelope[PotentialCustomerRead])
def list_potential_customers_by_group(group_code: str, db: Session = Depends(get_db)):
    return listed("Potential customers retrieved", potential_customer_service.list_by_group(db, group_code))


@potential_customers_router.get("/source/{source_code}", response_model=ListEnvelope[PotentialCustomerRead])
def list_potential_customers_by_source(source_code: str, db: Session = Depends(get_db)):
    return listed("Potential customers retrieved", potential_customer_service.list_by_source(db, source_code))


@potential_customers_router.get("/manager/{manager_id}", response_model=ListEnvelope[PotentialCustomerRead])
def list_potential_customers_by_manager(manager_id: str, db: Session = Depends(get_db)):
    return listed("Potential customers retrieved", potential_customer_service.list_by_manager(db, manager_id))


@potential_customers_router.get("/{code}", response_model=Envelope[PotentialCustomerRead])
def get_potential_customer(code: str, db: Session = Depends(get_db)):
    return ok("Potential customer retrieved", potential_customer_service.get(db, code))


@potential_customers_router.post(
    "", response_model=Envelope[PotentialCustomerRead], status_code=status.HTTP_201_CREATED
)
def create_potential_customer(payload: PotentialCustomerCreate, db: Session = Depends(get_db)):
    return ok("Potential customer created", potential_customer_service.create(db, payload))


@potential_customers_router.put("/{code}", response_model=Envelope[PotentialCustomerRead])
def update_potential_customer(code: str, payload: PotentialCustomerUpdate, db: Session = Depends(get_db)):
    return ok("Potential customer updated", potential_customer_service.update(db, code, payload))


@potential_customers_router.delete("/{code}", response_model=Deleted)
def delete_potential_customer(code: str, db: Session = Depends(get_db)):
    potential_customer_service.delete(db, code)
    return deleted("Potential customer deleted")


# Quotation statuses


@quotation_statuses_router.get("", response_model=ListEnvelope[QuotationStatusRead])
def list_quotation_statuses(
    search: str | None = Query(default=None),
    updated_by: str | None = Query(default=None, alias="updatedBy"),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = quotation_status_service.list(
        db,
        search=search,
        filters={"updated_by": updated_by},
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Quotation statuses retrieved", rows)


@quotation_statuses_router.get("/stats/overview", response_model=Envelope[QuotationStatusStats])
def quotation_status_stats(db: Session = Depends(get_db)):
    return ok("Quotation status statistics retrieved", quotation_status_service.stats(db))


@quotation_statuses_router.get("/{code}", response_model=Envelope[QuotationStatusDetail])
def get_quotation_status(code: str, db: Session = Depends(get_db)):
    return ok("Quotation status retrieved", quotation_status_service.get(db, code))


@quotation_statuses_router.post(
    "", response_model=Envelope[QuotationStatusRead], status_code=status.HTTP_201_CREATED
)
def create_quotation_status(payload: QuotationStatusCreate, db: Session = Depends(get_db)):
    return ok("Quotation status created", quotation_status_service.create(db, payload))


@quotation_statuses_router.put("/{code}", response_model=Envelope[QuotationStatusRead])
def update_quotation_status(code: str, payload: QuotationStatusUpdate, db: Session = Depends(get_db)):
    return ok("Quotation status updated", quotation_status_service.update(db, code, payload))


@quotation_statuses_router.delete("/{code}", response_model=Deleted)
def delete_quotation_status(code: str, db: Session = Depends(get_db)):
    quotation_status_service.delete(db, code)
    return deleted("Quotation status deleted")


# Quotation types


@quotation_types_router.get("", response_model=ListEnvelope[QuotationTypeRead])
def list_quotation_types(
    search: str | None = Query(default=None),
    updated_by: str | None = Query(default=None, alias="updatedBy"),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = quotation_type_service.list(
        db,
        search=search,
        filters={"updated_by": updated_by},
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Quotation types retrieved", rows)


@quotation_types_router.get("/stats/overview", response_model=Envelope[QuotationTypeStats])
def quotation_type_stats(db: Session = Depends(get_db)):
    return ok("Quotation type statistics retrieved", quotation_type_service.stats(db))


@quotation_types_router.get("/{code}", response_model=Envelope[QuotationTypeDetail])
def get_quotation_type(code: str, db: Session = Depends(get_db)):
    return ok("Quotation type retrieved", quotation_type_service.get(db, code))


@quotation_types_router.post("", response_model=Envelope[QuotationTypeRead], status_code=status.HTTP_201_CREATED)
def create_quotation_type(payload: QuotationTypeCreate, db: Session = Depends(get_db)):
    return ok("Quotation type created", quotation_type_service.create(db, payload))


@quotation_types_router.put("/{code}", response_model=Envelope[QuotationTypeRead])
def update_quotation_type(code: str, payload: QuotationTypeUpdate, db: Session = Depends(get_db)):
    return ok("Quotation type updated", quotation_type_service.update(db, code, payload))


@quotation_types_router.delete("/{code}", response_model=Deleted)
def delete_quotation_type(code: str, db: Session = Depends(get_db)):
    quotation_type_service.delete(db, code)
    return deleted("Quotation type deleted")


# Quotations


@quotations_router.get("", response_model=ListEnvelope[QuotationRead])
def list_quotations(
    search: str | None = Query(default=None),
    quotation_status: str | None = Query(default=None, alias="status"),
    quotation_type: str | None = Query(default=None, alias="type"),
    manager: str | None = Query(default=None),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    min_value: Decimal | None = Query(default=None, alias="minValue"),
    max_value: Decimal | None = Query(default=None, alias="maxValue"),
    sort_by: str = Query(default="quoted_on", alias="sortBy"),
    sort_dir: str = Query(default="desc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = quotation_service.list(
        db,
        search=search,
        status_code=quotation_status,
        type_code=quotation_type,
        manager_id=manager,
        start_date=start_date,
        end_date=end_date,
        min_value=min_value,
        max_value=max_value,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Quotations retrieved", rows)


@quotations_router.get("/stats/overview", response_model=Envelope[QuotationStats])
def quotation_stats(db: Session = Depends(get_db)):
    return ok("Quotation statistics retrieved", quotation_service.stats(db))


@quotations_router.get("/status/{status_code}", response_model=ListEnvelope[QuotationRead])
def list_quotations_by_status(status_code: str, db: Session = Depends(get_db)):
    return listed("Quotations retrieved", quotation_service.list_by_status(db, status_code))


@quotations_router.get("/type/{type_code}", response_model=ListEnvelope[QuotationRead])
def list_quotations_by_type(type_code: str, db: Session = Depends(get_db)):
    return listed("Quotations retrieved", quotation_service.list_by_type(db, type_code))


@quotations_router.get("/manager/{manager_id}", response_model=ListEnvelope[QuotationRead])
def list_quotations_by_manager(manager_id: str, db: Session = Depends(get_db)):
    return listed("Quotations retrieved", quotation_service.list_by_manager(db, manager_id))


@quotations_router.get("/{quotation_no}", response_model=Envelope[QuotationRead])
def get_quotation(quotation_no: str, db: Session = Depends(get_db)):
    return ok("Quotation retrieved", quotation_service.get(db, quotation_no))


@quotations_router.post("", response_model=Envelope[QuotationRead], status_code=status.HTTP_201_CREATED)
def create_quotation(payload: QuotationCreate, db: Session = Depends(get_db)):
    return ok("Quotation created", quotation_service.create(db, payload))


@quotations_router.put("/{quotation_no}", response_model=Envelope[QuotationRead])
def update_quotation(quotation_no: str, payload: QuotationUpdate, db: Session = Depends(get_db)):
    return ok("Quotation updated", quotation_service.update(db, quotation_no, payload))


@quotations_router.delete("/{quotation_no}", response_model=Deleted)
def delete_quotation(quotation_no: str, db: Session = Depends(get_db)):
    quotation_service.delete(db, quotation_no)
    return deleted("Quotation deleted")


# Interaction types


@interaction_types_router.get("", response_model=ListEnvelope[InteractionTypeRead])
def list_interaction_types(
    search: str | None = Query(default=None),
    type_status: str | None = Query(default=None, alias="status"),
    sort_by: str = Query(default="stt", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = interaction_type_service.list(
        db,
        search=search,
        filters={"status": type_status},
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Interaction types retrieved", rows)


@interaction_types_router.get("/stats/overview", response_model=Envelope[InteractionTypeStats])
def interaction_type_stats(db: Session = Depends(get_db)):
    return ok("Interaction type statistics retrieved", interaction_type_service.stats(db))


@interaction_types_router.get("/{code}", response_model=Envelope[InteractionTypeDetail])
def get_interaction_type(code: str, db: Session = Depends(get_db)):
    return ok("Interaction type retrieved", interaction_type_service.get(db, code))


@interaction_types_router.post(
    "", response_model=Envelope[InteractionTypeRead], status_code=status.HTTP_201_CREATED
)
def create_interaction_type(payload: InteractionTypeCreate, db: Session = Depends(get_db)):
    return ok("Interaction type created", interaction_type_service.create(db, payload))


@interaction_types_router.put("/{code}", response_model=Envelope[InteractionTypeRead])
def update_interaction_type(code: str, payload: InteractionTypeUpdate, db: Session = Depends(get_db)):
    return ok("Interaction type updated", interaction_type_service.update(db, code, payload))


@interaction_types_router.delete("/{code}", response_model=Deleted)
def delete_interaction_type(code: str, db: Session = Depends(get_db)):
    interaction_type_service.delete(db, code)
    return deleted("Interaction type deleted")


# Customer interactions


@customer_interactions_router.get("", response_model=ListEnvelope[CustomerInteractionRead])
def list_customer_interactions(
    search: str | None = Query(default=None),
    customer: str | None = Query(default=None),
    manager: str | None = Query(default=None),
    interaction_type: str | None = Query(default=None, alias="interactionType"),
    contact_method: str | None = Query(default=None, alias="contactMethod"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    sort_by: str = Query(default="occurred_at", alias="sortBy"),
    sort_dir: str = Query(default="desc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    rows = customer_interaction_service.list(
        db,
        search=search,
        customer=customer,
        manager_id=manager,
        type_code=interaction_type,
        contact_method=contact_method,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return listed("Customer interactions retrieved", rows)


@customer_interactions_router.get("/stats/overview", response_model=Envelope[CustomerInteractionStats])
def customer_interaction_stats(db: Session = Depends(get_db)):
    return ok("Customer interaction statistics retrieved", customer_interaction_service.stats(db))


@customer_interactions_router.get(
    "/customer/{customer_name}", response_model=ListEnvelope[CustomerInteractionRead]
)
def list_customer_interactions_by_customer(customer_name: str, db: Session = Depends(get_db)):
    rows = customer_interaction_service.list_by_customer(db, customer_name)
    return listed("Customer interactions retrieved", rows)


@customer_interactions_router.get("/manager/{manager_id}", response_model=ListEnvelope[CustomerInteractionRead])
def list_customer_interactions_by_manager(manager_id: str, db: Session = Depends(get_db)):
    rows = customer_interaction_service.list_by_manager(db, manager_id)
    return listed("Customer interactions retrieved", rows)


@customer_interactions_router.get("/type/{type_code}", response_model=ListEnvelope[CustomerInteractionRead])
def list_customer_interactions_by_type(type_code: str, db: Session = Depends(get_db)):
    rows = customer_interaction_service.list_by_type(db, type_code)
    return listed("Customer interactions retrieved", rows)


@customer_interactions_router.get("/{code}", response_model=Envelope[CustomerInteractionRead])
def get_customer_interaction(code: str, db: Session = Depends(get_db)):
    return ok("Customer interaction retrieved", customer_interaction_service.get(db, code))


@customer_interactions_router.post(
    "", response_model=Envelope[CustomerInteractionRead], status_code=status.HTTP_201_CREATED
)
def create_customer_interaction(payload: CustomerInteractionCreate, db: Session = Depends(get_db)):
    return ok("Customer interaction created", customer_interaction_service.create(db, payload))


@customer_interactions_router.put("/{code}", response_model=Envelope[CustomerInteractionRead])
def update_customer_interaction(code: str, payload: CustomerInteractionUpdate, db: Session = Depends(get_db)):
    return ok("Customer interaction updated", customer_interaction_service.update(db, code, payload))


@customer_interactions_router.delete("/{code}", response_model=Deleted)
def delete_customer_interaction(code: str, db: Session = Depends(get_db)):
    customer_interaction_service.delete(db, code)
    return deleted("Customer interaction deleted")


routers = [
    competitors_router,
    customer_groups_router,
    opportunity_sources_router,
    potential_customers_router,
    quotation_statuses_router,
    quotation_types_router,
    quotations_router,
    interaction_types_router,
    customer_interactions_router,
]
