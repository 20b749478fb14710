from dxcrm.activity.models import UserActivityLog
from dxcrm.core.sequence import SequenceCounter
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
from dxcrm.identity.models import Account, Role
from dxcrm.warehouse.models import Product

__all__ = [
	"Account",
	"Competitor",
	"CustomerGroup",
	"CustomerInteraction",
	"InteractionType",
	"OpportunitySource",
	"PotentialCustomer",
	"Product",
	"Quotation",
	"QuotationStatus",
	"QuotationType",
	"Role",
	"SequenceCounter",
	"UserActivityLog",
]
