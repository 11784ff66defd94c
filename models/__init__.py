from .base import Base
from .organization import Organization
from .collector import Collector
from .billing_item import BillingItem, BillingType, BillingItemStatus
from .billing_summary import BillingSummary, SummaryStatus
from .commission_rule import CommissionRule, CommissionType, RuleBillingType
from .billing_settings import BillingSettings, TaxRoundingMode
from .tenant_invoice import TenantInvoice, TenantInvoiceItem, TenantInvoiceStatus, InvoiceItemType

__all__ = [
     "Base",
     "Organization",
     "Collector",
     "BillingItem",
     "BillingType",
     "BillingItemStatus",
     "BillingSummary",
     "SummaryStatus",
     "CommissionRule",
     "CommissionType",
     "RuleBillingType",
     "BillingSettings",
     "TaxRoundingMode",
     "TenantInvoice",
     "TenantInvoiceItem",
     "TenantInvoiceStatus",
     "InvoiceItemType",
]
