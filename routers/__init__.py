from .billing_summaries import router as billing_summaries_router
from .tenant_invoices import router as tenant_invoices_router
from .commission_rules import router as commission_rules_router

__all__ = [
     "billing_summaries_router",
     "tenant_invoices_router",
     "commission_rules_router",
]
