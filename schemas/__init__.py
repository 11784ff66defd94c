from .billing_summary import (
     GenerateSummariesRequest,
     SummaryGenerationResult,
     BillingSummaryResponse,
     BillingSummaryListResponse,
     SummaryStatusChangeRequest,
     SummaryStatusChangeResponse,
)
from .tenant_invoice import (
     GenerateInvoiceRequest,
     TenantInvoiceResponse,
     TenantInvoiceItemResponse,
)
from .commission_rule import (
     CommissionRuleCreate,
     CommissionRuleResponse,
     CommissionRuleListResponse,
)

__all__ = [
     "GenerateSummariesRequest",
     "SummaryGenerationResult",
     "BillingSummaryResponse",
     "BillingSummaryListResponse",
     "SummaryStatusChangeRequest",
     "SummaryStatusChangeResponse",
     "GenerateInvoiceRequest",
     "TenantInvoiceResponse",
     "TenantInvoiceItemResponse",
     "CommissionRuleCreate",
     "CommissionRuleResponse",
     "CommissionRuleListResponse",
]
