from .tenancy import TenantContext
from .audit import list_audit_logs, record_audit_log
from .customers import CUSTOMER_DELETE_ACTION, CustomersService
from .management import (
    AgencyNotFoundError,
    DuplicateUserError,
    ManagementError,
    ManagementService,
    PermissionDeniedError,
    UserNotFoundError,
)
from .offers import CteNotFoundError, OffersService, compute_comparison
from .extraction import (
    BillExtractor,
    CanvasExtractor,
    CteExtractor,
    ExtractionError,
    TelephonyBillExtractor,
    bill_extractor,
    canvas_extractor,
    cte_extractor,
    telephony_bill_extractor,
)
from .reconciliation import (
    ReconciliationResult,
    ReconciliationService,
    ReconciliationStatus,
    reconciliation_service,
)
from .telephony import CanvasNotFoundError, OperatorNotFoundError, TelephonyService

__all__ = [
    "AgencyNotFoundError",
    "BillExtractor",
    "CUSTOMER_DELETE_ACTION",
    "CanvasExtractor",
    "CanvasNotFoundError",
    "CteExtractor",
    "CteNotFoundError",
    "CustomersService",
    "DuplicateUserError",
    "ExtractionError",
    "ManagementError",
    "ManagementService",
    "OffersService",
    "OperatorNotFoundError",
    "PermissionDeniedError",
    "ReconciliationResult",
    "ReconciliationService",
    "ReconciliationStatus",
    "TelephonyBillExtractor",
    "TelephonyService",
    "TenantContext",
    "UserNotFoundError",
    "bill_extractor",
    "canvas_extractor",
    "compute_comparison",
    "cte_extractor",
    "list_audit_logs",
    "reconciliation_service",
    "record_audit_log",
    "telephony_bill_extractor",
]
