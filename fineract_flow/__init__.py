from .config import DelegateDefaults, FineractSettings, Settings
from .error_handler import ErrorPattern, WorkflowErrorHandler
from .exceptions import (
    CoreBankingApiError,
    ErrorCode,
    FlowError,
    IllegalStateError,
    InvalidArgumentError,
    InvalidStateError,
    WorkflowError,
)
from .retry import DisbursementState, RetryState
from .task import API_ERROR_TYPE, SYSTEM_ERROR_TYPE, TaskDelegate
from .variable_bag import InMemoryVariableBag, VariableBag
from .verification import (
    ApprovalLevel,
    LoanStatusVerifier,
    LoanVerificationResult,
    RiskLevel,
    VerificationThresholds,
)

__all__ = [
    "API_ERROR_TYPE",
    "SYSTEM_ERROR_TYPE",
    "ApprovalLevel",
    "CoreBankingApiError",
    "DelegateDefaults",
    "DisbursementState",
    "ErrorCode",
    "ErrorPattern",
    "FineractSettings",
    "FlowError",
    "IllegalStateError",
    "InMemoryVariableBag",
    "InvalidArgumentError",
    "InvalidStateError",
    "LoanStatusVerifier",
    "LoanVerificationResult",
    "RetryState",
    "RiskLevel",
    "Settings",
    "TaskDelegate",
    "VariableBag",
    "VerificationThresholds",
    "WorkflowError",
    "WorkflowErrorHandler",
]
