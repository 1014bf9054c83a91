from .api import CLIENT_CLOSURE_REASON, CLIENT_REJECT_REASON, CoreBankingApi
from .client import FineractClient
from .errors import create_exception, extract_error_body, handle_error, log_detailed_error
from .models import ClientAccounts, CodeValue, CommandResult, LoanAccount, LoanSnapshot, LoanSummary

__all__ = [
    "CLIENT_CLOSURE_REASON",
    "CLIENT_REJECT_REASON",
    "ClientAccounts",
    "CodeValue",
    "CommandResult",
    "CoreBankingApi",
    "FineractClient",
    "LoanAccount",
    "LoanSnapshot",
    "LoanSummary",
    "create_exception",
    "extract_error_body",
    "handle_error",
    "log_detailed_error",
]
