from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Fineract status codes mapped to the names the verification rules work with.
# An "active" Fineract loan is one that has been disbursed.
LOAN_STATUS_CODES = {
    "loanStatusType.submitted.and.pending.approval": "PENDING_APPROVAL",
    "loanStatusType.approved": "APPROVED",
    "loanStatusType.active": "DISBURSED",
    "loanStatusType.withdrawn.by.client": "WITHDRAWN",
    "loanStatusType.rejected": "REJECTED",
    "loanStatusType.closed.obligations.met": "CLOSED",
    "loanStatusType.closed.written.off": "CLOSED",
    "loanStatusType.closed.reschedule.outstanding.amount": "CLOSED",
    "loanStatusType.overpaid": "OVERPAID",
}


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CommandResult(ApiModel):
    """Response of a Fineract command (create, activate, approve, ...)."""

    resource_id: Optional[int] = Field(None, alias="resourceId")
    client_id: Optional[int] = Field(None, alias="clientId")
    office_id: Optional[int] = Field(None, alias="officeId")
    loan_id: Optional[int] = Field(None, alias="loanId")
    group_id: Optional[int] = Field(None, alias="groupId")
    resource_external_id: Optional[str] = Field(None, alias="resourceExternalId")
    changes: dict[str, Any] = Field(default_factory=dict)


class LoanSummary(ApiModel):
    total_outstanding: Optional[Decimal] = Field(None, alias="totalOutstanding")
    total_overdue: Optional[Decimal] = Field(None, alias="totalOverdue")


class LoanSnapshot(ApiModel):
    """A loan as returned by ``GET loans/{id}``.

    ``status`` is normalised into a plain name such as ``APPROVED``; the
    Fineract ``status.active`` flag lands in ``active``.
    """

    id: Optional[int] = None
    account_no: Optional[str] = Field(None, alias="accountNo")
    status: str = "UNKNOWN"
    active: bool = False
    principal: Optional[Decimal] = None
    loan_product_id: Optional[int] = Field(None, alias="loanProductId")
    client_id: Optional[int] = Field(None, alias="clientId")
    office_id: Optional[int] = Field(None, alias="clientOfficeId")
    currency_code: Optional[str] = Field(None, alias="currencyCode")
    term_frequency: Optional[int] = Field(None, alias="termFrequency")
    interest_rate_per_period: Optional[Decimal] = Field(None, alias="interestRatePerPeriod")
    summary: Optional[LoanSummary] = None
    charges: Optional[list[dict[str, Any]]] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_status(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        status = data.get("status")
        if isinstance(status, dict):
            data["active"] = bool(status.get("active", False))
            code = status.get("code")
            if code in LOAN_STATUS_CODES:
                data["status"] = LOAN_STATUS_CODES[code]
            else:
                value = status.get("value") or "UNKNOWN"
                data["status"] = "_".join(value.upper().split())
        elif isinstance(status, str):
            data["status"] = status.upper()
        currency = data.get("currency")
        if isinstance(currency, dict) and "currencyCode" not in data:
            data["currencyCode"] = currency.get("code")
        return data


class CodeValue(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    position: Optional[int] = None
    is_active: bool = Field(True, alias="isActive")

    def as_variable(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "position": self.position,
        }


class LoanAccount(ApiModel):
    id: int
    account_no: Optional[str] = Field(None, alias="accountNo")
    status: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return bool(self.status.get("active", False))


class ClientAccounts(ApiModel):
    loan_accounts: list[LoanAccount] = Field(default_factory=list, alias="loanAccounts")
    savings_accounts: list[dict[str, Any]] = Field(default_factory=list, alias="savingsAccounts")

    @property
    def active_loans(self) -> list[LoanAccount]:
        return [loan for loan in self.loan_accounts if loan.is_active]
