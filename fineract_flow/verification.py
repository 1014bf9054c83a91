"""Rules deciding whether a loan may be disbursed.

:meth:`LoanStatusVerifier.evaluate` is a pure function of the loan snapshot
and the requested amount; evaluating the same input twice gives the same
result.
"""
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from fineract_flow.core_banking.models import LoanSnapshot


class RiskLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ApprovalLevel(Enum):
    OFFICER = "OFFICER"
    MANAGER = "MANAGER"
    SENIOR_MANAGER = "SENIOR_MANAGER"


class VerificationThresholds(BaseModel):
    high_risk_principal: Decimal = Decimal("500000")
    medium_risk_principal: Decimal = Decimal("100000")
    compliance_amount: Decimal = Decimal("1000000")
    senior_manager_amount: Decimal = Decimal("1000000")
    manager_amount: Decimal = Decimal("500000")


class LoanVerificationResult(BaseModel):
    loan_status: str
    account_no: Optional[str] = None
    principal: Optional[Decimal] = None
    outstanding_balance: Optional[Decimal] = None
    product_id: Optional[int] = None
    client_id: Optional[int] = None
    office_id: Optional[int] = None
    currency_code: Optional[str] = None
    term_frequency: Optional[int] = None
    interest_rate: Optional[Decimal] = None

    approved: bool = False
    disbursed: bool = False
    active: bool = False
    pending_approval: bool = False
    rejected: bool = False
    withdrawn: bool = False
    ready_for_disbursement: bool = False
    status_message: str = ""

    issues: list[str] = Field(default_factory=list)
    blocking_issues: list[str] = Field(default_factory=list)

    risk_level: RiskLevel = RiskLevel.LOW
    compliance_check_required: bool = False
    approval_level: ApprovalLevel = ApprovalLevel.OFFICER
    escalation_required: bool = False

    def add_issue(self, issue: str) -> None:
        self.issues.append(issue)
        if not self.ready_for_disbursement:
            self.blocking_issues.append(issue)


class LoanStatusVerifier:
    def __init__(self, thresholds: VerificationThresholds = None) -> None:
        super().__init__()
        self.thresholds = thresholds or VerificationThresholds()

    def evaluate(self, loan: LoanSnapshot, requested_amount: Optional[Decimal] = None) -> LoanVerificationResult:
        status = loan.status.upper()
        result = LoanVerificationResult(
            loan_status=status,
            account_no=loan.account_no,
            principal=loan.principal,
            outstanding_balance=loan.summary.total_outstanding if loan.summary else None,
            product_id=loan.loan_product_id,
            client_id=loan.client_id,
            office_id=loan.office_id,
            currency_code=loan.currency_code,
            term_frequency=loan.term_frequency,
            interest_rate=loan.interest_rate_per_period,
            approved=status == "APPROVED",
            disbursed=status == "DISBURSED",
            active=loan.active,
            pending_approval=status == "PENDING_APPROVAL",
            rejected=status == "REJECTED",
            withdrawn=status == "WITHDRAWN",
        )
        result.ready_for_disbursement = (
            result.approved
            and not result.disbursed
            and result.active
            and not result.rejected
            and not result.withdrawn
        )

        self._additional_checks(loan, requested_amount, result)
        self._status_check(result)
        return result

    def _status_check(self, result: LoanVerificationResult) -> None:
        # branch order matters: a rejected loan is reported as "not approved"
        if result.ready_for_disbursement:
            result.status_message = "Loan is approved and ready for disbursement"
        elif result.disbursed:
            result.status_message = "Loan is already disbursed"
            result.add_issue("Loan has already been disbursed")
        elif not result.approved:
            result.status_message = f"Loan is not approved. Current status: {result.loan_status}"
            result.add_issue("Loan is not in approved status")
        elif result.rejected:
            result.status_message = "Loan has been rejected"
            result.add_issue("Loan has been rejected and cannot be disbursed")
        elif result.withdrawn:
            result.status_message = "Loan has been withdrawn"
            result.add_issue("Loan has been withdrawn and cannot be disbursed")
        else:
            result.status_message = f"Loan is not ready for disbursement. Status: {result.loan_status}"
            result.add_issue("Loan status is not suitable for disbursement")

    def _additional_checks(
        self, loan: LoanSnapshot, requested_amount: Optional[Decimal], result: LoanVerificationResult
    ) -> None:
        if requested_amount is not None and loan.principal is not None and requested_amount > loan.principal:
            result.add_issue(
                f"Requested disbursement amount ({requested_amount}) exceeds approved principal ({loan.principal})"
            )

        # An empty charge list counts as pending charges as well.
        if loan.charges is not None:
            result.add_issue("Loan has pending charges that need to be resolved")

        if loan.summary and loan.summary.total_overdue is not None and loan.summary.total_overdue > 0:
            result.add_issue("Loan has overdue payments")

        if loan.term_frequency is not None and loan.term_frequency <= 0:
            result.add_issue("Loan term frequency is invalid")

        if loan.interest_rate_per_period is not None and loan.interest_rate_per_period < 0:
            result.add_issue("Loan interest rate is negative")

        result.risk_level = self.risk_level(loan.principal)
        result.compliance_check_required = result.risk_level is RiskLevel.HIGH or (
            requested_amount is not None and requested_amount > self.thresholds.compliance_amount
        )
        amount = requested_amount if requested_amount is not None else loan.principal
        result.approval_level = self.approval_level(amount)
        result.escalation_required = (
            result.risk_level is RiskLevel.HIGH or result.approval_level is ApprovalLevel.SENIOR_MANAGER
        )

    def risk_level(self, principal: Optional[Decimal]) -> RiskLevel:
        if principal is None:
            return RiskLevel.LOW
        if principal > self.thresholds.high_risk_principal:
            return RiskLevel.HIGH
        if principal > self.thresholds.medium_risk_principal:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def approval_level(self, amount: Optional[Decimal]) -> ApprovalLevel:
        if amount is None:
            return ApprovalLevel.OFFICER
        if amount > self.thresholds.senior_manager_amount:
            return ApprovalLevel.SENIOR_MANAGER
        if amount > self.thresholds.manager_amount:
            return ApprovalLevel.MANAGER
        return ApprovalLevel.OFFICER
