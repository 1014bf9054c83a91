from decimal import Decimal

import pytest

from fineract_flow import ApprovalLevel, LoanStatusVerifier, RiskLevel, VerificationThresholds
from fineract_flow.core_banking import LoanSnapshot


def loan(**data):
    return LoanSnapshot.model_validate(data)


@pytest.fixture
def verifier():
    return LoanStatusVerifier()


def test_large_approved_loan_is_ready_but_flagged(verifier):
    result = verifier.evaluate(loan(principal=600000, status="APPROVED", active=True))

    assert result.ready_for_disbursement is True
    assert result.risk_level is RiskLevel.HIGH
    assert result.compliance_check_required is True
    assert result.approval_level is ApprovalLevel.MANAGER
    assert result.escalation_required is True
    assert result.status_message == "Loan is approved and ready for disbursement"
    assert result.issues == []


def test_disbursed_loan_reports_single_issue(verifier):
    result = verifier.evaluate(loan(principal=5000, status="DISBURSED", active=True))

    assert result.ready_for_disbursement is False
    assert result.disbursed is True
    assert result.issues == ["Loan has already been disbursed"]
    assert result.blocking_issues == ["Loan has already been disbursed"]
    assert result.status_message == "Loan is already disbursed"


def test_rejected_loan_is_reported_as_not_approved(verifier):
    result = verifier.evaluate(loan(principal=5000, status="REJECTED"))

    assert result.rejected is True
    assert result.status_message == "Loan is not approved. Current status: REJECTED"
    assert result.issues == ["Loan is not in approved status"]


def test_approved_but_inactive_loan(verifier):
    result = verifier.evaluate(loan(principal=5000, status="APPROVED", active=False))

    assert result.ready_for_disbursement is False
    assert result.status_message == "Loan is not ready for disbursement. Status: APPROVED"
    assert result.issues == ["Loan status is not suitable for disbursement"]


def test_fineract_status_object_is_normalised(verifier):
    snapshot = loan(
        id=77,
        accountNo="000000077",
        principal="10000",
        status={"id": 200, "code": "loanStatusType.approved", "value": "Approved", "active": True},
        currency={"code": "USD"},
        clientOfficeId=1,
    )
    assert snapshot.status == "APPROVED"
    assert snapshot.active is True
    assert snapshot.currency_code == "USD"
    assert snapshot.office_id == 1

    result = verifier.evaluate(snapshot)
    assert result.ready_for_disbursement is True
    assert result.account_no == "000000077"
    assert result.currency_code == "USD"


def test_active_fineract_loan_counts_as_disbursed():
    snapshot = loan(status={"code": "loanStatusType.active", "value": "Active", "active": True})
    assert snapshot.status == "DISBURSED"


def test_unknown_status_code_uses_value():
    snapshot = loan(status={"code": "loanStatusType.something", "value": "Transfer in progress"})
    assert snapshot.status == "TRANSFER_IN_PROGRESS"


def test_issues_on_a_ready_loan_are_not_blocking(verifier):
    result = verifier.evaluate(
        loan(
            principal=10000,
            status="APPROVED",
            active=True,
            termFrequency=0,
            interestRatePerPeriod=-1,
            summary={"totalOutstanding": 10000, "totalOverdue": 250},
        ),
        requested_amount=Decimal("12000"),
    )

    assert result.ready_for_disbursement is True
    assert result.issues == [
        "Requested disbursement amount (12000) exceeds approved principal (10000)",
        "Loan has overdue payments",
        "Loan term frequency is invalid",
        "Loan interest rate is negative",
    ]
    assert result.blocking_issues == []
    assert result.outstanding_balance == Decimal("10000")


def test_issues_on_a_loan_that_is_not_ready_are_blocking(verifier):
    result = verifier.evaluate(
        loan(principal=10000, status="PENDING_APPROVAL", summary={"totalOverdue": 1}),
    )

    assert result.pending_approval is True
    assert result.issues == ["Loan has overdue payments", "Loan is not in approved status"]
    assert result.blocking_issues == result.issues


def test_empty_charge_list_is_reported_as_pending_charges(verifier):
    # Any charge list, even an empty one, is treated as outstanding charges.
    result = verifier.evaluate(loan(principal=1000, status="APPROVED", active=True, charges=[]))
    assert result.issues == ["Loan has pending charges that need to be resolved"]


def test_missing_charge_list_reports_nothing(verifier):
    result = verifier.evaluate(loan(principal=1000, status="APPROVED", active=True))
    assert result.issues == []


@pytest.mark.parametrize(
    "principal, expected",
    [(None, RiskLevel.LOW), (100000, RiskLevel.LOW), (100001, RiskLevel.MEDIUM), (500001, RiskLevel.HIGH)],
)
def test_risk_levels(verifier, principal, expected):
    assert verifier.risk_level(None if principal is None else Decimal(principal)) is expected


def test_approval_level_follows_requested_amount(verifier):
    result = verifier.evaluate(
        loan(principal=2000000, status="APPROVED", active=True), requested_amount=Decimal("400000")
    )
    assert result.approval_level is ApprovalLevel.OFFICER
    assert result.compliance_check_required is True  # high risk principal

    result = verifier.evaluate(loan(principal=50000, status="APPROVED", active=True), requested_amount=Decimal("1500000"))
    assert result.approval_level is ApprovalLevel.SENIOR_MANAGER
    assert result.compliance_check_required is True
    assert result.escalation_required is True


def test_custom_thresholds():
    verifier = LoanStatusVerifier(VerificationThresholds(high_risk_principal=Decimal("1000")))
    result = verifier.evaluate(loan(principal=1500, status="APPROVED", active=True))
    assert result.risk_level is RiskLevel.HIGH


def test_evaluation_is_repeatable(verifier):
    snapshot = loan(principal=600000, status="APPROVED", active=True, charges=[{"id": 1}])
    first = verifier.evaluate(snapshot, Decimal("700000"))
    second = verifier.evaluate(snapshot, Decimal("700000"))
    assert first == second
