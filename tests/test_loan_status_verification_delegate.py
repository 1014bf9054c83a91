from datetime import date
from decimal import Decimal

import pytest

from fineract_flow import CoreBankingApiError, InvalidArgumentError
from fineract_flow.core_banking import LoanSnapshot
from fineract_flow.delegates import LoanStatusVerificationDelegate


def fineract_loan(code="loanStatusType.approved", active=True, **extra):
    data = {
        "id": 77,
        "accountNo": "000000077",
        "clientId": 42,
        "clientOfficeId": 1,
        "loanProductId": 3,
        "principal": 10000,
        "termFrequency": 12,
        "interestRatePerPeriod": 1.5,
        "currency": {"code": "USD"},
        "status": {"code": code, "value": code.rsplit(".", 1)[-1], "active": active},
        "summary": {"totalOutstanding": 10000, "totalOverdue": 0},
    }
    data.update(extra)
    return LoanSnapshot.model_validate(data)


def test_ready_loan(api, make_bag):
    api.get_loan.return_value = fineract_loan()
    bag = make_bag(loanId="77", disbursementOfficer="officer-1")

    LoanStatusVerificationDelegate(api).execute(bag)

    api.get_loan.assert_called_once_with(77, associations=None)
    assert bag["loanStatusVerificationSuccess"] is True
    assert bag["loanStatusVerified"] is True
    assert bag["loanStatus"] == "APPROVED"
    assert bag["loanReadyForDisbursement"] is True
    assert bag["loanStatusMessage"] == "Loan is approved and ready for disbursement"
    assert bag["verificationDate"] == date.today().isoformat()
    assert bag["verificationPerformedBy"] == "officer-1"
    assert bag["loanAccountNo"] == "000000077"
    assert bag["loanPrincipal"] == Decimal("10000")
    assert bag["loanOutstandingBalance"] == Decimal("10000")
    assert bag["loanProductId"] == 3
    assert bag["loanClientId"] == 42
    assert bag["loanOfficeId"] == 1
    assert bag["loanCurrencyCode"] == "USD"
    assert bag["loanTermFrequency"] == 12
    assert bag["verificationIssues"] == []
    assert bag["hasVerificationIssues"] is False
    assert bag["issueCount"] == 0
    assert bag["riskLevel"] == "LOW"
    assert bag["approvalLevel"] == "OFFICER"
    assert bag["complianceCheckRequired"] is False
    assert "loanStatusError" not in bag
    assert "blockingIssues" not in bag


def test_already_disbursed_loan(api, make_bag):
    api.get_loan.return_value = fineract_loan("loanStatusType.active")
    bag = make_bag(loanId=77)

    LoanStatusVerificationDelegate(api).execute(bag)

    assert bag["loanStatusVerified"] is True
    assert bag["loanReadyForDisbursement"] is False
    assert bag["loanStatus"] == "DISBURSED"
    assert bag["loanStatusError"] == "Loan is already disbursed"
    assert bag["blockingIssues"] == ["Loan has already been disbursed"]
    assert bag["verificationIssues"] == ["Loan has already been disbursed"]
    assert bag["escalationRequired"] is False


def test_requested_amount_and_associations_are_forwarded(api, make_bag):
    api.get_loan.return_value = fineract_loan(principal=600000)
    bag = make_bag(loanId=77, transactionAmount="700,000", loanAssociations="charges")

    LoanStatusVerificationDelegate(api).execute(bag)

    api.get_loan.assert_called_once_with(77, associations="charges")
    assert bag["loanReadyForDisbursement"] is True
    assert bag["verificationIssues"] == [
        "Requested disbursement amount (700000) exceeds approved principal (600000)"
    ]
    assert bag["riskLevel"] == "HIGH"
    assert bag["approvalLevel"] == "MANAGER"
    assert bag["complianceCheckRequired"] is True


def test_missing_loan_id(api, make_bag):
    bag = make_bag()

    with pytest.raises(InvalidArgumentError):
        LoanStatusVerificationDelegate(api).execute(bag)

    api.get_loan.assert_not_called()
    assert bag["loanStatusVerified"] is False
    assert bag["loanStatusError"] == "Loan ID is required for status verification"
    assert bag["loanReadyForDisbursement"] is False
    assert bag["verificationFailed"] is True


def test_api_failure(api, make_bag):
    api.get_loan.side_effect = CoreBankingApiError("Failed to retrieve loan for resource 77: HTTP 404", http_status=404)
    bag = make_bag(loanId=77)

    with pytest.raises(CoreBankingApiError):
        LoanStatusVerificationDelegate(api).execute(bag)

    assert bag["loanStatusVerificationSuccess"] is False
    assert bag["loanStatusMessage"] == "Failed to verify loan status: Failed to retrieve loan for resource 77: HTTP 404"
    assert bag["verificationFailureReason"] == "Failed to retrieve loan for resource 77: HTTP 404"
    assert bag["errorType"] == "Fineract API Error"


def test_non_finite_requested_amount_is_ignored(api, make_bag):
    api.get_loan.return_value = fineract_loan()
    bag = make_bag(loanId=77, transactionAmount="NaN")

    LoanStatusVerificationDelegate(api).execute(bag)

    assert bag["loanStatusVerificationSuccess"] is True
    assert bag["loanReadyForDisbursement"] is True
    assert bag["verificationIssues"] == []
    assert bag["riskLevel"] == "LOW"


def test_non_finite_loan_id_counts_as_missing(api, make_bag):
    bag = make_bag(loanId="Infinity")

    with pytest.raises(InvalidArgumentError):
        LoanStatusVerificationDelegate(api).execute(bag)

    api.get_loan.assert_not_called()
    assert bag["loanStatusError"] == "Loan ID is required for status verification"
