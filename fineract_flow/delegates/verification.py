from datetime import date

from fineract_flow import accessors
from fineract_flow.exceptions import ErrorCode
from fineract_flow.task import TaskDelegate
from fineract_flow.variable_bag import VariableBag
from fineract_flow.verification import LoanStatusVerifier


class LoanStatusVerificationDelegate(TaskDelegate):
    operation = "loan status verification"
    variable_prefix = "loanStatusVerification"
    failure_verb = "verify loan status"
    failure_code = ErrorCode.LOAN_STATUS_VERIFICATION_FAILED

    def __init__(self, api, defaults=None, error_handler=None, verifier: LoanStatusVerifier = None) -> None:
        super().__init__(api, defaults, error_handler)
        self.verifier = verifier or LoanStatusVerifier()

    def process(self, bag: VariableBag) -> None:
        loan_id = accessors.get_long(bag, "loanId", None)
        if loan_id is None:
            raise ValueError("Loan ID is required for status verification")
        requested_amount = accessors.get_decimal(bag, "transactionAmount", None)
        associations = accessors.get_string(bag, "loanAssociations", None)

        loan = self.api.get_loan(loan_id, associations=associations)

        result = self.verifier.evaluate(loan, requested_amount)
        outputs = {
            "loanStatus": result.loan_status,
            "loanStatusVerified": True,
            "loanReadyForDisbursement": result.ready_for_disbursement,
            "loanStatusMessage": result.status_message,
            "verificationDate": date.today().isoformat(),
            "verificationPerformedBy": bag.get_variable("disbursementOfficer"),
            "loanAccountNo": result.account_no,
            "loanPrincipal": result.principal,
            "loanOutstandingBalance": result.outstanding_balance,
            "loanProductId": result.product_id,
            "loanClientId": result.client_id,
            "loanOfficeId": result.office_id,
            "loanCurrencyCode": result.currency_code,
            "loanTermFrequency": result.term_frequency,
            "loanInterestRate": result.interest_rate,
            "verificationIssues": list(result.issues),
            "hasVerificationIssues": bool(result.issues),
            "issueCount": len(result.issues),
            "complianceCheckRequired": result.compliance_check_required,
            "riskLevel": result.risk_level.value,
            "approvalLevel": result.approval_level.value,
        }
        if not result.ready_for_disbursement:
            outputs["loanStatusError"] = result.status_message
            outputs["blockingIssues"] = list(result.blocking_issues)
            outputs["escalationRequired"] = result.escalation_required

        self.write_success(bag, result.status_message, **outputs)

    def write_failure_details(self, bag, error, error_type):
        message = str(error)
        bag.set_variable("loanStatusVerified", False)
        bag.set_variable("loanStatusError", message)
        bag.set_variable("loanStatusMessage", f"Failed to verify loan status: {message}")
        bag.set_variable("loanReadyForDisbursement", False)
        bag.set_variable("verificationFailed", True)
        bag.set_variable("verificationFailureDate", date.today().isoformat())
        bag.set_variable("verificationFailureReason", message)
