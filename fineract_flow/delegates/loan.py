import time

from fineract_flow import accessors
from fineract_flow.exceptions import ErrorCode
from fineract_flow.task import TaskDelegate
from fineract_flow.variable_bag import VariableBag

LOAN_APPLICATION_DATE_FORMAT = "dd MMMM yyyy"


class LoanCreationDelegate(TaskDelegate):
    """Submits a loan application.

    Amounts may arrive comma grouped from forms (``"10,000.00"``); dates may
    arrive as ``dd MMM yyyy``, ``dd MMMM yyyy`` or ISO strings and are sent in
    the request ``dateFormat``.
    """

    operation = "loan creation"
    variable_prefix = "loanCreation"
    failure_verb = "create loan"
    failure_code = ErrorCode.LOAN_CREATION_FAILED

    REQUIRED_LONGS = (
        "clientId",
        "productId",
        "loanTermFrequency",
        "loanTermFrequencyType",
        "numberOfRepayments",
        "repaymentEvery",
        "repaymentFrequencyType",
        "amortizationType",
        "interestType",
        "interestCalculationPeriodType",
    )
    OPTIONAL_LONGS = ("loanPurposeId", "interestRateFrequencyType", "groupId", "fundId", "loanOfficerId")

    def process(self, bag: VariableBag) -> None:
        payload = {key: accessors.get_long(bag, key) for key in self.REQUIRED_LONGS}
        payload["principal"] = accessors.get_decimal(bag, "principal")
        payload["interestRatePerPeriod"] = accessors.get_decimal(bag, "interestRatePerPeriod")
        payload["transactionProcessingStrategyCode"] = accessors.get_string(
            bag, "transactionProcessingStrategyCode"
        )
        payload["loanType"] = accessors.get_string(bag, "loanType")
        for key in self.OPTIONAL_LONGS:
            value = accessors.get_long(bag, key, None)
            if value is not None:
                payload[key] = value
        external_id = accessors.get_string(bag, "externalId", None)
        if external_id:
            payload["externalId"] = external_id

        date_format = accessors.get_string(bag, "dateFormat", LOAN_APPLICATION_DATE_FORMAT)
        payload["expectedDisbursementDate"] = accessors.format_date(
            accessors.get_date(bag, "expectedDisbursementDate"), date_format
        )
        payload["submittedOnDate"] = accessors.format_date(accessors.get_date(bag, "submittedOnDate"), date_format)
        payload["dateFormat"] = date_format
        payload["locale"] = self.locale(bag)

        result = self.api.create_loan(payload)
        loan_id = result.loan_id or result.resource_id

        self.write_success(
            bag,
            "Loan created successfully",
            loanId=loan_id,
            loanAccountNo=loan_id,
            loanStatus="PENDING_APPROVAL",
        )


class LoanApprovalDelegate(TaskDelegate):
    operation = "loan approval"
    variable_prefix = "loanApproval"
    failure_verb = "approve loan"
    failure_code = ErrorCode.LOAN_APPROVAL_FAILED

    def process(self, bag: VariableBag) -> None:
        loan_id = accessors.get_long(bag, "loanId")
        date_format = self.date_format(bag)
        approved_on = self.date_variable(bag, "approvedOnDate", date_format)
        payload = {"approvedOnDate": approved_on, "dateFormat": date_format, "locale": self.locale(bag)}
        approved_amount = accessors.get_decimal(bag, "approvedAmount", None)
        if approved_amount is not None:
            payload["approvedLoanAmount"] = approved_amount
        note = accessors.get_string(bag, "note", None)
        if note:
            payload["note"] = note

        self.api.loan_state_transition(loan_id, "approve", payload)

        self.write_success(
            bag,
            "Loan approved successfully",
            loanStatus="APPROVED",
            approvedOnDate=approved_on,
            approvedBy=accessors.get_string(bag, "approvedByUsername", None),
        )


class LoanRejectionDelegate(TaskDelegate):
    operation = "loan rejection"
    variable_prefix = "loanRejection"
    failure_verb = "reject loan"
    failure_code = ErrorCode.LOAN_REJECTION_FAILED

    def process(self, bag: VariableBag) -> None:
        loan_id = accessors.get_long(bag, "loanId")
        date_format = self.date_format(bag)
        rejected_on = self.date_variable(bag, "rejectedOnDate", date_format)
        payload = {"rejectedOnDate": rejected_on, "dateFormat": date_format, "locale": self.locale(bag)}
        note = accessors.get_string(bag, "note", None)
        if note:
            payload["note"] = note

        self.api.loan_state_transition(loan_id, "reject", payload)

        self.write_success(
            bag,
            "Loan rejected successfully",
            loanStatus="REJECTED",
            rejectedOnDate=rejected_on,
            rejectedBy=accessors.get_string(bag, "rejectedByUsername", None),
        )


class LoanCancellationDelegate(TaskDelegate):
    """Withdraws a loan application by deleting it."""

    operation = "loan cancellation"
    variable_prefix = "loanCancellation"
    failure_verb = "cancel loan"
    failure_code = ErrorCode.LOAN_CANCELLATION_FAILED

    def process(self, bag: VariableBag) -> None:
        loan_id = accessors.get_long(bag, "loanId")

        result = self.api.delete_loan(loan_id)

        self.write_success(
            bag,
            "Loan cancelled successfully",
            cancellationSuccessful=True,
            cancelledLoanId=loan_id,
            cancelledResourceId=result.resource_id,
            cancelledClientId=result.client_id,
            cancelledOfficeId=result.office_id,
            cancellationTimestamp=int(time.time() * 1000),
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("cancellationSuccessful", False)
        bag.set_variable("cancellationError", str(error))
