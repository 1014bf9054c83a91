import logging as logging_library
from datetime import date
from decimal import Decimal
from typing import Optional

from fineract_flow import accessors
from fineract_flow.exceptions import ErrorCode
from fineract_flow.retry import DisbursementState, RetryState
from fineract_flow.task import TaskDelegate
from fineract_flow.variable_bag import VariableBag

logging = logging_library.getLogger(__name__)


def disbursement_amount(bag: VariableBag) -> Optional[Decimal]:
    """The approved amount wins over the originally requested one."""
    if bag.get_variable("approvedAmount") is not None:
        return accessors.get_decimal(bag, "approvedAmount")
    return accessors.get_decimal(bag, "transactionAmount", None)


class LoanDisbursementDelegate(TaskDelegate):
    """Disburses an approved loan.

    A failed attempt never retries in place. It updates the retry state in the
    bag (see :class:`~fineract_flow.retry.RetryState`) and raises; the process
    definition routes on ``shouldRetry`` / ``escalationRequired``.
    """

    operation = "loan disbursement"
    variable_prefix = "loanDisbursement"
    failure_verb = "disburse loan"
    failure_code = ErrorCode.LOAN_DISBURSEMENT_FAILED

    def retry_state(self, bag: VariableBag) -> RetryState:
        return RetryState.from_bag(bag, self.defaults.max_retry_attempts, self.defaults.auto_retry_on_failure)

    def process(self, bag: VariableBag) -> None:
        retry = self.retry_state(bag)
        retry.start_attempt()
        logging.info(
            "Disbursement attempt %s of %s for process instance: %s",
            retry.retry_attempt,
            retry.max_retry_attempts,
            bag.process_instance_id,
        )

        loan_id = accessors.get_long(bag, "loanId", None)
        if loan_id is None:
            raise ValueError("Loan ID is required for disbursement")
        disbursement_date = accessors.get_date(bag, "actualDisbursementDate", None)
        if disbursement_date is None:
            raise ValueError("Disbursement date is required")

        date_format = self.date_format(bag)
        payload = {
            "actualDisbursementDate": accessors.format_date(disbursement_date, date_format),
            "dateFormat": date_format,
            "locale": self.locale(bag),
        }
        amount = disbursement_amount(bag)
        if amount is not None:
            payload["transactionAmount"] = amount
        note = accessors.get_string(bag, "note", None)
        if note:
            payload["note"] = note
        if bag.get_variable("disbursementData") is not None:
            payload["disbursementData"] = bag.get_variable("disbursementData")
        logging.info(
            "Disbursing loan %s with amount %s on %s", loan_id, amount, payload["actualDisbursementDate"]
        )

        result = self.api.loan_state_transition(loan_id, "disburse", payload)

        retry.record_success()
        self.write_success(
            bag,
            "Loan disbursed successfully",
            loanStatus="DISBURSED",
            disbursementTransactionId=result.resource_id,
            disbursementCompletedDate=date.today().isoformat(),
            disbursementCompletedBy=bag.get_variable("disbursementOfficer"),
            actualDisbursementAmount=amount,
        )
        retry.write_success(bag)

    def write_failure_details(self, bag, error, error_type):
        retry = self.retry_state(bag)
        state = retry.record_failure(str(error))
        retry.write_failure(bag, error_type)
        if state is DisbursementState.PENDING_RETRY:
            self.statistic_increment("retries", "scheduled")
            logging.info(
                "Scheduling automatic retry %s of %s for process instance: %s",
                retry.retry_attempt,
                retry.max_retry_attempts,
                bag.process_instance_id,
            )
        else:
            self.statistic_increment("retries", "escalated")
            logging.warning(
                "Escalating disbursement for process instance %s after %s attempt(s)",
                bag.process_instance_id,
                retry.retry_attempt,
            )
