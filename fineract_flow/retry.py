"""Retry and escalation bookkeeping for loan disbursement.

The state lives in the process variables so that the workflow engine can
route on ``shouldRetry`` and ``escalationRequired``; :class:`RetryState`
is the typed view of those variables.
"""
import time
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fineract_flow import accessors
from fineract_flow.variable_bag import VariableBag

AUTOMATIC_RETRY_REASON = "Automatic retry after failure"


class DisbursementState(Enum):
    IDLE = "IDLE"
    ATTEMPTING = "ATTEMPTING"
    COMPLETED = "COMPLETED"
    PENDING_RETRY = "PENDING_RETRY"
    ESCALATED = "ESCALATED"


class RetryState(BaseModel):
    retry_attempt: int = Field(0, ge=0)
    max_retry_attempts: int = 3
    auto_retry_on_failure: bool = True
    state: DisbursementState = DisbursementState.IDLE
    should_retry: bool = False
    escalation_required: bool = False
    max_retries_exceeded: bool = False
    last_error: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @classmethod
    def from_bag(
        cls, bag: VariableBag, max_retry_attempts: int = 3, auto_retry_on_failure: bool = True
    ) -> "RetryState":
        try:
            state = DisbursementState(bag.get_variable("disbursementState"))
        except ValueError:
            state = DisbursementState.IDLE
        return cls(
            retry_attempt=max(0, accessors.get_int(bag, "retryAttempt", 0)),
            max_retry_attempts=accessors.get_int(bag, "maxRetryAttempts", max_retry_attempts),
            auto_retry_on_failure=accessors.get_bool(bag, "autoRetryOnFailure", auto_retry_on_failure),
            state=state,
            last_error=bag.get_variable("lastError"),
        )

    def start_attempt(self) -> None:
        self.state = DisbursementState.ATTEMPTING

    def record_success(self) -> None:
        self.state = DisbursementState.COMPLETED
        self.retry_attempt = 0
        self.should_retry = False
        self.escalation_required = False
        self.max_retries_exceeded = False
        self.last_error = None

    def record_failure(self, message: str) -> DisbursementState:
        """Count the failed attempt and decide between retry and escalation."""
        self.retry_attempt += 1
        self.last_error = message
        if self.auto_retry_on_failure and self.retry_attempt < self.max_retry_attempts:
            self.state = DisbursementState.PENDING_RETRY
            self.should_retry = True
            self.escalation_required = False
            self.max_retries_exceeded = False
        else:
            self.state = DisbursementState.ESCALATED
            self.should_retry = False
            self.escalation_required = True
            self.max_retries_exceeded = self.retry_attempt >= self.max_retry_attempts
        return self.state

    def write_success(self, bag: VariableBag) -> None:
        bag.set_variable("retryAttempt", 0)
        bag.set_variable("lastError", None)
        bag.set_variable("escalated", False)
        bag.set_variable("shouldRetry", False)
        bag.set_variable("escalationRequired", False)
        bag.set_variable("disbursementState", self.state.value)

    def write_failure(self, bag: VariableBag, error_type: str) -> None:
        bag.set_variable("lastError", self.last_error)
        bag.set_variable("lastErrorDate", date.today().isoformat())
        bag.set_variable("retryAttempt", self.retry_attempt)
        bag.set_variable("shouldRetry", self.should_retry)
        bag.set_variable("escalationRequired", self.escalation_required)
        if self.state is DisbursementState.PENDING_RETRY:
            bag.set_variable("retryReason", AUTOMATIC_RETRY_REASON)
        else:
            bag.set_variable("maxRetriesExceeded", self.max_retries_exceeded)
        bag.set_variable("failureReason", self.last_error)
        bag.set_variable("failureType", error_type)
        bag.set_variable("failureTimestamp", int(time.time() * 1000))
        bag.set_variable("disbursementState", self.state.value)
