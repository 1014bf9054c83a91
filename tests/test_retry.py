import pytest
from pydantic import ValidationError

from fineract_flow import DisbursementState, InMemoryVariableBag, RetryState
from fineract_flow.retry import AUTOMATIC_RETRY_REASON


def test_failures_retry_until_limit_then_escalate():
    state = RetryState(max_retry_attempts=3)

    assert state.record_failure("timeout") is DisbursementState.PENDING_RETRY
    assert (state.retry_attempt, state.should_retry, state.escalation_required) == (1, True, False)

    assert state.record_failure("timeout") is DisbursementState.PENDING_RETRY
    assert (state.retry_attempt, state.should_retry, state.escalation_required) == (2, True, False)

    assert state.record_failure("timeout") is DisbursementState.ESCALATED
    assert (state.retry_attempt, state.should_retry, state.escalation_required) == (3, False, True)
    assert state.max_retries_exceeded is True


def test_auto_retry_disabled_escalates_immediately():
    state = RetryState(auto_retry_on_failure=False)
    assert state.record_failure("boom") is DisbursementState.ESCALATED
    assert state.retry_attempt == 1
    assert state.escalation_required is True
    assert state.max_retries_exceeded is False


def test_success_resets_counters():
    state = RetryState(retry_attempt=2, last_error="boom", state=DisbursementState.PENDING_RETRY)
    state.start_attempt()
    assert state.state is DisbursementState.ATTEMPTING
    state.record_success()
    assert state.state is DisbursementState.COMPLETED
    assert state.retry_attempt == 0
    assert state.last_error is None


def test_negative_attempt_is_rejected():
    with pytest.raises(ValidationError):
        RetryState(retry_attempt=-1)


def test_from_bag_reads_engine_variables():
    bag = InMemoryVariableBag(
        {"retryAttempt": "2", "maxRetryAttempts": 5, "autoRetryOnFailure": "false", "disbursementState": "PENDING_RETRY"}
    )
    state = RetryState.from_bag(bag)
    assert state.retry_attempt == 2
    assert state.max_retry_attempts == 5
    assert state.auto_retry_on_failure is False
    assert state.state is DisbursementState.PENDING_RETRY


def test_from_bag_defaults_and_unknown_state():
    state = RetryState.from_bag(InMemoryVariableBag({"disbursementState": "SOMETHING"}), max_retry_attempts=4)
    assert state.retry_attempt == 0
    assert state.max_retry_attempts == 4
    assert state.auto_retry_on_failure is True
    assert state.state is DisbursementState.IDLE


def test_write_failure_for_retry():
    bag = InMemoryVariableBag()
    state = RetryState()
    state.record_failure("Failed to disburse loan: HTTP 503")
    state.write_failure(bag, "Fineract API Error")

    assert bag["retryAttempt"] == 1
    assert bag["shouldRetry"] is True
    assert bag["escalationRequired"] is False
    assert bag["retryReason"] == AUTOMATIC_RETRY_REASON
    assert "maxRetriesExceeded" not in bag
    assert bag["lastError"] == "Failed to disburse loan: HTTP 503"
    assert bag["failureReason"] == "Failed to disburse loan: HTTP 503"
    assert bag["failureType"] == "Fineract API Error"
    assert isinstance(bag["failureTimestamp"], int)
    assert bag["disbursementState"] == "PENDING_RETRY"


def test_write_failure_for_escalation():
    bag = InMemoryVariableBag()
    state = RetryState(retry_attempt=2)
    state.record_failure("boom")
    state.write_failure(bag, "System Error")

    assert bag["shouldRetry"] is False
    assert bag["escalationRequired"] is True
    assert bag["maxRetriesExceeded"] is True
    assert "retryReason" not in bag
    assert bag["disbursementState"] == "ESCALATED"


def test_write_success():
    bag = InMemoryVariableBag({"retryAttempt": 2, "lastError": "boom", "shouldRetry": True})
    state = RetryState.from_bag(bag)
    state.record_success()
    state.write_success(bag)

    assert bag["retryAttempt"] == 0
    assert bag["lastError"] is None
    assert bag["escalated"] is False
    assert bag["shouldRetry"] is False
    assert bag["escalationRequired"] is False
    assert bag["disbursementState"] == "COMPLETED"
