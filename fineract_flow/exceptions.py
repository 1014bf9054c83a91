from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    # engine / process level
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    PROCESS_NOT_FOUND = "PROCESS_NOT_FOUND"
    PROCESS_DEFINITION_NOT_FOUND = "PROCESS_DEFINITION_NOT_FOUND"
    DEPLOYMENT_NOT_FOUND = "DEPLOYMENT_NOT_FOUND"
    INVALID_PROCESS_STATE = "INVALID_PROCESS_STATE"
    INVALID_TASK_STATE = "INVALID_TASK_STATE"
    WORKFLOW_ENGINE_ERROR = "WORKFLOW_ENGINE_ERROR"
    PROCESS_EXECUTION_ERROR = "PROCESS_EXECUTION_ERROR"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_STATE = "INVALID_STATE"

    # delegate level
    CLIENT_CREATION_FAILED = "CLIENT_CREATION_FAILED"
    CLIENT_ACTIVATION_FAILED = "CLIENT_ACTIVATION_FAILED"
    CLIENT_CLOSURE_FAILED = "CLIENT_CLOSURE_FAILED"
    CLIENT_REJECTION_FAILED = "CLIENT_REJECTION_FAILED"
    CLIENT_TRANSFER_FAILED = "CLIENT_TRANSFER_FAILED"
    CLIENT_TRANSFER_ACCEPTANCE_FAILED = "CLIENT_TRANSFER_ACCEPTANCE_FAILED"
    CLIENT_TRANSFER_REJECTION_FAILED = "CLIENT_TRANSFER_REJECTION_FAILED"
    STAFF_ASSIGNMENT_FAILED = "STAFF_ASSIGNMENT_FAILED"
    ACCOUNT_VERIFICATION_FAILED = "ACCOUNT_VERIFICATION_FAILED"
    CLOSURE_REASON_RETRIEVAL_FAILED = "CLOSURE_REASON_RETRIEVAL_FAILED"
    REJECTION_REASON_RETRIEVAL_FAILED = "REJECTION_REASON_RETRIEVAL_FAILED"
    LOAN_CREATION_FAILED = "LOAN_CREATION_FAILED"
    LOAN_APPROVAL_FAILED = "LOAN_APPROVAL_FAILED"
    LOAN_REJECTION_FAILED = "LOAN_REJECTION_FAILED"
    LOAN_DISBURSEMENT_FAILED = "LOAN_DISBURSEMENT_FAILED"
    LOAN_CANCELLATION_FAILED = "LOAN_CANCELLATION_FAILED"
    LOAN_STATUS_VERIFICATION_FAILED = "LOAN_STATUS_VERIFICATION_FAILED"


class FlowError(Exception):
    """Base class of every error raised out of a delegate."""

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation


class CoreBankingApiError(FlowError):
    """The core-banking API rejected a call or could not be reached.

    ``http_status`` is ``-1`` when no HTTP response was received.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        resource_id: Optional[str] = None,
        http_status: int = -1,
        error_body: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, operation)
        self.resource_id = resource_id
        self.http_status = http_status
        self.error_body = error_body
        self.__cause__ = cause

    @property
    def has_http_status(self) -> bool:
        return self.http_status > 0

    @property
    def is_bad_request(self) -> bool:
        return self.http_status == 400

    @property
    def is_unauthorized(self) -> bool:
        return self.http_status == 401

    @property
    def is_forbidden(self) -> bool:
        return self.http_status == 403

    @property
    def is_not_found(self) -> bool:
        return self.http_status == 404

    @property
    def is_conflict(self) -> bool:
        return self.http_status == 409

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.http_status < 500

    @property
    def is_server_error(self) -> bool:
        return self.http_status >= 500


class WorkflowError(FlowError):
    """A classified workflow failure.

    :param message: human readable message
    :param operation: the operation which was running when the error occurred
    :param error_code: one of :class:`ErrorCode`
    :param process_id: process instance the error refers to, if known
    :param task_id: task the error refers to, if known
    :param cause: the original error, kept as ``__cause__``
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.PROCESS_EXECUTION_ERROR,
        process_id: Optional[str] = None,
        task_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, operation)
        self.error_code = error_code
        self.process_id = process_id
        self.task_id = task_id
        self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.message!r}, operation={self.operation!r}, "
            f"error_code={self.error_code.value}, process_id={self.process_id!r}, "
            f"task_id={self.task_id!r})"
        )


class InvalidArgumentError(WorkflowError, ValueError):
    def __init__(self, message: str, operation: Optional[str] = None, cause=None) -> None:
        super().__init__(message, operation, ErrorCode.INVALID_ARGUMENT, cause=cause)


class InvalidStateError(WorkflowError):
    def __init__(self, message: str, operation: Optional[str] = None, cause=None) -> None:
        super().__init__(message, operation, ErrorCode.INVALID_STATE, cause=cause)


class IllegalStateError(RuntimeError):
    """Raised by lower layers when an object is in a state that forbids the call.

    Engine adapters raise it for engine-state failures (a suspended process
    instance, a task claimed by someone else) that carry no recognisable
    engine message. Run such calls through
    :meth:`~fineract_flow.error_handler.WorkflowErrorHandler.execute` and they
    come out as :class:`InvalidStateError`. Delegates never raise it; a loan
    in the wrong state is reported through the bag, not raised.
    """
