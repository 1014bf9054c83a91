"""Turns arbitrary failures into the workflow error taxonomy.

Message patterns are tried in registration order and the first match wins.
Errors which already belong to the taxonomy pass through untouched; anything
no pattern recognises is classified by its type.
"""
import logging as logging_library
from collections.abc import Callable
from typing import Any, NamedTuple, Optional

from fineract_flow.exceptions import (
    CoreBankingApiError,
    ErrorCode,
    FlowError,
    IllegalStateError,
    InvalidArgumentError,
    InvalidStateError,
    WorkflowError,
)

logging = logging_library.getLogger(__name__)


class ErrorPattern(NamedTuple):
    name: str
    matcher: Callable[[str], bool]
    factory: Callable[[str, str], WorkflowError]


def _process_error(code: ErrorCode, prefix: str):
    def factory(operation: str, param: str) -> WorkflowError:
        return WorkflowError(f"{prefix}: {param}", operation, code, process_id=param)

    return factory


def _task_error(code: ErrorCode, prefix: str):
    def factory(operation: str, param: str) -> WorkflowError:
        return WorkflowError(f"{prefix}: {param}", operation, code, task_id=param)

    return factory


DEFAULT_PATTERNS = (
    ErrorPattern(
        "task_not_found",
        lambda msg: "Cannot find task with id" in msg,
        _task_error(ErrorCode.TASK_NOT_FOUND, "Task not found"),
    ),
    ErrorPattern(
        "process_instance_not_found",
        lambda msg: "Cannot find process instance with id" in msg,
        _process_error(ErrorCode.PROCESS_NOT_FOUND, "Process instance not found"),
    ),
    ErrorPattern(
        "execution_not_found",
        lambda msg: "execution" in msg and "doesn't exist" in msg,
        _process_error(ErrorCode.PROCESS_NOT_FOUND, "Process execution not found"),
    ),
    ErrorPattern(
        "process_definition_not_found",
        lambda msg: "Cannot find process definition with id" in msg,
        _process_error(ErrorCode.PROCESS_DEFINITION_NOT_FOUND, "Process definition not found"),
    ),
    ErrorPattern(
        "deployment_not_found",
        lambda msg: "Cannot find deployment with id" in msg,
        _process_error(ErrorCode.DEPLOYMENT_NOT_FOUND, "Deployment not found"),
    ),
    ErrorPattern(
        "process_already_ended",
        lambda msg: "Process instance is already ended" in msg,
        _process_error(ErrorCode.INVALID_PROCESS_STATE, "Process instance is already ended"),
    ),
    ErrorPattern(
        "task_already_completed",
        lambda msg: "Task is already completed" in msg,
        _task_error(ErrorCode.INVALID_TASK_STATE, "Task is already completed"),
    ),
    ErrorPattern(
        "historic_process_not_found",
        lambda msg: "Historic process instance not found" in msg or "doesn't exist" in msg,
        _process_error(ErrorCode.PROCESS_NOT_FOUND, "Historic process instance not found"),
    ),
    ErrorPattern(
        "historic_variable_not_found",
        lambda msg: "Historic variable instance not found" in msg
        or ("variable" in msg and "not found" in msg),
        _process_error(ErrorCode.PROCESS_NOT_FOUND, "Historic variable instance not found"),
    ),
)


class WorkflowErrorHandler:
    def __init__(self, patterns=DEFAULT_PATTERNS) -> None:
        super().__init__()
        self._patterns: list[ErrorPattern] = list(patterns)

    @property
    def patterns(self) -> tuple:
        return tuple(self._patterns)

    def register(
        self,
        name: str,
        matcher: Callable[[str], bool],
        factory: Callable[[str, str], WorkflowError],
    ) -> None:
        """Append a pattern. Existing patterns keep their precedence."""
        self._patterns.append(ErrorPattern(name, matcher, factory))

    def match(self, message: str, operation: str, param: str) -> Optional[WorkflowError]:
        for pattern in self._patterns:
            if pattern.matcher(message):
                logging.debug("Error message matched pattern '%s'", pattern.name)
                return pattern.factory(operation, param)
        return None

    def classify(
        self,
        error: BaseException,
        operation: str,
        param: Optional[str] = None,
        default_code: ErrorCode = ErrorCode.PROCESS_EXECUTION_ERROR,
    ) -> FlowError:
        """Map ``error`` onto the taxonomy.

        :param error: the error which was caught
        :param operation: human readable name of the failed operation
        :param param: identifier the operation was working on (process id, task id, ...)
        :param default_code: code used when nothing more specific is known
        :return: the error which should be raised in place of ``error``
        """
        if isinstance(error, (CoreBankingApiError, WorkflowError)):
            return error

        message = str(error)
        if message:
            classified = self.match(message, operation, param)
            if classified is not None:
                classified.__cause__ = error
                return classified

        if isinstance(error, (ValueError, TypeError)):
            return InvalidArgumentError(f"Invalid arguments for {operation}: {param}", operation, cause=error)
        if isinstance(error, IllegalStateError):
            return InvalidStateError(f"Invalid state during {operation}: {param}", operation, cause=error)

        logging.error("Unexpected error during %s: %s", operation, message, exc_info=error)
        return WorkflowError(
            f"Runtime error during {operation}: {param}",
            operation,
            default_code,
            cause=error,
        )

    def execute(self, operation: str, param: Optional[str], func: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except Exception as ex:
            classified = self.classify(ex, operation, param)
            if classified is ex:
                raise
            raise classified
