import logging as logging_library
from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from fineract_flow import accessors
from fineract_flow.config import DelegateDefaults
from fineract_flow.core_banking.api import CoreBankingApi
from fineract_flow.error_handler import WorkflowErrorHandler
from fineract_flow.exceptions import CoreBankingApiError, ErrorCode
from fineract_flow.variable_bag import VariableBag

logging = logging_library.getLogger(__name__)

API_ERROR_TYPE = "Fineract API Error"
SYSTEM_ERROR_TYPE = "System Error"


class TaskDelegate(ABC):
    """A single service step of a workflow.

    The engine calls :meth:`execute` with the variable bag of the running
    process instance. Subclasses implement :meth:`process`, which has to

    * read its inputs through :mod:`fineract_flow.accessors`,
    * make exactly one call on :attr:`api`,
    * publish the outcome with :meth:`write_success`.

    Failures are written into the bag by :meth:`write_failure` and then
    raised through the :class:`WorkflowErrorHandler`.
    """

    #: human readable operation name, used in error messages
    operation: str = "process execution"
    #: prefix of the ``<prefix>Success`` / ``<prefix>Message`` variables
    variable_prefix: str = "task"
    #: completes "Failed to ..." in the failure message
    failure_verb: str = "execute task"
    #: code of errors which nothing more specific is known about
    failure_code: ErrorCode = ErrorCode.PROCESS_EXECUTION_ERROR

    def __init__(
        self,
        api: CoreBankingApi,
        defaults: DelegateDefaults = None,
        error_handler: WorkflowErrorHandler = None,
    ) -> None:
        super().__init__()
        self.api = api
        self.defaults = defaults or DelegateDefaults()
        self.error_handler = error_handler or WorkflowErrorHandler()
        self.statistics = {}

    @abstractmethod
    def process(self, bag: VariableBag) -> None: ...

    def execute(self, bag: VariableBag) -> None:
        logging.info("Executing %s for process instance: %s", self.name, bag.process_instance_id)
        self.statistic_increment("executions", "started")
        try:
            self.process(bag)
        except Exception as ex:
            self.statistic_increment("executions", "failed")
            error_type = API_ERROR_TYPE if isinstance(ex, CoreBankingApiError) else SYSTEM_ERROR_TYPE
            logging.error(
                "%s failed for process instance %s (%s): %s",
                self.operation,
                bag.process_instance_id,
                error_type,
                ex,
            )
            self.write_failure(bag, ex, error_type)
            classified = self.error_handler.classify(
                ex, self.operation, bag.process_instance_id, default_code=self.failure_code
            )
            if classified is ex:
                raise
            raise classified
        self.statistic_increment("executions", "processed")

    def write_success(self, bag: VariableBag, message: str, **outputs: Any) -> None:
        bag.set_variable(f"{self.variable_prefix}Success", True)
        bag.set_variable(f"{self.variable_prefix}Message", message)
        bag.set_variables(outputs)
        logging.info("%s: %s (process instance %s)", self.name, message, bag.process_instance_id)

    def write_failure(self, bag: VariableBag, error: BaseException, error_type: str) -> None:
        message = str(error)
        bag.set_variable(f"{self.variable_prefix}Success", False)
        bag.set_variable(f"{self.variable_prefix}Error", message)
        bag.set_variable(f"{self.variable_prefix}Message", f"Failed to {self.failure_verb}: {message}")
        bag.set_variable("errorMessage", message)
        bag.set_variable("errorType", error_type)
        self.write_failure_details(bag, error, error_type)

    def write_failure_details(self, bag: VariableBag, error: BaseException, error_type: str) -> None:
        """Hook for delegate specific failure flags."""

    def date_format(self, bag: VariableBag) -> str:
        return accessors.get_string(bag, "dateFormat", self.defaults.date_format)

    def locale(self, bag: VariableBag) -> str:
        return accessors.get_string(bag, "locale", self.defaults.locale)

    def date_variable(self, bag: VariableBag, key: str, date_format: str, required: bool = False) -> str:
        """Read ``key`` as a date rendered with ``date_format``; absent means today."""
        value = accessors.get_date(bag, key, accessors.REQUIRED if required else date.today())
        return accessors.format_date(value, date_format)

    def statistic_increment(self, *subs):
        """Increment a nested counter, creating missing levels:
        ``statistic_increment("executions", "failed")``.
        """
        selection = self.statistics
        for sub in subs[:-1]:
            selection = selection.setdefault(sub, {})
        selection[subs[-1]] = selection.get(subs[-1], 0) + 1

    @property
    def name(self):
        return self.__class__.__name__
