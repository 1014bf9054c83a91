from abc import ABC, abstractmethod
from typing import Any, Optional

from fineract_flow.core_banking.models import (
    ClientAccounts,
    CodeValue,
    CommandResult,
    LoanSnapshot,
)

CLIENT_CLOSURE_REASON = "ClientClosureReason"
CLIENT_REJECT_REASON = "ClientRejectReason"


class CoreBankingApi(ABC):
    """One method per business action offered by the core-banking system.

    Every method blocks until the remote call has finished and raises
    :class:`~fineract_flow.exceptions.CoreBankingApiError` when it fails.
    """

    @abstractmethod
    def create_client(self, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def activate_client(self, client_id: int, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def close_client(self, client_id: int, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def reject_client(self, client_id: int, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def propose_client_transfer(self, client_id: int, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def accept_client_transfer(self, client_id: int, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def reject_client_transfer(self, client_id: int, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def assign_staff(self, client_id: int, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def retrieve_client_accounts(self, client_id: int) -> ClientAccounts: ...

    @abstractmethod
    def retrieve_code_values(self, code_name: str) -> list[CodeValue]:
        """Values of a code such as :data:`CLIENT_CLOSURE_REASON`."""

    @abstractmethod
    def create_code_value(
        self, code_name: str, name: str, description: Optional[str] = None
    ) -> CommandResult: ...

    @abstractmethod
    def create_loan(self, payload: dict[str, Any]) -> CommandResult: ...

    @abstractmethod
    def loan_state_transition(
        self, loan_id: int, command: str, payload: dict[str, Any]
    ) -> CommandResult:
        """Run a loan command: ``approve``, ``reject``, ``disburse``, ..."""

    @abstractmethod
    def get_loan(
        self, loan_id: int, associations: Optional[str] = None, fields: Optional[str] = None
    ) -> LoanSnapshot: ...

    @abstractmethod
    def delete_loan(self, loan_id: int) -> CommandResult: ...
