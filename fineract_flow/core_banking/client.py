import json
import logging as logging_library
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import requests

from fineract_flow.config import FineractSettings
from fineract_flow.core_banking.api import CoreBankingApi
from fineract_flow.core_banking.errors import handle_error
from fineract_flow.core_banking.models import (
    ClientAccounts,
    CodeValue,
    CommandResult,
    LoanSnapshot,
)

logging = logging_library.getLogger(__name__)

TENANT_HEADER = "Fineract-Platform-TenantId"


def _json_default(value: Any) -> Any:
    # fractional amounts go out as strings, Fineract parses them with the payload locale
    if isinstance(value, Decimal):
        return str(value) if value != value.to_integral_value() else int(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {value.__class__.__name__} is not JSON serializable")


class FineractClient(CoreBankingApi):
    """:class:`CoreBankingApi` over the Fineract REST API.

    Calls are not retried; a failed call surfaces as
    :class:`~fineract_flow.exceptions.CoreBankingApiError`.
    """

    def __init__(self, settings: FineractSettings = None, session: requests.Session = None) -> None:
        super().__init__()
        self.settings = settings or FineractSettings()
        self.session = session or requests.Session()
        self.session.auth = (self.settings.username, self.settings.password)
        self.session.headers.update(
            {
                TENANT_HEADER: self.settings.tenant_id,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        self.session.verify = self.settings.verify_ssl

    def _url(self, path: str) -> str:
        return self.settings.base_url.rstrip("/") + "/" + path.lstrip("/")

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        resource_id: Any = None,
        params: Optional[dict[str, Any]] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        resource_id = str(resource_id) if resource_id is not None else None
        body = json.dumps(payload, default=_json_default) if payload is not None else None
        logging.debug("%s %s (%s)", method, path, operation)
        try:
            response = self.session.request(
                method,
                self._url(path),
                params=params,
                data=body,
                timeout=self.settings.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as ex:
            raise handle_error(operation, ex, resource_id) from ex
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as ex:
            raise handle_error(operation, ex, resource_id) from ex

    def _command(self, path: str, command: Optional[str], operation: str, resource_id, payload) -> CommandResult:
        params = {"command": command} if command else None
        data = self._request("POST", path, operation, resource_id, params=params, payload=payload)
        return CommandResult.model_validate(data)

    def create_client(self, payload: dict[str, Any]) -> CommandResult:
        return self._command("clients", None, "create client", None, payload)

    def activate_client(self, client_id: int, payload: dict[str, Any]) -> CommandResult:
        return self._command(f"clients/{client_id}", "activate", "activate client", client_id, payload)

    def close_client(self, client_id: int, payload: dict[str, Any]) -> CommandResult:
        return self._command(f"clients/{client_id}", "close", "close client", client_id, payload)

    def reject_client(self, client_id: int, payload: dict[str, Any]) -> CommandResult:
        return self._command(f"clients/{client_id}", "reject", "reject client", client_id, payload)

    def propose_client_transfer(self, client_id: int, payload: dict[str, Any]) -> CommandResult:
        return self._command(
            f"clients/{client_id}", "proposeTransfer", "propose client transfer", client_id, payload
        )

    def accept_client_transfer(self, client_id: int, payload: dict[str, Any]) -> CommandResult:
        return self._command(
            f"clients/{client_id}", "acceptTransfer", "accept client transfer", client_id, payload
        )

    def reject_client_transfer(self, client_id: int, payload: dict[str, Any]) -> CommandResult:
        return self._command(
            f"clients/{client_id}", "rejectTransfer", "reject client transfer", client_id, payload
        )

    def assign_staff(self, client_id: int, payload: dict[str, Any]) -> CommandResult:
        return self._command(f"clients/{client_id}", "assignStaff", "assign staff", client_id, payload)

    def retrieve_client_accounts(self, client_id: int) -> ClientAccounts:
        data = self._request("GET", f"clients/{client_id}/accounts", "retrieve client accounts", client_id)
        return ClientAccounts.model_validate(data)

    def _code_id(self, code_name: str, operation: str) -> int:
        codes = self._request("GET", "codes", operation)
        for code in codes:
            if code.get("name") == code_name:
                return code["id"]
        raise handle_error(operation, LookupError(f"Code {code_name} does not exist"), code_name)

    def retrieve_code_values(self, code_name: str) -> list[CodeValue]:
        operation = "retrieve code values"
        code_id = self._code_id(code_name, operation)
        data = self._request("GET", f"codes/{code_id}/codevalues", operation, code_name)
        return [CodeValue.model_validate(value) for value in data]

    def create_code_value(self, code_name: str, name: str, description: Optional[str] = None) -> CommandResult:
        operation = "create code value"
        code_id = self._code_id(code_name, operation)
        payload = {"name": name, "isActive": True}
        if description:
            payload["description"] = description
        return self._command(f"codes/{code_id}/codevalues", None, operation, code_name, payload)

    def create_loan(self, payload: dict[str, Any]) -> CommandResult:
        return self._command("loans", None, "submit loan application", None, payload)

    def loan_state_transition(self, loan_id: int, command: str, payload: dict[str, Any]) -> CommandResult:
        return self._command(f"loans/{loan_id}", command, f"{command} loan", loan_id, payload)

    def get_loan(
        self, loan_id: int, associations: Optional[str] = None, fields: Optional[str] = None
    ) -> LoanSnapshot:
        params = {}
        if associations:
            params["associations"] = associations
        if fields:
            params["fields"] = fields
        data = self._request("GET", f"loans/{loan_id}", "retrieve loan", loan_id, params=params or None)
        return LoanSnapshot.model_validate(data)

    def delete_loan(self, loan_id: int) -> CommandResult:
        data = self._request("DELETE", f"loans/{loan_id}", "delete loan application", loan_id)
        return CommandResult.model_validate(data)
