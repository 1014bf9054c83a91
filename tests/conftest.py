from unittest.mock import MagicMock

import pytest

from fineract_flow import InMemoryVariableBag
from fineract_flow.core_banking import CommandResult, CoreBankingApi


@pytest.fixture
def api():
    api = MagicMock(spec=CoreBankingApi)
    api.create_client.return_value = CommandResult(resourceId=11, clientId=11, officeId=1)
    for method in (
        api.activate_client,
        api.close_client,
        api.reject_client,
        api.propose_client_transfer,
        api.accept_client_transfer,
        api.reject_client_transfer,
        api.assign_staff,
    ):
        method.return_value = CommandResult(resourceId=42, clientId=42, officeId=1)
    api.create_loan.return_value = CommandResult(resourceId=77, loanId=77, clientId=42, officeId=1)
    api.loan_state_transition.return_value = CommandResult(resourceId=501, loanId=77)
    api.delete_loan.return_value = CommandResult(resourceId=77, clientId=42, officeId=1)
    return api


@pytest.fixture
def make_bag():
    def factory(**variables):
        return InMemoryVariableBag(variables, process_instance_id="p-1")

    return factory
