from fineract_flow.delegates.client import (
    AccountVerificationDelegate,
    ClientActivationDelegate,
    ClientClosureDelegate,
    ClientCreationDelegate,
    ClientRejectionDelegate,
    ClientTransferDelegate,
    ClosureReasonDelegate,
    RejectionReasonDelegate,
    StaffAssignmentDelegate,
    TransferAcceptanceDelegate,
    TransferRejectionDelegate,
)
from fineract_flow.delegates.disbursement import LoanDisbursementDelegate
from fineract_flow.delegates.loan import (
    LoanApprovalDelegate,
    LoanCancellationDelegate,
    LoanCreationDelegate,
    LoanRejectionDelegate,
)
from fineract_flow.delegates.verification import LoanStatusVerificationDelegate

# names under which process definitions refer to the delegates
DELEGATES = {
    "clientCreationDelegate": ClientCreationDelegate,
    "clientActivationDelegate": ClientActivationDelegate,
    "clientClosureDelegate": ClientClosureDelegate,
    "clientRejectionDelegate": ClientRejectionDelegate,
    "clientTransferDelegate": ClientTransferDelegate,
    "transferAcceptanceDelegate": TransferAcceptanceDelegate,
    "transferRejectionDelegate": TransferRejectionDelegate,
    "staffAssignmentDelegate": StaffAssignmentDelegate,
    "accountVerificationDelegate": AccountVerificationDelegate,
    "closureReasonDelegate": ClosureReasonDelegate,
    "rejectionReasonDelegate": RejectionReasonDelegate,
    "loanCreationDelegate": LoanCreationDelegate,
    "loanApprovalDelegate": LoanApprovalDelegate,
    "loanRejectionDelegate": LoanRejectionDelegate,
    "loanDisbursementDelegate": LoanDisbursementDelegate,
    "loanCancellationDelegate": LoanCancellationDelegate,
    "loanStatusVerificationDelegate": LoanStatusVerificationDelegate,
}


def create_delegate(name: str, api, **kwargs):
    """Instantiate the delegate registered as ``name``.

    :raises KeyError: if no delegate is registered under ``name``
    """
    try:
        delegate_class = DELEGATES[name]
    except KeyError:
        raise KeyError(f"Unknown delegate: {name}") from None
    return delegate_class(api, **kwargs)


__all__ = [
    "DELEGATES",
    "create_delegate",
    "AccountVerificationDelegate",
    "ClientActivationDelegate",
    "ClientClosureDelegate",
    "ClientCreationDelegate",
    "ClientRejectionDelegate",
    "ClientTransferDelegate",
    "ClosureReasonDelegate",
    "LoanApprovalDelegate",
    "LoanCancellationDelegate",
    "LoanCreationDelegate",
    "LoanDisbursementDelegate",
    "LoanRejectionDelegate",
    "LoanStatusVerificationDelegate",
    "RejectionReasonDelegate",
    "StaffAssignmentDelegate",
    "TransferAcceptanceDelegate",
    "TransferRejectionDelegate",
]
