"""The processes the REST layer can start, by process key."""
from fineract_flow_dsl.process_dsl import ProcessBuilder, ProcessDefinition


def client_onboarding() -> ProcessDefinition:
    return (
        ProcessBuilder("client-onboarding", name="Client Onboarding")
        .describe("Create a client, assign a loan officer and activate or reject after review")
        .set_variables({"staffId": None, "dateFormat": "yyyy-MM-dd", "locale": "en"})
        .service_task("create_client", "clientCreationDelegate", description="Create client")
        .service_task("assign_staff", "staffAssignmentDelegate", description="Assign staff")
        .user_task(
            "review_application",
            candidate_group="branch-managers",
            form_fields=["applicationApproved", "rejectionReason"],
            description="Review client application",
        )
        .gateway(
            "application_decision",
            "${applicationApproved}",
            if_true=lambda b: b.service_task("activate_client", "clientActivationDelegate").end("activated"),
            if_false=lambda b: b.service_task("fetch_rejection_reasons", "rejectionReasonDelegate")
            .service_task("reject_client", "clientRejectionDelegate")
            .end("rejected"),
        )
        .build()
    )


def client_offboarding() -> ProcessDefinition:
    return (
        ProcessBuilder("client-offboarding", name="Client Offboarding")
        .describe("Close a client once no active loans remain")
        .service_task("verify_accounts", "accountVerificationDelegate", description="Verify accounts")
        .gateway(
            "active_loans_check",
            "${hasActiveLoans}",
            if_true=lambda b: b.end("blocked", outcome="blocked_by_active_loans"),
            if_false=lambda b: b.service_task("fetch_closure_reasons", "closureReasonDelegate")
            .user_task("select_closure_reason", candidate_group="branch-managers", form_fields=["closureReasonId"])
            .service_task("close_client", "clientClosureDelegate")
            .end("closed"),
        )
        .build()
    )


def client_transfer() -> ProcessDefinition:
    return (
        ProcessBuilder("client-transfer", name="Client Transfer")
        .describe("Move a client to another office")
        .service_task("propose_transfer", "clientTransferDelegate", description="Propose transfer")
        .user_task(
            "review_transfer",
            candidate_group="destination-office",
            form_fields=["transferApproved", "effectiveDate", "rejectionReason"],
            description="Destination office review",
        )
        .gateway(
            "transfer_decision",
            "${transferApproved}",
            if_true=lambda b: b.service_task("accept_transfer", "transferAcceptanceDelegate").end("accepted"),
            if_false=lambda b: b.service_task("reject_transfer", "transferRejectionDelegate").end("rejected"),
        )
        .build()
    )


def loan_origination() -> ProcessDefinition:
    return (
        ProcessBuilder("loan-origination", name="Loan Origination")
        .describe("Submit a loan application and decide on it")
        .service_task("create_loan", "loanCreationDelegate", description="Submit loan application")
        .user_task(
            "review_loan_application",
            candidate_group="loan-officers",
            form_fields=["loanApproved", "approvedAmount", "note"],
            description="Review loan application",
        )
        .gateway(
            "loan_decision",
            "${loanApproved}",
            if_true=lambda b: b.service_task("approve_loan", "loanApprovalDelegate").end("approved"),
            if_false=lambda b: b.service_task("reject_loan", "loanRejectionDelegate").end("rejected"),
        )
        .build()
    )


def loan_approval() -> ProcessDefinition:
    return (
        ProcessBuilder("loan-approval", name="Loan Approval")
        .service_task("approve_loan", "loanApprovalDelegate", description="Approve loan")
        .end("approved")
        .build()
    )


def loan_rejection() -> ProcessDefinition:
    return (
        ProcessBuilder("loan-rejection", name="Loan Rejection")
        .service_task("reject_loan", "loanRejectionDelegate", description="Reject loan")
        .end("rejected")
        .build()
    )


def loan_disbursement() -> ProcessDefinition:
    """Verify, optionally review, then disburse.

    A failed disbursement routes to ``retry_decision``: ``shouldRetry`` loops
    back to ``disburse_loan``, otherwise a manager handles the escalation.
    """
    return (
        ProcessBuilder("loan-disbursement", name="Loan Disbursement")
        .describe("Disburse an approved loan with automatic retry and escalation")
        .set_variables({"retryAttempt": 0, "maxRetryAttempts": 3, "autoRetryOnFailure": True})
        .service_task("verify_loan_status", "loanStatusVerificationDelegate", description="Verify loan status")
        .gateway(
            "ready_check",
            "${loanReadyForDisbursement}",
            if_true=lambda b: b.gateway(
                "compliance_check",
                "${complianceCheckRequired}",
                if_true=lambda c: c.user_task(
                    "compliance_review", candidate_group="compliance", form_fields=["note"]
                ).service_task("disburse_loan", "loanDisbursementDelegate", error_route="retry_decision"),
                if_false="disburse_loan",
            ),
            if_false=lambda b: b.end("not_ready", outcome="not_ready_for_disbursement"),
        )
        .end("disbursed", dependencies=["disburse_loan"])
        .gateway(
            "retry_decision",
            "${shouldRetry}",
            if_true="disburse_loan",
            if_false=lambda b: b.user_task(
                "handle_escalation", candidate_group="branch-managers", description="Handle failed disbursement"
            ).end("escalated"),
            dependencies=["disburse_loan"],
        )
        .build()
    )


def loan_cancellation() -> ProcessDefinition:
    return (
        ProcessBuilder("loan-cancellation", name="Loan Cancellation")
        .service_task("cancel_loan", "loanCancellationDelegate", description="Cancel loan application")
        .end("cancelled")
        .build()
    )


PROCESS_FACTORIES = {
    "client-onboarding": client_onboarding,
    "client-offboarding": client_offboarding,
    "client-transfer": client_transfer,
    "loan-origination": loan_origination,
    "loan-approval": loan_approval,
    "loan-rejection": loan_rejection,
    "loan-disbursement": loan_disbursement,
    "loan-cancellation": loan_cancellation,
}

PROCESS_KEYS = tuple(PROCESS_FACTORIES)


def get_process(key: str) -> ProcessDefinition:
    try:
        return PROCESS_FACTORIES[key]()
    except KeyError:
        raise KeyError(f"Unknown process: {key}") from None
