import logging as logging_library

from fineract_flow import accessors
from fineract_flow.core_banking.api import CLIENT_CLOSURE_REASON, CLIENT_REJECT_REASON
from fineract_flow.exceptions import ErrorCode
from fineract_flow.task import TaskDelegate
from fineract_flow.variable_bag import VariableBag

logging = logging_library.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Application rejected during review process"


class ClientCreationDelegate(TaskDelegate):
    operation = "client creation"
    variable_prefix = "clientCreation"
    failure_verb = "create client"
    failure_code = ErrorCode.CLIENT_CREATION_FAILED

    OPTIONAL_FIELDS = ("externalId", "mobileNo", "emailAddress", "genderId", "clientTypeId", "staffId")

    def process(self, bag: VariableBag) -> None:
        office_id = accessors.get_long(bag, "officeId")
        fullname = accessors.get_string(bag, "fullname", None)
        firstname = accessors.get_string(bag, "firstname", None)
        lastname = accessors.get_string(bag, "lastname", None)
        if not fullname and not (firstname and lastname):
            raise ValueError("Either 'fullname' or 'firstname' and 'lastname' are required")

        date_format = self.date_format(bag)
        active = accessors.get_bool(bag, "active", False)
        payload = {
            "officeId": office_id,
            "legalFormId": accessors.get_long(bag, "legalFormId", 1),
            "active": active,
            "submittedOnDate": self.date_variable(bag, "submittedOnDate", date_format),
            "dateFormat": date_format,
            "locale": self.locale(bag),
        }
        if fullname:
            payload["fullname"] = fullname
        else:
            payload["firstname"] = firstname
            payload["lastname"] = lastname
        if active:
            payload["activationDate"] = self.date_variable(bag, "activationDate", date_format)
        date_of_birth = accessors.get_date(bag, "dateOfBirth", None)
        if date_of_birth is not None:
            payload["dateOfBirth"] = accessors.format_date(date_of_birth, date_format)
        for field in self.OPTIONAL_FIELDS:
            if bag.get_variable(field) is not None:
                payload[field] = bag.get_variable(field)

        result = self.api.create_client(payload)

        self.write_success(
            bag,
            "Client created successfully",
            clientId=result.client_id or result.resource_id,
            clientOfficeId=result.office_id or office_id,
            clientStatus="ACTIVE" if active else "PENDING",
        )


class ClientActivationDelegate(TaskDelegate):
    operation = "client activation"
    variable_prefix = "clientActivation"
    failure_verb = "activate client"
    failure_code = ErrorCode.CLIENT_ACTIVATION_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")
        date_format = self.date_format(bag)
        activation_date = self.date_variable(bag, "activationDate", date_format)

        self.api.activate_client(
            client_id,
            {"activationDate": activation_date, "dateFormat": date_format, "locale": self.locale(bag)},
        )

        self.write_success(
            bag,
            "Client activated successfully",
            clientActivated=True,
            clientStatus="ACTIVE",
            activationDate=activation_date,
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("clientActivated", False)


class ClientClosureDelegate(TaskDelegate):
    operation = "client closure"
    variable_prefix = "clientClosure"
    failure_verb = "close client"
    failure_code = ErrorCode.CLIENT_CLOSURE_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")
        closure_reason_id = accessors.get_long(bag, "closureReasonId")
        date_format = self.date_format(bag)
        closure_date = self.date_variable(bag, "closureDate", date_format)

        self.api.close_client(
            client_id,
            {
                "closureDate": closure_date,
                "closureReasonId": closure_reason_id,
                "dateFormat": date_format,
                "locale": self.locale(bag),
            },
        )

        self.write_success(
            bag,
            "Client closed successfully",
            clientClosed=True,
            clientStatus="CLOSED",
            closureDate=closure_date,
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("clientClosed", False)


class ClientRejectionDelegate(TaskDelegate):
    operation = "client rejection"
    variable_prefix = "clientRejection"
    failure_verb = "reject client"
    failure_code = ErrorCode.CLIENT_REJECTION_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")
        reason = accessors.get_string(bag, "rejectionReason", DEFAULT_REJECTION_REASON)
        reason_id = accessors.get_long(bag, "rejectionReasonId", None)
        if reason_id is None:
            reason_id = self.defaults.default_rejection_reason_id
            logging.warning(
                "No rejectionReasonId given for client %s, using default reason %s", client_id, reason_id
            )
        date_format = self.date_format(bag)
        rejection_date = self.date_variable(bag, "rejectionDate", date_format)

        self.api.reject_client(
            client_id,
            {
                "rejectionDate": rejection_date,
                "rejectionReasonId": reason_id,
                "dateFormat": date_format,
                "locale": self.locale(bag),
            },
        )

        self.write_success(
            bag,
            "Client rejected successfully",
            clientRejected=True,
            clientStatus="REJECTED",
            rejectionDate=rejection_date,
            rejectionReason=reason,
            rejectionReasonId=reason_id,
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("clientRejected", False)


class ClientTransferDelegate(TaskDelegate):
    """Proposes moving a client to another office."""

    operation = "client transfer"
    variable_prefix = "clientTransfer"
    failure_verb = "propose client transfer"
    failure_code = ErrorCode.CLIENT_TRANSFER_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")
        destination_office_id = accessors.get_long(bag, "destinationOfficeId")
        date_format = self.date_format(bag)
        transfer_date = self.date_variable(bag, "transferDate", date_format)
        payload = {
            "destinationOfficeId": destination_office_id,
            "transferDate": transfer_date,
            "dateFormat": date_format,
            "locale": self.locale(bag),
        }
        note = accessors.get_string(bag, "note", None)
        if note:
            payload["note"] = note

        self.api.propose_client_transfer(client_id, payload)

        self.write_success(
            bag,
            "Client transfer proposed successfully",
            transferProposed=True,
            transferStatus="PROPOSED",
            destinationOfficeId=destination_office_id,
            transferDate=transfer_date,
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("transferProposed", False)
        bag.set_variable("transferStatus", "ERROR")


class TransferAcceptanceDelegate(TaskDelegate):
    operation = "client transfer acceptance"
    variable_prefix = "transferAcceptance"
    failure_verb = "accept client transfer"
    failure_code = ErrorCode.CLIENT_TRANSFER_ACCEPTANCE_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")
        date_format = self.date_format(bag)
        effective_date = self.date_variable(bag, "effectiveDate", date_format, required=True)
        payload = {"effectiveDate": effective_date, "dateFormat": date_format, "locale": self.locale(bag)}
        note = accessors.get_string(bag, "note", None)
        if note:
            payload["note"] = note

        self.api.accept_client_transfer(client_id, payload)

        self.write_success(
            bag,
            "Client transfer accepted successfully",
            transferAccepted=True,
            transferStatus="ACCEPTED",
            transferAcceptedDate=effective_date,
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("transferAccepted", False)
        bag.set_variable("transferStatus", "ERROR")


class TransferRejectionDelegate(TaskDelegate):
    operation = "client transfer rejection"
    variable_prefix = "transferRejection"
    failure_verb = "reject client transfer"
    failure_code = ErrorCode.CLIENT_TRANSFER_REJECTION_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")
        reason = accessors.get_string(bag, "rejectionReason")

        self.api.reject_client_transfer(client_id, {"note": reason})

        self.write_success(
            bag,
            "Client transfer rejected successfully",
            transferRejected=True,
            transferStatus="REJECTED",
            transferRejectionReason=reason,
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("transferRejected", False)
        bag.set_variable("transferStatus", "ERROR")


class StaffAssignmentDelegate(TaskDelegate):
    operation = "staff assignment"
    variable_prefix = "staffAssignment"
    failure_verb = "assign staff"
    failure_code = ErrorCode.STAFF_ASSIGNMENT_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")
        staff_id = accessors.get_long(bag, "staffId", None)
        if staff_id is None:
            logging.info("No staff given for client %s, skipping staff assignment", client_id)
            self.statistic_increment("executions", "skipped")
            bag.set_variable("staffAssigned", False)
            return
        assignment_date = self.date_variable(bag, "assignmentDate", self.date_format(bag))

        self.api.assign_staff(client_id, {"staffId": staff_id})

        self.write_success(
            bag,
            "Staff assigned successfully",
            staffAssigned=True,
            assignedStaffId=staff_id,
            assignmentDate=assignment_date,
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("staffAssigned", False)


class AccountVerificationDelegate(TaskDelegate):
    """Checks whether a client still has active loans before offboarding."""

    operation = "account verification"
    variable_prefix = "accountVerification"
    failure_verb = "verify client accounts"
    failure_code = ErrorCode.ACCOUNT_VERIFICATION_FAILED

    def process(self, bag: VariableBag) -> None:
        client_id = accessors.get_long(bag, "clientId")

        accounts = self.api.retrieve_client_accounts(client_id)

        active_loans = accounts.active_loans
        message = (
            f"Client has {len(active_loans)} active loan(s)" if active_loans else "Client has no active loans"
        )
        self.write_success(
            bag,
            message,
            accountsVerified=True,
            hasActiveLoans=bool(active_loans),
            activeLoanCount=len(active_loans),
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable("accountsVerified", False)


class _CodeValueRetrievalDelegate(TaskDelegate):
    code_name: str = None
    output_key: str = None

    def process(self, bag: VariableBag) -> None:
        values = [value for value in self.api.retrieve_code_values(self.code_name) if value.is_active]

        self.write_success(
            bag,
            f"Retrieved {len(values)} reason(s)",
            **{
                self.output_key: [value.as_variable() for value in values],
                f"{self.output_key}Fetched": True,
            },
        )

    def write_failure_details(self, bag, error, error_type):
        bag.set_variable(f"{self.output_key}Fetched", False)


class ClosureReasonDelegate(_CodeValueRetrievalDelegate):
    operation = "closure reason retrieval"
    variable_prefix = "closureReasonRetrieval"
    failure_verb = "retrieve closure reasons"
    failure_code = ErrorCode.CLOSURE_REASON_RETRIEVAL_FAILED
    code_name = CLIENT_CLOSURE_REASON
    output_key = "closureReasons"


class RejectionReasonDelegate(_CodeValueRetrievalDelegate):
    operation = "rejection reason retrieval"
    variable_prefix = "rejectionReasonRetrieval"
    failure_verb = "retrieve rejection reasons"
    failure_code = ErrorCode.REJECTION_REASON_RETRIEVAL_FAILED
    code_name = CLIENT_REJECT_REASON
    output_key = "rejectionReasons"
