import json

import pytest

from fineract_flow_dsl import (
    EndEvent,
    Gateway,
    ProcessBuilder,
    ProcessDefinition,
    ServiceTask,
    UserTask,
)


def sort_dict_recursively(d):
    if not isinstance(d, dict):
        return d
    return {k: sort_dict_recursively(v) for k, v in sorted(d.items())}


def review_process():
    return (
        ProcessBuilder("loan-review", name="Loan Review")
        .set_variables({"locale": "en"})
        .service_task("create_loan", "loanCreationDelegate", description="Submit loan application")
        .user_task("review", candidate_group="loan-officers", form_fields=["loanApproved"])
        .gateway(
            "decision",
            "${loanApproved}",
            if_true=lambda b: b.service_task("approve_loan", "loanApprovalDelegate").end("approved"),
            if_false=lambda b: b.service_task("reject_loan", "loanRejectionDelegate").end("rejected"),
        )
        .build()
    )


def test_process_creation():
    process = ProcessDefinition(key="loan-review", description="Review loans")
    assert process.version == "1.0.0"
    assert process.steps == {}
    assert process.variables == {}
    assert process.start_step is None


def test_step_types_are_fixed():
    assert ServiceTask(step_id="a", delegate="x").model_dump(mode="json")["step_type"] == "service_task"
    assert UserTask(step_id="b").model_dump(mode="json")["step_type"] == "user_task"
    assert Gateway(step_id="c", condition="${x}").model_dump(mode="json")["step_type"] == "gateway"
    assert EndEvent(step_id="d").outcome == "completed"


@pytest.mark.parametrize("key", ["Loan", "1-loan", "loan review"])
def test_invalid_process_keys(key):
    with pytest.raises(ValueError, match="must start with a lowercase letter"):
        ProcessDefinition(key=key)


def test_key_is_required():
    with pytest.raises(ValueError):
        ProcessDefinition.model_validate({"version": "1.0.0"})


def test_invalid_version():
    with pytest.raises(ValueError, match="Process version"):
        ProcessDefinition(key="loan", version="1.0 beta")


def test_unknown_step_type():
    with pytest.raises(ValueError, match="Unknown step type: timer"):
        ProcessDefinition.model_validate({"key": "loan", "steps": {"t": {"step_id": "t", "step_type": "timer"}}})


def test_builder_chains_dependencies():
    process = review_process()

    assert process.start_step == "create_loan"
    assert process.steps["create_loan"].dependencies == []
    assert process.steps["review"].dependencies == ["create_loan"]
    assert process.steps["decision"].dependencies == ["review"]
    assert process.steps["decision"].if_true == "approve_loan"
    assert process.steps["decision"].if_false == "reject_loan"
    assert process.steps["approve_loan"].dependencies == ["decision"]
    assert process.steps["approved"].dependencies == ["approve_loan"]
    assert process.steps["approved"].outcome == "approved"
    assert process.delegate_names() == {"loanCreationDelegate", "loanApprovalDelegate", "loanRejectionDelegate"}


def test_build_rejects_unknown_references():
    builder = ProcessBuilder("broken").service_task("disburse", "loanDisbursementDelegate", error_route="nowhere")
    with pytest.raises(ValueError, match="refers to unknown steps: nowhere"):
        builder.build()


def test_gateway_branch_may_point_at_existing_step():
    process = (
        ProcessBuilder("polling")
        .service_task("check", "loanStatusVerificationDelegate")
        .gateway("ready", "${loanReadyForDisbursement}", if_true=lambda b: b.end("done"), if_false="check")
        .build()
    )
    assert process.steps["ready"].if_false == "check"
    assert "check" in process.references()


def test_yaml_round_trip():
    original = review_process()

    yaml_output = original.to_yaml()
    loaded = ProcessDefinition.from_yaml(yaml_output)

    assert "step_type: service_task" in yaml_output
    assert "error_route" not in yaml_output
    assert isinstance(loaded.steps["decision"], Gateway)
    assert sort_dict_recursively(json.loads(original.model_dump_json())) == sort_dict_recursively(
        json.loads(loaded.model_dump_json())
    )


def test_json_round_trip():
    original = review_process()
    loaded = ProcessDefinition.from_json(original.to_json())
    assert isinstance(loaded.steps["review"], UserTask)
    assert loaded.steps["review"].candidate_group == "loan-officers"
    assert sort_dict_recursively(json.loads(original.model_dump_json())) == sort_dict_recursively(
        json.loads(loaded.model_dump_json())
    )


def test_to_mermaid():
    mermaid = review_process().to_mermaid()
    assert mermaid.splitlines()[0] == "stateDiagram-v2"
    assert '    state "Submit loan application" as create_loan' in mermaid
    assert "    [*] --> create_loan" in mermaid
    assert "    create_loan --> review" in mermaid
    assert "    decision --> approve_loan : ${loanApproved}" in mermaid
    assert "    decision --> reject_loan : else" in mermaid
    assert "    approved --> [*]" in mermaid
    # gateway dependencies are only drawn as labelled branches
    assert "    decision --> approve_loan\n" not in mermaid + "\n"


def test_error_route_in_mermaid():
    process = (
        ProcessBuilder("disbursement")
        .service_task("disburse", "loanDisbursementDelegate", error_route="failed")
        .end("done")
        .end("failed", dependencies=["disburse"])
        .build()
    )
    mermaid = process.to_mermaid()
    assert "    disburse --> failed : error" in mermaid
    assert "    disburse --> failed\n" not in mermaid + "\n"
    assert "    disburse --> done" in mermaid
