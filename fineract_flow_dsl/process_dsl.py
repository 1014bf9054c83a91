# process_dsl.py
import re
from abc import ABC
from collections.abc import Callable
from enum import Enum
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class StepType(Enum):
    SERVICE_TASK = "service_task"
    USER_TASK = "user_task"
    GATEWAY = "gateway"
    END_EVENT = "end_event"


class BaseStep(BaseModel, ABC):
    step_id: str
    step_type: StepType
    dependencies: list[str] = Field(default_factory=list)
    description: str = Field(default="", description="Step description")
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(use_enum_values=True)


class ServiceTask(BaseStep):
    """Step executed by a registered task delegate."""

    delegate: str = Field(..., description="Registered delegate name, e.g. loanDisbursementDelegate")
    error_route: str | None = Field(
        None, description="Step the engine continues with when the delegate raises"
    )
    step_type: StepType = Field(StepType.SERVICE_TASK, frozen=True)


class UserTask(BaseStep):
    candidate_group: str | None = Field(None, description="Group allowed to claim the task")
    form_fields: list[str] = Field(default_factory=list, description="Variables the form sets")
    step_type: StepType = Field(StepType.USER_TASK, frozen=True)


class Gateway(BaseStep):
    condition: str = Field(..., description="Expression over process variables")
    if_true: str | None = None
    if_false: str | None = None
    step_type: StepType = Field(StepType.GATEWAY, frozen=True)


class EndEvent(BaseStep):
    outcome: str = "completed"
    step_type: StepType = Field(StepType.END_EVENT, frozen=True)


Step = Union[ServiceTask, UserTask, Gateway, EndEvent]

STEP_CLASSES: dict[str, type[BaseStep]] = {
    StepType.SERVICE_TASK.value: ServiceTask,
    StepType.USER_TASK.value: UserTask,
    StepType.GATEWAY.value: Gateway,
    StepType.END_EVENT.value: EndEvent,
}


class ProcessDefinition(BaseModel):
    key: str
    name: str = ""
    version: str = "1.0.0"
    description: str = ""
    steps: dict[str, Step] = Field(default_factory=dict)
    variables: dict[str, Any] = Field(
        default_factory=dict, description="Input variables with their default values"
    )
    start_step: str | None = None

    @model_validator(mode="before")
    @classmethod
    def validate_key_and_version(cls, data: Any) -> Any:
        """Process keys are what the REST layer starts processes by.

        Keys must match ``^[a-z][a-z0-9_-]*$`` (``loan-disbursement``),
        versions ``^[a-zA-Z0-9._-]+$``.
        """
        if isinstance(data, dict):
            key = data.get("key", "")
            version = data.get("version", "")
            if key and not re.match(r"^[a-z][a-z0-9_-]*$", key):
                msg = f"Process key '{key}' must start with a lowercase letter and contain only lowercase letters, digits, hyphens and underscores"
                raise ValueError(msg)
            if version and not re.match(r"^[a-zA-Z0-9._-]+$", version):
                msg = f"Process version '{version}' must contain only alphanumeric characters, dots, hyphens, and underscores"
                raise ValueError(msg)
        return data

    @model_validator(mode="before")
    @classmethod
    def validate_steps(cls, data: Any) -> Any:
        if isinstance(data, dict) and "steps" in data:
            validated_steps = {}
            for step_id, step_data in data["steps"].items():
                if isinstance(step_data, BaseStep):
                    validated_steps[step_id] = step_data
                    continue
                step_type = step_data.get("step_type")
                if step_type not in STEP_CLASSES:
                    msg = f"Unknown step type: {step_type}"
                    raise ValueError(msg)
                validated_steps[step_id] = STEP_CLASSES[step_type].model_validate(step_data)
            data["steps"] = validated_steps
        return data

    def add_step(self, step: Step) -> "ProcessDefinition":
        self.steps[step.step_id] = step
        return self

    def set_variables(self, variables: dict[str, Any]) -> "ProcessDefinition":
        self.variables.update(variables)
        return self

    def set_start_step(self, step_id: str) -> "ProcessDefinition":
        self.start_step = step_id
        return self

    def service_tasks(self) -> list[ServiceTask]:
        return [step for step in self.steps.values() if isinstance(step, ServiceTask)]

    def delegate_names(self) -> set[str]:
        return {step.delegate for step in self.service_tasks()}

    def references(self) -> set[str]:
        """Every step id some other step points at."""
        targets = set()
        for step in self.steps.values():
            targets.update(step.dependencies)
            if isinstance(step, Gateway):
                targets.update(t for t in (step.if_true, step.if_false) if t)
            if isinstance(step, ServiceTask) and step.error_route:
                targets.add(step.error_route)
        return targets

    def validate_references(self) -> None:
        unknown = self.references() - set(self.steps)
        if self.start_step and self.start_step not in self.steps:
            unknown.add(self.start_step)
        if unknown:
            msg = f"Process '{self.key}' refers to unknown steps: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json", exclude_none=True)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    def to_mermaid(self) -> str:
        """convert to mermaid state diagram format"""
        lines = ["stateDiagram-v2"]

        for step_id, step in self.steps.items():
            if step.description:
                lines.append(f'    state "{step.description}" as {step_id}')

            if not step.dependencies:
                if self.start_step == step_id or not self.start_step:
                    lines.append(f"    [*] --> {step_id}")
            for dep in step.dependencies:
                dep_step = self.steps.get(dep)
                # gateway and error transitions are drawn with their labels below
                if isinstance(dep_step, Gateway):
                    continue
                if isinstance(dep_step, ServiceTask) and dep_step.error_route == step_id:
                    continue
                lines.append(f"    {dep} --> {step_id}")

            if isinstance(step, Gateway):
                if step.if_true:
                    lines.append(f"    {step_id} --> {step.if_true} : {step.condition}")
                if step.if_false:
                    lines.append(f"    {step_id} --> {step.if_false} : else")
            if isinstance(step, ServiceTask) and step.error_route:
                lines.append(f"    {step_id} --> {step.error_route} : error")
            if isinstance(step, EndEvent):
                lines.append(f"    {step_id} --> [*]")

        return "\n".join(lines)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ProcessDefinition":
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, json_str: str) -> "ProcessDefinition":
        return cls.model_validate_json(json_str)


Branch = Union[Callable[["ProcessBuilder"], "ProcessBuilder"], str]


class ProcessBuilder:
    """Fluent construction of a :class:`ProcessDefinition`.

    Every step depends on the step added before it unless ``dependencies`` is
    given. Gateway branches are either sub-builders or the id of an existing
    step, which is how loops (retry) are expressed.

    Examples:
        >>> definition = (
        ...     ProcessBuilder("loan-approval")
        ...     .service_task("approve_loan", "loanApprovalDelegate")
        ...     .end("approved")
        ...     .build()
        ... )
    """

    def __init__(
        self,
        key: str,
        name: str = "",
        version: str = "1.0.0",
        parent: Optional["ProcessBuilder"] = None,
    ) -> None:
        self.process = ProcessDefinition(key=key, name=name, version=version)
        self._current_step: str | None = None
        self.parent = parent

    def _add_step(self, step: Step, dependencies: list[str] | None = None) -> None:
        dependencies = list(dependencies or [])
        if self._current_step and not dependencies:
            dependencies.append(self._current_step)
        step.dependencies = sorted(set(dependencies))
        self.process.add_step(step)
        self._current_step = step.step_id

    def service_task(self, step_id: str, delegate: str, **kwargs: Any) -> "ProcessBuilder":
        dependencies = kwargs.pop("dependencies", None)
        self._add_step(ServiceTask(step_id=step_id, delegate=delegate, **kwargs), dependencies)
        return self

    def user_task(self, step_id: str, candidate_group: str | None = None, **kwargs: Any) -> "ProcessBuilder":
        dependencies = kwargs.pop("dependencies", None)
        self._add_step(UserTask(step_id=step_id, candidate_group=candidate_group, **kwargs), dependencies)
        return self

    def end(self, step_id: str, outcome: str | None = None, **kwargs: Any) -> "ProcessBuilder":
        dependencies = kwargs.pop("dependencies", None)
        self._add_step(EndEvent(step_id=step_id, outcome=outcome or step_id, **kwargs), dependencies)
        return self

    def _branch(self, step_id: str, label: str, branch: Branch | None) -> str | None:
        if branch is None or isinstance(branch, str):
            return branch
        sub_builder = branch(ProcessBuilder(f"{step_id}-{label}", parent=self))
        steps = list(sub_builder.process.steps.values())
        for step in steps:
            if not step.dependencies:
                step.dependencies.append(step_id)
            self.process.add_step(step)
        return steps[0].step_id if steps else None

    def gateway(
        self,
        step_id: str,
        condition: str,
        if_true: Branch | None,
        if_false: Branch | None,
        **kwargs: Any,
    ) -> "ProcessBuilder":
        dependencies = kwargs.pop("dependencies", None)
        step = Gateway(step_id=step_id, condition=condition, if_true=None, if_false=None, **kwargs)
        self._add_step(step, dependencies)
        step.if_true = self._branch(step_id, "true", if_true)
        step.if_false = self._branch(step_id, "false", if_false)
        self._current_step = step_id
        return self

    def describe(self, description: str) -> "ProcessBuilder":
        self.process.description = description
        return self

    def set_variables(self, variables: dict[str, Any]) -> "ProcessBuilder":
        self.process.set_variables(variables)
        return self

    def build(self) -> ProcessDefinition:
        if not self.process.start_step and self.process.steps:
            self.process.start_step = next(iter(self.process.steps))
        self.process.validate_references()
        return self.process
