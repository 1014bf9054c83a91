from .catalog import PROCESS_KEYS, get_process
from .process_dsl import (
    BaseStep,
    EndEvent,
    Gateway,
    ProcessBuilder,
    ProcessDefinition,
    ServiceTask,
    StepType,
    UserTask,
)

__all__ = [
    "PROCESS_KEYS",
    "get_process",
    "BaseStep",
    "EndEvent",
    "Gateway",
    "ProcessBuilder",
    "ProcessDefinition",
    "ServiceTask",
    "StepType",
    "UserTask",
]
