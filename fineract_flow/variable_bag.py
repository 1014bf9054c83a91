from abc import ABC, abstractmethod
from typing import Any, Optional


class VariableBag(ABC):
    """Process scoped variables handed to a delegate by the workflow engine.

    Keys stay visible to every later step of the same process instance until
    they are overwritten. Values are untyped; use :mod:`fineract_flow.accessors`
    to read them.
    """

    @abstractmethod
    def get_variable(self, key: str) -> Any: ...

    @abstractmethod
    def set_variable(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def has_variable(self, key: str) -> bool: ...

    @property
    @abstractmethod
    def process_instance_id(self) -> Optional[str]: ...

    @property
    @abstractmethod
    def variables(self) -> dict: ...

    def set_variables(self, values: dict) -> None:
        for key, value in values.items():
            self.set_variable(key, value)


class InMemoryVariableBag(VariableBag):
    def __init__(self, variables: dict = None, process_instance_id: str = None) -> None:
        super().__init__()
        self._variables = dict(variables or {})
        self._process_instance_id = process_instance_id

    def get_variable(self, key: str) -> Any:
        return self._variables.get(key)

    def set_variable(self, key: str, value: Any) -> None:
        self._variables[key] = value

    def has_variable(self, key: str) -> bool:
        return key in self._variables

    @property
    def process_instance_id(self) -> Optional[str]:
        return self._process_instance_id

    @property
    def variables(self) -> dict:
        return dict(self._variables)

    def __getitem__(self, key: str) -> Any:
        return self._variables[key]

    def __contains__(self, key: str) -> bool:
        return key in self._variables

    def __repr__(self) -> str:
        return f"InMemoryVariableBag({self._process_instance_id!r}, {self._variables!r})"
