"""Runtime settings.

Values come from the environment (``FINERACT_*`` and ``WORKFLOW_*``) or from
a YAML file with ``fineract:`` and ``delegates:`` sections. Environment
variables win over the file.
"""
import logging as logging_library
import os
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

logging = logging_library.getLogger(__name__)

ENVIRONMENT_VARIABLES = {
    ("fineract", "base_url"): "FINERACT_BASE_URL",
    ("fineract", "username"): "FINERACT_USERNAME",
    ("fineract", "password"): "FINERACT_PASSWORD",
    ("fineract", "tenant_id"): "FINERACT_TENANT_ID",
    ("fineract", "timeout"): "FINERACT_TIMEOUT",
    ("fineract", "verify_ssl"): "FINERACT_VERIFY_SSL",
    ("delegates", "date_format"): "WORKFLOW_DATE_FORMAT",
    ("delegates", "locale"): "WORKFLOW_LOCALE",
    ("delegates", "max_retry_attempts"): "WORKFLOW_MAX_RETRY_ATTEMPTS",
    ("delegates", "auto_retry_on_failure"): "WORKFLOW_AUTO_RETRY_ON_FAILURE",
    ("delegates", "default_rejection_reason_id"): "WORKFLOW_DEFAULT_REJECTION_REASON_ID",
}


class FineractSettings(BaseModel):
    base_url: str = Field(
        "https://localhost:8443/fineract-provider/api/v1/",
        description="Root of the Fineract REST API",
    )
    username: str = "mifos"
    password: str = "password"
    tenant_id: str = Field("default", description="Sent as Fineract-Platform-TenantId")
    timeout: float = Field(30.0, description="Seconds to wait for a response")
    verify_ssl: bool = False


class DelegateDefaults(BaseModel):
    date_format: str = Field("yyyy-MM-dd", description="Fineract date pattern used for payloads")
    locale: str = "en"
    max_retry_attempts: int = Field(3, description="Disbursement attempts before escalation")
    auto_retry_on_failure: bool = True
    default_rejection_reason_id: int = 1


class Settings(BaseModel):
    fineract: FineractSettings = Field(default_factory=FineractSettings)
    delegates: DelegateDefaults = Field(default_factory=DelegateDefaults)

    @classmethod
    def from_env(cls, data: Optional[dict[str, Any]] = None) -> "Settings":
        data = {section: dict(values) for section, values in (data or {}).items()}
        for (section, key), variable in ENVIRONMENT_VARIABLES.items():
            value = os.getenv(variable)
            if value is not None:
                data.setdefault(section, {})[key] = value
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "Settings":
        return cls.model_validate(yaml.safe_load(yaml_str) or {})

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """Read ``path`` (or ``$FINERACT_FLOW_CONFIG``) and apply the environment on top."""
        path = path or os.getenv("FINERACT_FLOW_CONFIG")
        data = {}
        if path:
            logging.info("Loading settings from %s", path)
            with open(path, encoding="utf-8") as config_file:
                data = yaml.safe_load(config_file) or {}
        return cls.from_env(data)
