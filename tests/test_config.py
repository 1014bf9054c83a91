import pytest

from fineract_flow import DelegateDefaults, Settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for variable in (
        "FINERACT_BASE_URL",
        "FINERACT_TENANT_ID",
        "FINERACT_TIMEOUT",
        "WORKFLOW_MAX_RETRY_ATTEMPTS",
        "WORKFLOW_AUTO_RETRY_ON_FAILURE",
        "FINERACT_FLOW_CONFIG",
    ):
        monkeypatch.delenv(variable, raising=False)


def test_defaults():
    settings = Settings()
    assert settings.fineract.tenant_id == "default"
    assert settings.fineract.timeout == 30.0
    assert settings.delegates == DelegateDefaults()
    assert settings.delegates.date_format == "yyyy-MM-dd"
    assert settings.delegates.max_retry_attempts == 3


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FINERACT_TENANT_ID", "acme")
    monkeypatch.setenv("FINERACT_TIMEOUT", "5")
    monkeypatch.setenv("WORKFLOW_MAX_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("WORKFLOW_AUTO_RETRY_ON_FAILURE", "false")

    settings = Settings.from_env()

    assert settings.fineract.tenant_id == "acme"
    assert settings.fineract.timeout == 5.0
    assert settings.delegates.max_retry_attempts == 5
    assert settings.delegates.auto_retry_on_failure is False


def test_from_yaml():
    settings = Settings.from_yaml(
        """
fineract:
  base_url: https://fineract.example/api/v1/
delegates:
  locale: fr
"""
    )
    assert settings.fineract.base_url == "https://fineract.example/api/v1/"
    assert settings.delegates.locale == "fr"
    assert Settings.from_yaml("") == Settings()


def test_load_file_with_environment_on_top(tmp_path, monkeypatch):
    config_file = tmp_path / "fineract-flow.yaml"
    config_file.write_text("fineract:\n  tenant_id: from-file\n  username: admin\n", encoding="utf-8")
    monkeypatch.setenv("FINERACT_FLOW_CONFIG", str(config_file))
    monkeypatch.setenv("FINERACT_TENANT_ID", "from-env")

    settings = Settings.load()

    assert settings.fineract.tenant_id == "from-env"
    assert settings.fineract.username == "admin"


def test_load_without_file():
    assert Settings.load() == Settings()
