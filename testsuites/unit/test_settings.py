from pathlib import Path

import pytest
import yaml

from magento_tools.common import ConfigurationError, GlobalConfig, get_config, set_config
from testsuites.ui_testing.framework.settings import WebDriverSettings, normalize_base_url


def _config(tmp_path, data):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump(data), encoding="utf-8")
    return GlobalConfig(config_path=config_path)


BASE = {
    "magento": {"base_url": "http://magento.local", "backend_name": "/backend/"},
    "webdriver": {"engine": "playwright", "browser": "Firefox", "pageload_timeout": 45},
}


def test_settings_from_config(tmp_path):
    settings = WebDriverSettings.from_config(_config(tmp_path, BASE))

    assert settings.base_url == "http://magento.local/"
    assert settings.backend_name == "backend"
    assert settings.admin_url == "http://magento.local/backend/"
    assert settings.engine == "playwright"
    assert settings.browser == "firefox"
    assert settings.pageload_timeout == 45
    assert settings.poll_interval == 0.5
    assert settings.window_dimensions == (1920, 1080)
    assert settings.output_dir == Path("reports/webdriver")


def test_env_overrides_are_parsed(tmp_path, monkeypatch):
    monkeypatch.setenv("PAGELOAD_TIMEOUT", "12")
    monkeypatch.setenv("HEADLESS", "false")
    monkeypatch.setenv("WEBDRIVER_ENGINE", "selenium")

    settings = WebDriverSettings.from_config(_config(tmp_path, BASE))

    assert settings.pageload_timeout == 12
    assert settings.headless is False
    assert settings.engine == "selenium"


@pytest.mark.parametrize("timeout", [0, -3, "abc", "2.5"])
def test_invalid_pageload_timeout(tmp_path, timeout):
    data = {"magento": BASE["magento"], "webdriver": {"pageload_timeout": timeout}}

    with pytest.raises(ConfigurationError, match="pageload_timeout"):
        WebDriverSettings.from_config(_config(tmp_path, data))


def test_pageload_timeout_is_required(tmp_path):
    data = {"magento": BASE["magento"], "webdriver": {"engine": "selenium"}}

    with pytest.raises(ConfigurationError, match="required"):
        WebDriverSettings.from_config(_config(tmp_path, data))


def test_unknown_engine(tmp_path):
    data = {"magento": BASE["magento"], "webdriver": {"engine": "cypress", "pageload_timeout": 5}}

    with pytest.raises(ConfigurationError, match="engine"):
        WebDriverSettings.from_config(_config(tmp_path, data))


@pytest.mark.parametrize("poll_interval", [0, -1, "fast"])
def test_invalid_poll_interval(tmp_path, poll_interval):
    data = {
        "magento": BASE["magento"],
        "webdriver": {"pageload_timeout": 5, "poll_interval": poll_interval},
    }

    with pytest.raises(ConfigurationError, match="poll_interval"):
        WebDriverSettings.from_config(_config(tmp_path, data))


def test_normalize_base_url():
    assert normalize_base_url(" http://magento.local// ") == "http://magento.local/"
    with pytest.raises(ConfigurationError):
        normalize_base_url("")


def test_global_config_dot_notation_and_env_override(tmp_path, monkeypatch):
    _config(tmp_path, BASE)
    assert get_config("magento.base_url") == "http://magento.local"
    assert get_config("magento.missing", "fallback") == "fallback"

    GlobalConfig.reset()
    monkeypatch.setenv("MAGENTO_BASE_URL", "http://env.magento.local/")
    config = _config(tmp_path, BASE)
    assert config.get("magento.base_url") == "http://env.magento.local/"
    assert config.get_section("webdriver")["pageload_timeout"] == 45


def test_global_config_invalid_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("magento: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        GlobalConfig(config_path=config_path)


def test_global_config_missing_file_uses_env(tmp_path, monkeypatch):
    monkeypatch.setenv("BROWSER", "firefox")

    config = GlobalConfig(config_path=tmp_path / "missing.yaml")

    assert config.get("webdriver.browser") == "firefox"
    config.set("webdriver.engine", "playwright")
    assert config.get_all()["webdriver"]["engine"] == "playwright"


def test_set_config_changes_runtime_value(tmp_path):
    _config(tmp_path, BASE)

    set_config("webdriver.pageload_timeout", 7)

    assert WebDriverSettings.from_config().pageload_timeout == 7
