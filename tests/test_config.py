"""Tests for environment-driven configuration."""

from stc_panel_mcp.config import PanelConfig
from stc_panel_mcp.transport.ports import NO_PORT


def test_defaults():
    config = PanelConfig()
    assert config.port == NO_PORT
    assert config.baud == 115200
    assert config.device_dir == "/dev"
    assert config.log_every_n_rx == 0
    assert config.log_capacity == 2000
    assert config.log_level == "INFO"


def test_from_env_overrides():
    config = PanelConfig.from_env({
        "STC_PANEL_PORT": "/dev/ttyUSB1",
        "STC_PANEL_BAUD": "9600",
        "STC_PANEL_DEVICE_DIR": "/tmp/dev",
        "STC_PANEL_PORT_PREFIXES": "cu., tty.,",
        "STC_PANEL_LOG_EVERY_N_RX": "10",
        "STC_PANEL_LOG_CAPACITY": "50",
        "STC_PANEL_MAX_BUFFER": "128",
        "STC_PANEL_LOG_LEVEL": "debug",
    })
    assert config.port == "/dev/ttyUSB1"
    assert config.baud == 9600
    assert config.device_dir == "/tmp/dev"
    assert config.port_prefixes == ("cu.", "tty.")
    assert config.log_every_n_rx == 10
    assert config.log_capacity == 50
    assert config.max_buffer == 128
    assert config.log_level == "DEBUG"


def test_from_env_ignores_bad_integers():
    """Unparseable numbers keep the defaults."""
    config = PanelConfig.from_env({"STC_PANEL_BAUD": "fast", "STC_PANEL_LOG_CAPACITY": ""})
    assert config.baud == 115200
    assert config.log_capacity == 2000


def test_from_env_empty():
    assert PanelConfig.from_env({}) == PanelConfig()


def test_values_are_clamped():
    config = PanelConfig(log_every_n_rx=-3, log_capacity=0, max_buffer=1)
    assert config.log_every_n_rx == 0
    assert config.log_capacity == 1
    assert config.max_buffer == 6
