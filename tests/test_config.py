from __future__ import annotations

import pytest

from alicat_modbus.client import AlicatClient
from alicat_modbus.config import Config
from alicat_modbus.models import DeviceType, GasNumberRegister
from alicat_modbus.transport import SimulatedTransport


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "ALICAT_BAUD",
        "ALICAT_TIMEOUT",
        "ALICAT_RETRIES",
        "ALICAT_MODBUS_ID",
        "ALICAT_REGISTER_OFFSET",
        "ALICAT_DEVICE_TYPE",
        "ALICAT_GAS_NUMBER_REGISTER",
        "ALICAT_HOST",
        "ALICAT_VERBOSE",
        "ALICAT_SIM",
        "ALICAT_FAKE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    cfg = Config.from_env()
    assert cfg.baudrate == 19200
    assert cfg.modbus_id == 1
    assert cfg.register_offset == -1
    assert cfg.gas_number_register == 1200
    assert cfg.retries == 3
    assert cfg.host == ""
    assert cfg.verbose is False


def test_environment_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ALICAT_BAUD", "38400")
    clean_env.setenv("ALICAT_MODBUS_ID", "5")
    clean_env.setenv("ALICAT_REGISTER_OFFSET", "0")
    clean_env.setenv("ALICAT_TIMEOUT", "0.25")
    clean_env.setenv("ALICAT_VERBOSE", "yes")
    cfg = Config.from_env()
    assert cfg.baudrate == 38400
    assert cfg.modbus_id == 5
    assert cfg.register_offset == 0
    assert cfg.timeout == 0.25
    assert cfg.verbose is True


def test_invalid_numbers_fall_back(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ALICAT_BAUD", "fast")
    clean_env.setenv("ALICAT_TIMEOUT", "soon")
    cfg = Config.from_env()
    assert cfg.baudrate == 19200
    assert cfg.timeout == 1.0


def test_client_takes_settings_from_config(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ALICAT_DEVICE_TYPE", "psid-controller")
    clean_env.setenv("ALICAT_GAS_NUMBER_REGISTER", "1141")
    clean_env.setenv("ALICAT_MODBUS_ID", "9")
    client = AlicatClient()
    assert client.device_type is DeviceType.PSID_CONTROLLER
    assert client.gas_number_register is GasNumberRegister.LEGACY
    assert client.modbus_id == 9
    assert client.register_offset == -1


def test_explicit_arguments_win(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ALICAT_REGISTER_OFFSET", "0")
    client = AlicatClient("MASS_FLOW_METER", Config.from_env(), register_offset=-1, modbus_id=3)
    assert client.device_type is DeviceType.MASS_FLOW_METER
    assert client.register_offset == -1
    assert client.modbus_id == 3


def test_connect_uses_simulation(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ALICAT_SIM", "1")
    client = AlicatClient(DeviceType.MASS_FLOW_CONTROLLER)
    client.connect()
    assert isinstance(client.transport, SimulatedTransport)
    assert client.get_pressure() == 0.0
    client.close()
