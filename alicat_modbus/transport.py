"""Transport abstraction for Modbus communication.

Transports receive physical (already offset) register addresses. Retries for
link level failures live here; the client itself never retries.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List

from pymodbus.client import ModbusSerialClient, ModbusTcpClient
from pymodbus.exceptions import ModbusException, ModbusIOException

from . import registers as REG
from .config import Config
from .errors import TimeoutError, TransportError

logger = logging.getLogger(__name__)


class Transport:
    """Abstract base class for transport implementations."""

    def read_holding_registers(self, device_id: int, address: int, count: int) -> List[int]:
        raise NotImplementedError

    def write_registers(self, device_id: int, address: int, values: Iterable[int]) -> None:
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - default
        """Close transport resources."""


class _PymodbusTransport(Transport):
    """Shared request handling for the pymodbus based transports."""

    def __init__(self, client, retries: int = 3) -> None:
        self._client = client
        self._lock = threading.Lock()
        self._retries = max(1, int(retries))

    def _call(self, func, *args, **kwargs):
        for attempt in range(1, self._retries + 1):
            try:
                result = func(*args, **kwargs)
            except ModbusIOException as exc:
                logger.debug("transport timeout (attempt %s/%s): %s", attempt, self._retries, exc)
                if attempt == self._retries:
                    raise TimeoutError("modbus timeout") from exc
                continue
            except ModbusException as exc:
                logger.debug("transport error (attempt %s/%s): %s", attempt, self._retries, exc)
                if attempt == self._retries:
                    raise TransportError(str(exc)) from exc
                continue
            if result is None:
                if attempt == self._retries:
                    raise TimeoutError("modbus timeout")
                continue
            if result.isError():
                logger.debug("modbus error response (attempt %s/%s): %s", attempt, self._retries, result)
                if attempt == self._retries:
                    raise TransportError(str(result))
                continue
            return result
        raise TransportError("modbus error")

    def read_holding_registers(self, device_id: int, address: int, count: int) -> List[int]:
        with self._lock:
            rr = self._call(
                self._client.read_holding_registers,
                address=address,
                count=count,
                device_id=device_id,
            )
            regs = list(rr.registers)
        if len(regs) != count:
            raise TransportError(f"expected {count} registers, got {len(regs)}")
        return regs

    def write_registers(self, device_id: int, address: int, values: Iterable[int]) -> None:
        with self._lock:
            self._call(
                self._client.write_registers,
                address=address,
                values=list(values),
                device_id=device_id,
            )

    def close(self) -> None:
        with self._lock:
            self._client.close()


class RTUTransport(_PymodbusTransport):
    """Serial RTU transport based on pymodbus."""

    def __init__(self, cfg: Config) -> None:
        client = ModbusSerialClient(
            port=cfg.port,
            baudrate=cfg.baudrate,
            parity=cfg.parity,
            stopbits=cfg.stopbits,
            bytesize=cfg.bytesize,
            timeout=cfg.timeout,
        )
        super().__init__(client, retries=cfg.retries)
        if not self._client.connect():
            raise TransportError(f"Serial connection failed on {cfg.port}")


class TCPTransport(_PymodbusTransport):
    """Modbus TCP transport, e.g. behind a serial-to-Ethernet gateway."""

    def __init__(self, cfg: Config) -> None:
        client = ModbusTcpClient(host=cfg.host, port=cfg.tcp_port, timeout=cfg.timeout)
        super().__init__(client, retries=cfg.retries)
        if not self._client.connect():
            raise TransportError(f"TCP connection failed on {cfg.host}:{cfg.tcp_port}")


class SimulatedTransport(Transport):
    """In-memory instrument used for simulations and tests.

    Writes to the special command block are answered by storing
    ``status_code`` in the argument register, the way the instrument reports
    the result of a command.
    """

    def __init__(self, cfg: Config | None = None, status_code: int = REG.STATUS_CODE_SUCCESS) -> None:
        self.register_offset = cfg.register_offset if cfg is not None else -1
        self.gas_number_register = cfg.gas_number_register if cfg is not None else REG.GAS_NUMBER
        self.status_code = status_code
        self.regs: Dict[int, int] = {}
        self.commands: List[tuple[int, int]] = []
        self.pid_values: Dict[int, int] = {0: 200, 1: 2000, 2: 0}

    def _phys(self, logical: int) -> int:
        return logical + self.register_offset

    def read_holding_registers(self, device_id: int, address: int, count: int) -> List[int]:
        return [self.regs.get(address + i, 0) for i in range(count)]

    def write_registers(self, device_id: int, address: int, values: Iterable[int]) -> None:
        values = [int(v) & 0xFFFF for v in values]
        for i, v in enumerate(values):
            self.regs[address + i] = v
        if address == self._phys(REG.COMMAND_ID) and len(values) >= 2:
            self._answer_command(values[0], values[1])

    def _answer_command(self, command: int, argument: int) -> None:
        self.commands.append((command, argument))
        answer = self.status_code
        if command == REG.CMD_READ_PID_VALUE and self.status_code == REG.STATUS_CODE_SUCCESS:
            answer = self.pid_values.get(argument, 0)
        elif command == REG.CMD_CHANGE_GAS_NUMBER and self.status_code == REG.STATUS_CODE_SUCCESS:
            self.regs[self._phys(self.gas_number_register)] = argument
        self.regs[self._phys(REG.COMMAND_ARGUMENT)] = answer

    def close(self) -> None:  # pragma: no cover - nothing to do
        pass
