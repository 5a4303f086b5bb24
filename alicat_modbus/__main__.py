"""Command line interface for the alicat_modbus package."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from .client import AlicatClient
from .config import Config
from .errors import AlicatError
from .models import DeviceType, TareType

READABLE = {
    "pressure": AlicatClient.get_pressure,
    "setpoint": AlicatClient.get_setpoint,
    "flow-temperature": AlicatClient.get_flow_temperature,
    "volumetric-flow": AlicatClient.get_volumetric_flow,
    "mass-flow": AlicatClient.get_mass_flow,
    "mass-total": AlicatClient.get_mass_total,
    "gas-number": AlicatClient.get_gas_number,
    "status": AlicatClient.get_status_flags,
    "telemetry": AlicatClient.read_telemetry,
}

TARE_TYPES = {
    "pressure": TareType.PRESSURE,
    "absolute-pressure": TareType.ABSOLUTE_PRESSURE,
    "volume": TareType.VOLUME,
}


def build_parser(env_cfg: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interact with an Alicat instrument via Modbus")
    parser.add_argument("--port", default=env_cfg.port, help="serial port [env ALICAT_PORT]")
    parser.add_argument("--baud", type=int, default=env_cfg.baudrate, help="baud rate [env ALICAT_BAUD]")
    parser.add_argument(
        "--modbus-id",
        type=int,
        default=env_cfg.modbus_id,
        help="modbus device id [env ALICAT_MODBUS_ID]",
    )
    parser.add_argument(
        "--device-type",
        type=str.upper,
        choices=[d.name for d in DeviceType],
        default=DeviceType.parse(env_cfg.device_type).name,
        help="instrument variant [env ALICAT_DEVICE_TYPE]",
    )
    parser.add_argument(
        "--offset",
        type=int,
        default=env_cfg.register_offset,
        help="register offset [env ALICAT_REGISTER_OFFSET]",
    )
    parser.add_argument("--verbose", action="store_true", default=env_cfg.verbose, help="log diagnostics")

    sub = parser.add_subparsers(dest="cmd", required=True)

    read = sub.add_parser("read", help="read values")
    read.add_argument("what", choices=sorted(READABLE), help="value to read")

    setp = sub.add_parser("set", help="set values")
    setp.add_argument("what", choices=["setpoint", "gas-number"], help="value to set")
    setp.add_argument("value", help="value")

    mix = sub.add_parser("mixture", help="gas mixture constituents")
    mix_sub = mix.add_subparsers(dest="action", required=True)
    mix_get = mix_sub.add_parser("get", help="read a constituent")
    mix_get.add_argument("index", type=int, help="mixture slot 1-5")
    mix_set = mix_sub.add_parser("set", help="write a constituent")
    mix_set.add_argument("index", type=int, help="mixture slot 1-5")
    mix_set.add_argument("gas", type=int, help="gas index 0-210")
    mix_set.add_argument("percent", type=float, help="percentage 0-100")

    tare = sub.add_parser("tare", help="tare the instrument")
    tare.add_argument("what", choices=list(TARE_TYPES), help="tare type")

    cmd = sub.add_parser("command", help="send a raw special command")
    cmd.add_argument("code", type=int, help="command id")
    cmd.add_argument("argument", type=int, nargs="?", default=0, help="command argument")
    return parser


def run(client: AlicatClient, args: argparse.Namespace) -> None:
    if args.cmd == "read":
        print(READABLE[args.what](client))
    elif args.cmd == "set":
        if args.what == "setpoint":
            client.set_setpoint(float(args.value))
        else:
            client.set_gas_number(int(args.value))
    elif args.cmd == "mixture":
        if args.action == "get":
            print(client.get_mixture_gas_properties(args.index))
        else:
            client.set_mixture_gas_properties(args.index, args.gas, args.percent)
    elif args.cmd == "tare":
        print(client.tare(TARE_TYPES[args.what]).name)
    elif args.cmd == "command":
        print(client.send_special_command(args.code, args.argument).name)


def main(argv: List[str] | None = None) -> int:
    """Run the alicat command line interface."""
    env_cfg = Config.from_env()
    args = build_parser(env_cfg).parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    cfg = Config.from_env()
    cfg.port = args.port
    cfg.baudrate = args.baud
    cfg.modbus_id = args.modbus_id
    cfg.device_type = args.device_type
    cfg.register_offset = args.offset
    cfg.verbose = args.verbose

    client = AlicatClient(cfg=cfg)
    try:
        client.connect()
        run(client, args)
    except AlicatError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
