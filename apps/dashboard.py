"""Simple dashboard for Alicat instruments with lazy client initialisation."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from dash import Dash, Input, Output, State, ctx, dcc, html

from alicat_modbus.client import AlicatClient
from alicat_modbus.config import Config
from alicat_modbus.errors import AlicatError, TransportError
from alicat_modbus.models import DeviceType, TareType


logger = logging.getLogger(__name__)


@dataclass
class _Ctx:
    cfg: dict[str, Any]
    client: Optional[AlicatClient] = None


CTX = _Ctx(cfg={k.upper(): v for k, v in asdict(Config.from_env()).items()})

LIVE_FIELDS = ("pressure", "setpoint", "volumetric_flow", "mass_flow", "mass_total", "gas_number")


def _fmt(value: Optional[float]) -> str:
    return "—" if value is None else f"{value:.2f}"


def _try_connect(cfg: dict[str, Any]) -> tuple[Optional[AlicatClient], str]:
    """Try to create a client with retries."""
    err = ""
    for delay in (0.0, 0.2, 0.5):
        try:
            client = AlicatClient(cfg=Config(**{k.lower(): v for k, v in cfg.items()}))
            client.connect()
            return client, ""
        except (AlicatError, ValueError) as exc:  # pragma: no cover - hardware specific
            err = str(exc)
            logger.info("connect failed: %s", err)
            time.sleep(delay)
    return None, err


def _call(
    state: dict[str, Any], func: Callable[[AlicatClient], Any]
) -> tuple[Any | None, dict[str, Any]]:
    """Call *func* with active client and handle errors."""
    client = CTX.client
    if not state.get("connected") or client is None:
        return None, {**state, "connected": False, "error": "Keine Verbindung"}
    try:
        result = func(client)
        return result, {**state, "error": ""}
    except TransportError as exc:
        logger.info("client error: %s", exc)
        try:
            client.close()
        finally:
            CTX.client = None
        return None, {"connected": False, "error": str(exc)}
    except (AlicatError, ValueError) as exc:
        return None, {**state, "error": str(exc)}


def _field(label: str, component) -> html.Div:
    return html.Div([html.Label(label, htmlFor=component.id), component])


def _mini_card(value_id: str, label: str) -> html.Div:
    return html.Div(
        className="mini-card",
        children=[html.Div(id=value_id, className="value skeleton"), html.Div(label, className="label")],
    )


app = Dash(__name__)
app.layout = html.Div(
    className="container",
    children=[
        dcc.Store(id="state", data={"connected": False, "error": ""}),
        html.Div(
            id="alert",
            className="alert-banner",
            children=[
                html.Span(id="alert_msg"),
                html.Button("Erneut verbinden", id="btn_reconnect", className="btn"),
            ],
        ),
        html.Div(
            className="card connection",
            children=[
                html.Div(
                    className="conn-fields",
                    children=[
                        _field(
                            "Port",
                            dcc.Input(id="cfg_port", type="text", value=CTX.cfg["PORT"], placeholder="/dev/ttyUSB0"),
                        ),
                        _field(
                            "Modbus-ID",
                            dcc.Input(
                                id="cfg_id",
                                type="number",
                                value=CTX.cfg["MODBUS_ID"],
                                min=1,
                                max=247,
                                placeholder="1–247",
                            ),
                        ),
                        _field(
                            "Baudrate",
                            dcc.Input(
                                id="cfg_baud",
                                type="number",
                                value=CTX.cfg["BAUDRATE"],
                                min=1200,
                                placeholder="19200",
                            ),
                        ),
                        _field(
                            "Parität",
                            dcc.Dropdown(
                                id="cfg_parity",
                                options=[{"label": p, "value": p} for p in ["N", "E", "O"]],
                                value=CTX.cfg["PARITY"],
                                clearable=False,
                            ),
                        ),
                        _field(
                            "Gerätetyp",
                            dcc.Dropdown(
                                id="cfg_type",
                                options=[{"label": d.name, "value": d.name} for d in DeviceType],
                                value=DeviceType.parse(CTX.cfg["DEVICE_TYPE"]).name,
                                clearable=False,
                            ),
                        ),
                        _field(
                            "Register-Offset",
                            dcc.Input(id="cfg_offset", type="number", value=CTX.cfg["REGISTER_OFFSET"], step=1),
                        ),
                        html.Button("Verbinden", id="btn_connect", className="btn"),
                    ],
                ),
                html.Span(id="status", className="badge disconnected"),
            ],
        ),
        html.Div(
            className="main-grid",
            children=[
                html.Div(
                    className="card",
                    children=[
                        html.H3("Live-Werte"),
                        html.Div(
                            className="live-grid",
                            children=[
                                _mini_card("pressure", "Druck"),
                                _mini_card("setpoint", "Sollwert"),
                                _mini_card("volumetric_flow", "Volumenstrom"),
                                _mini_card("mass_flow", "Massenstrom"),
                                _mini_card("mass_total", "Gesamtmenge"),
                                _mini_card("gas_number", "Gas"),
                            ],
                        ),
                        html.Div(id="flags", className="flags"),
                    ],
                ),
                html.Div(
                    className="card",
                    children=[
                        html.H3("Steuerung"),
                        html.Div(
                            className="ctrl-field",
                            children=[
                                html.Label("Sollwert", htmlFor="new_sp"),
                                dcc.Input(id="new_sp", type="number", placeholder="0.0"),
                                html.Button("Setze Sollwert", id="btn_set_sp", className="btn"),
                            ],
                        ),
                        html.Div(
                            className="ctrl-field",
                            children=[
                                html.Label("Gasnummer", htmlFor="new_gas"),
                                dcc.Input(id="new_gas", type="number", min=0, max=210, placeholder="0–210"),
                                html.Button("Setze Gas", id="btn_set_gas", className="btn"),
                            ],
                        ),
                        html.Div(
                            className="ctrl-field",
                            children=[
                                dcc.Dropdown(
                                    id="tare_dd",
                                    options=[{"label": t.name, "value": int(t)} for t in TareType],
                                    value=int(TareType.VOLUME),
                                    clearable=False,
                                ),
                                html.Button("Tarieren", id="btn_tare", className="btn"),
                            ],
                        ),
                        html.Div(id="msg", className="msg"),
                    ],
                ),
            ],
        ),
        html.Div(
            "19200 8N1; Register-Offset -1 für die Adressen aus dem Handbuch",
            className="hint",
        ),
        dcc.Interval(id="tick", interval=1000, n_intervals=0, disabled=True),
    ],
)


@app.callback(
    Output("state", "data"),
    Output("tick", "disabled"),
    Output("btn_connect", "n_clicks"),
    Output("btn_reconnect", "n_clicks"),
    Input("btn_connect", "n_clicks"),
    Input("btn_reconnect", "n_clicks"),
    State("cfg_port", "value"),
    State("cfg_id", "value"),
    State("cfg_baud", "value"),
    State("cfg_parity", "value"),
    State("cfg_type", "value"),
    State("cfg_offset", "value"),
    State("state", "data"),
    prevent_initial_call=True,
)
def connect(_, __, port, modbus_id, baud, parity, device_type, offset, state):
    if not ctx.triggered_id:
        return state, True, 0, 0
    if CTX.client is not None:
        CTX.client.close()
        CTX.client = None
    cfg = {
        **CTX.cfg,
        "PORT": port or CTX.cfg["PORT"],
        "MODBUS_ID": int(modbus_id) if modbus_id is not None else CTX.cfg["MODBUS_ID"],
        "BAUDRATE": int(baud) if baud is not None else CTX.cfg["BAUDRATE"],
        "PARITY": parity or CTX.cfg["PARITY"],
        "DEVICE_TYPE": device_type or CTX.cfg["DEVICE_TYPE"],
        "REGISTER_OFFSET": int(offset) if offset is not None else CTX.cfg["REGISTER_OFFSET"],
    }
    client, err = _try_connect(cfg)
    if client is None:
        state = {"connected": False, "error": err}
        return state, True, 0, 0
    CTX.client = client
    CTX.cfg.update(cfg)
    state = {"connected": True, "error": ""}
    return state, False, 0, 0


@app.callback(
    *(Output(name, "children") for name in LIVE_FIELDS),
    Output("flags", "children"),
    Output("status", "children"),
    Output("state", "data", allow_duplicate=True),
    Input("tick", "n_intervals"),
    State("state", "data"),
    prevent_initial_call=True,
)
def update_view(_, state):
    def read_all(c: AlicatClient):
        telemetry = c.read_telemetry()
        gas = c.get_gas_number() if telemetry.mass_flow is not None else None
        return telemetry, gas

    values, state = _call(state, read_all)
    if values is None:
        vals = ["—"] * len(LIVE_FIELDS)
        flags = ""
    else:
        t, gas = values
        vals = [
            _fmt(t.pressure),
            _fmt(t.setpoint),
            _fmt(t.volumetric_flow),
            _fmt(t.mass_flow),
            _fmt(t.mass_total),
            "—" if gas is None else str(gas),
        ]
        flags = ", ".join(n.replace("_", " ") for n in t.status.active()) or "keine Statusmeldungen"
    status = (
        f"Verbunden – {CTX.cfg['PORT']}, ID {CTX.cfg['MODBUS_ID']}, {CTX.cfg['DEVICE_TYPE']}"
        if state.get("connected")
        else "Getrennt"
    )
    return (*vals, flags, status, state)


@app.callback(
    Output("state", "data", allow_duplicate=True),
    Output("btn_set_sp", "n_clicks"),
    Input("btn_set_sp", "n_clicks"),
    State("new_sp", "value"),
    State("state", "data"),
    prevent_initial_call=True,
)
def set_sp(_, val, state):
    if val is None:
        state["error"] = "ungültiger Wert"
        return state, 0

    def do(c: AlicatClient) -> None:
        c.set_setpoint(float(val))

    _, state = _call(state, do)
    return state, 0


@app.callback(
    Output("state", "data", allow_duplicate=True),
    Output("btn_set_gas", "n_clicks"),
    Input("btn_set_gas", "n_clicks"),
    State("new_gas", "value"),
    State("state", "data"),
    prevent_initial_call=True,
)
def set_gas(_, val, state):
    if val is None:
        state["error"] = "ungültiger Wert"
        return state, 0

    def do(c: AlicatClient) -> None:
        c.set_gas_number(int(val))

    _, state = _call(state, do)
    return state, 0


@app.callback(
    Output("state", "data", allow_duplicate=True),
    Output("msg", "children"),
    Output("btn_tare", "n_clicks"),
    Input("btn_tare", "n_clicks"),
    State("tare_dd", "value"),
    State("state", "data"),
    prevent_initial_call=True,
)
def tare(_, val, state):
    outcome, state = _call(state, lambda c: c.tare(int(val)))
    msg = f"Tara: {outcome.value}" if outcome is not None else ""
    return state, msg, 0


@app.callback(
    Output("new_sp", "disabled"),
    Output("btn_set_sp", "disabled"),
    Output("new_gas", "disabled"),
    Output("btn_set_gas", "disabled"),
    Output("tare_dd", "disabled"),
    Output("btn_tare", "disabled"),
    Input("state", "data"),
)
def toggle_controls(state):
    disabled = [not state.get("connected")] * 6
    return disabled


@app.callback(Output("status", "className"), Input("state", "data"))
def status_class(state):
    return "badge connected" if state.get("connected") else "badge disconnected"


@app.callback(
    Output("alert", "className"),
    Output("alert_msg", "children"),
    Input("state", "data"),
)
def show_alert(state):
    err = state.get("error")
    if err:
        return "alert-banner show", err
    return "alert-banner", ""


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG if os.getenv("ALICAT_DEBUG") else logging.INFO)
    app.run(
        debug=False,
        use_reloader=False,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT_HTTP", "8050")),
    )
