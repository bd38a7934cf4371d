from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Optional

import yaml
from pydantic import ValidationError

from .api.rest_client import ApiError, LotusApi
from .core.spawn_config import VesselSpawnConfig
from .core.types import VesselData
from .dashboard import Dashboard
from .map.view import MapView
from .params.dispatcher import SpawnDispatcher
from .params.serializer import serialize
from .settings import Settings, SettingsStore
from .telemetry.client import BatchCallback, ConnectionState, TelemetryClient
from .utils.logging_setup import setup_logging

log = logging.getLogger(__name__)


def _load_vessel(path: str) -> Optional[VesselSpawnConfig]:
    try:
        return VesselSpawnConfig.from_yaml(path)
    except (OSError, yaml.YAMLError, ValidationError) as exc:
        log.error("Cannot load vessel configuration %s: %s", path, exc)
        return None


def cmd_params(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    config = _load_vessel(args.vessel)
    if config is None:
        return 2
    print(serialize(config))
    return 0


async def _spawn(config: VesselSpawnConfig, settings: Settings, check_model: bool) -> None:
    async with LotusApi(settings) as api:
        dispatcher = SpawnDispatcher(api, settings)
        if check_model:
            await dispatcher.check_model(config.model_name)
        await dispatcher.spawn(config)


def cmd_spawn(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    config = _load_vessel(args.vessel)
    if config is None:
        return 2
    try:
        asyncio.run(_spawn(config, settings, args.check_model))
    except ApiError as exc:
        log.error("Vessel %r was not spawned: %s", config.vessel_name, exc)
        return 1
    return 0


def _log_markers(map_view: MapView) -> None:
    for marker in map_view.markers:
        log.info(
            "%s at (%.6f, %.6f) heading %.1f deg, icon %.1fx%.1f",
            marker.vessel_name,
            marker.latitude,
            marker.longitude,
            marker.icon.rotation_deg,
            marker.icon.width,
            marker.icon.height,
        )


async def _monitor(settings: Settings, store: SettingsStore, zoom: Optional[float]) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:  # pragma: no cover - platform without signal support
            pass

    map_view = MapView.from_settings(settings.map)
    if zoom is not None:
        map_view.set_zoom(zoom)

    def client_factory(s: Settings, on_batch: BatchCallback) -> TelemetryClient:
        def forward(batch: list[VesselData]) -> None:
            on_batch(batch)
            _log_markers(map_view)

        return TelemetryClient(s, forward)

    async with LotusApi(settings) as api:
        async with Dashboard(settings, api, map_view, store=store, client_factory=client_factory) as dash:
            log.info("Instances: %s | scenarios: %s", dash.instances, dash.scenarios)
            while not stop.is_set():
                client = dash.client
                if client is None or client.state is ConnectionState.CLOSED:
                    log.warning("Telemetry feed ended; not reconnecting")
                    break
                try:
                    await asyncio.wait_for(stop.wait(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue


def cmd_monitor(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    asyncio.run(_monitor(settings, store, args.zoom))
    return 0


def cmd_settings(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    if args.action == "set-address":
        store.save_address(args.ip, args.port)
    elif args.action == "set-instance":
        store.save_instance(args.name)
    print(yaml.safe_dump(store.settings.model_dump(mode="json"), sort_keys=False), end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=str, default=None, help="Path to default.yaml override")
    common.add_argument(
        "--settings",
        type=str,
        default=None,
        help="Persisted operator settings YAML (default: $LOTUSDASH_SETTINGS or ~/.config/lotusdash/settings.yaml)",
    )
    common.add_argument("--log-level", type=str, default=os.getenv("LOG_LEVEL", None))
    common.add_argument("--instance", type=str, default=None, help="Instance to target for this run only")

    parser = argparse.ArgumentParser(prog="lotusdash")
    sub = parser.add_subparsers(dest="cmd", required=True)

    paramsp = sub.add_parser("params", parents=[common], help="Print the parameter document of a vessel")
    paramsp.add_argument("--vessel", required=True, help="Vessel spawn configuration YAML")
    paramsp.set_defaults(func=cmd_params)

    spawnp = sub.add_parser("spawn", parents=[common], help="Spawn a vessel on the selected instance")
    spawnp.add_argument("--vessel", required=True, help="Vessel spawn configuration YAML")
    spawnp.add_argument("--check-model", action="store_true", help="Warn if the model is unknown to the backend")
    spawnp.set_defaults(func=cmd_spawn)

    monp = sub.add_parser("monitor", parents=[common], help="Follow live vessel telemetry")
    monp.add_argument("--zoom", type=float, default=None, help="Map zoom level used to size markers")
    monp.set_defaults(func=cmd_monitor)

    setp = sub.add_parser("settings", parents=[common], help="Show or change persisted settings")
    setsub = setp.add_subparsers(dest="action", required=True)
    setsub.add_parser("show")
    addrp = setsub.add_parser("set-address")
    addrp.add_argument("ip")
    addrp.add_argument("port", type=int)
    instp = setsub.add_parser("set-instance")
    instp.add_argument("name")
    setp.set_defaults(func=cmd_settings)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    store = SettingsStore(args.settings, defaults_path=args.config)
    settings = store.settings
    if args.instance:
        settings.instance = args.instance

    log_cfg = settings.logging
    setup_logging(args.log_level or log_cfg.level, to_file=log_cfg.to_file, log_dir=log_cfg.log_dir)

    return args.func(args, settings, store)


if __name__ == "__main__":
    sys.exit(main())
