from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from functools import partial
from pathlib import Path

import dotenv
import pydantic
import uvloop

from light_panel.const import PANEL_DEBUG, PANEL_VERSION
from light_panel.correlation import correlation_context
from light_panel.exceptions import CatalogError, PanelError
from light_panel.logging_abstraction import get_logger, quiet_foreign_loggers, set_package_level
from light_panel.notifications import LogNotifier
from light_panel.panel import LightPanel
from light_panel.scenes import SceneCatalog
from light_panel.structs import CHANNELS, Color, Notification, PanelEnv, SceneKind

logger = get_logger(__name__)


def _print_notification(notification: Notification) -> None:
    print(f"[{notification.level}] {notification.message}")


def _parse_color_arg(raw: str) -> tuple[int, Color]:
    """ID=R,G,B,W -> (id, Color). Empty channels stay unset."""
    try:
        id_part, values_part = raw.split("=", 1)
        fixture_id = int(id_part)
    except ValueError:
        msg = f"expected ID=R,G,B,W, got {raw!r}"
        raise argparse.ArgumentTypeError(msg) from None
    values = values_part.split(",")
    if len(values) != len(CHANNELS):
        msg = f"expected 4 channels in {raw!r}"
        raise argparse.ArgumentTypeError(msg)
    return fixture_id, Color(**dict(zip(CHANNELS, values, strict=True)))


def _parse_swatch_arg(raw: str) -> tuple[int, str]:
    try:
        id_part, name = raw.split("=", 1)
        return int(id_part), name
    except ValueError:
        msg = f"expected ID=SWATCH, got {raw!r}"
        raise argparse.ArgumentTypeError(msg) from None


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="light-panel", description="Light panel MQTT client")
    _ = parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")
    _ = parser.add_argument("--env", help="Path to an environment file", default=None, type=Path)
    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {PANEL_VERSION}")
    sub = parser.add_subparsers(dest="command", required=True)

    _ = sub.add_parser("scenes", help="List catalog scenes and swatches")

    scene = sub.add_parser("scene", help="Select a scene")
    _ = scene.add_argument("name")
    _ = scene.add_argument("--dim", action="store_true", help="Select from the dim scenes")
    _ = scene.add_argument("--wait", action="store_true", help="Stay until the busy window ends")

    save = sub.add_parser("save", help="Send fixture colours")
    _ = save.add_argument("--color", action="append", type=_parse_color_arg, default=[], metavar="ID=R,G,B,W")
    _ = save.add_argument("--swatch", action="append", type=_parse_swatch_arg, default=[], metavar="ID=NAME")
    _ = save.add_argument("--exclude", action="append", type=int, default=[], metavar="ID")

    switch = sub.add_parser("switch", help="Toggle a fixture on or off")
    _ = switch.add_argument("fixture_id", type=int)

    return parser.parse_args(argv)


def load_env_file(env_path: Path) -> None:
    path = env_path.expanduser().resolve()
    if not path.exists():
        logger.error("Environment file not found", extra={"path": str(path)})
        return
    if dotenv.load_dotenv(path, override=True):
        logger.info("Environment variables loaded", extra={"source": str(path)})
    else:
        logger.warning("No environment variables loaded from file", extra={"path": str(path)})


def list_scenes(catalog: SceneCatalog) -> None:
    for kind in SceneKind:
        print(f"{kind.value}:")
        for scene in catalog.scenes(kind):
            print(f"  {scene.name:<16} {scene.css_background()}")


async def run_command(args: argparse.Namespace, env: PanelEnv) -> int:
    task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    if task is not None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, partial(task.cancel, f"signal {sig.name}"))

    notifier = LogNotifier(sink=_print_notification)
    async with LightPanel(env, notifier=notifier) as panel:
        dispatcher = panel.dispatcher
        match args.command:
            case "scene" if args.dim:
                sent = await dispatcher.select_dim_scene(args.name)
                if args.wait:
                    print(f"busy for {panel.busy.duration:.0f}s...")
                    await panel.busy.wait()
            case "scene":
                sent = await dispatcher.select_solid_scene(args.name)
            case "save":
                for fixture_id in args.exclude:
                    dispatcher.toggle_fixture_power(fixture_id)
                for fixture_id, swatch in args.swatch:
                    panel.preview_swatch(fixture_id, swatch)
                for fixture_id, color in args.color:
                    panel.store.set_color(fixture_id, color)
                sent = await dispatcher.save_fixture_colors()
            case "switch":
                sent = await dispatcher.toggle_fixture_enabled(args.fixture_id)
            case _:
                logger.error("Unknown command: %s", args.command)
                sent = False
    return 0 if sent else 1


def main(argv: list[str] | None = None) -> int:
    """Entry point of the `light-panel` command."""
    with correlation_context():
        args = parse_cli(argv)
        quiet_foreign_loggers()
        if args.debug or PANEL_DEBUG:
            set_package_level(logging.DEBUG)
            logger.debug("Debug logging enabled")
        if args.env:
            load_env_file(args.env)

        try:
            env = PanelEnv.from_environ()
            _ = env.endpoint
        except pydantic.ValidationError as e:
            logger.error("Invalid configuration: %s", e)
            return 2
        if args.command == "scenes":
            try:
                list_scenes(SceneCatalog.load(env.scene_file))
            except CatalogError:
                logger.exception("Could not load scene catalog")
                return 2
            return 0

        try:
            return uvloop.run(run_command(args, env))
        except asyncio.CancelledError:
            logger.info("Cancelled, shutting down...")
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
        except PanelError:
            logger.exception("Light panel failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
