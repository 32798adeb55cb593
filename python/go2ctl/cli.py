from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from contextlib import ExitStack
from typing import Any

from .config import ConnectionConfig, Go2CtlConfig
from .controller import HeadingController, ManeuverProgress
from .errors import Go2CtlError
from .pose_feed import PoseFeed, TelemetryPump
from .sequencer import DEFAULT_ROUTE, Route, RouteSummary, run_route
from .sinks import RecordingSink
from .sport_modes import SportModeRunner, describe_modes, parse_sport_mode
from .transport import create_transport
from .types import ManeuverKind


def _load_config(args: argparse.Namespace) -> Go2CtlConfig:
    config = Go2CtlConfig.from_yaml(args.config) if args.config else Go2CtlConfig()
    conn = config.connection
    connection = ConnectionConfig(
        network_interface=args.interface or conn.network_interface,
        domain_id=conn.domain_id,
        client_timeout_s=conn.client_timeout_s,
        state_topic=conn.state_topic,
    )
    return Go2CtlConfig(
        controller=config.controller,
        connection=connection,
        teleop=config.teleop,
        transport=config.transport,
    )


def _open_robot(
    stack: ExitStack, config: Go2CtlConfig, backend: str, feed: PoseFeed | None = None
) -> Any:
    """Return a posture-capable sink; when ``feed`` is given, wire telemetry into it."""
    topic = config.connection.state_topic
    if backend == "mock":
        from .sim import MockGo2

        transport = create_transport(config.transport)
        robot = MockGo2(transport, topic)
        if feed is not None:
            stack.enter_context(TelemetryPump(feed, transport, topic))
        stack.enter_context(robot)
        return robot

    from .real import Go2SportSink, Go2StateSubscriber

    sink = Go2SportSink.connect(config.connection)
    stack.callback(sink.stop)
    if feed is not None:
        stack.enter_context(Go2StateSubscriber(feed, topic))
    return sink


def _print_progress(p: ManeuverProgress) -> None:
    if p.kind is ManeuverKind.FORWARD:
        line = f"\r[go2ctl] forward... {p.distance_m:.2f} m, yaw error {math.degrees(p.error_rad):.1f} deg   "
    else:
        line = f"\r[go2ctl] turning... {math.degrees(p.error_rad):.1f} deg to go   "
    sys.stdout.write(line)
    sys.stdout.flush()


def cmd_route(args: argparse.Namespace) -> int:
    config = _load_config(args)
    route = Route.from_yaml(args.route) if args.route else DEFAULT_ROUTE
    feed = PoseFeed()

    with ExitStack() as stack:
        sink = _open_robot(stack, config, args.backend, feed)
        if args.backend == "go2" and not args.skip_stance:
            from .real import prepare_stance

            prepare_stance(sink)

        print(f"[go2ctl] waiting up to {args.wait_s:.1f}s for the pose feed...")
        if not feed.wait_until_initialized(timeout_s=args.wait_s):
            print("[go2ctl] error: pose feed never initialized", file=sys.stderr)
            return 1

        recorder = RecordingSink(inner=sink)
        controller = stack.enter_context(HeadingController(feed, recorder, config.controller))
        print(f"[go2ctl] route '{route.name}': {len(route.steps)} steps, {route.total_distance_m:g} m")
        try:
            results = run_route(
                controller,
                route,
                pause_s=args.pause_s,
                progress=None if args.quiet else _print_progress,
            )
        except KeyboardInterrupt:
            controller.cancel()
            print("\n[go2ctl] interrupted")
            return 130
        if not args.quiet:
            print()

    summary = RouteSummary(results)
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    print(
        f"[go2ctl] route {'completed' if summary.completed else 'halted'}: "
        f"{len(results)}/{len(route.steps)} steps, {summary.distance_m:.2f} m, "
        f"{len(recorder.commands)} commands"
    )
    return 0 if summary.completed else 2


def cmd_sport_mode(args: argparse.Namespace) -> int:
    try:
        mode = parse_sport_mode(args.mode)
    except ValueError as exc:
        print(f"[go2ctl] error: {exc}", file=sys.stderr)
        print("Available modes:\n" + describe_modes(), file=sys.stderr)
        return 2

    config = _load_config(args)
    print(f"[go2ctl] selected mode: {int(mode)} ({mode.name.lower()})")
    with ExitStack() as stack:
        sink = _open_robot(stack, config, args.backend)
        runner = SportModeRunner(sink, mode)
        try:
            ticks = runner.run(duration_s=args.duration_s)
        except KeyboardInterrupt:
            print("\n[go2ctl] interrupted")
            return 130
    print(f"[go2ctl] sport mode finished after {ticks} ticks")
    return 0


def cmd_teleop(args: argparse.Namespace) -> int:
    from .teleop import KeyboardTeleop, RawTerminal

    config = _load_config(args)
    with ExitStack() as stack:
        sink = _open_robot(stack, config, args.backend)
        if args.backend == "go2" and not args.skip_stance:
            from .real import prepare_stance

            prepare_stance(sink)
        teleop = KeyboardTeleop(sink, config.teleop)
        terminal = stack.enter_context(RawTerminal())
        try:
            teleop.run(terminal.read_key)
        except KeyboardInterrupt:
            print("\n[go2ctl] interrupted")
            return 130
    print("[go2ctl] teleop finished")
    return 0


def cmd_lidar(args: argparse.Namespace) -> int:
    from .real import LidarSwitch

    config = _load_config(args)
    command = args.command.upper()
    print(f"[go2ctl] turning lidar {command} via {config.connection.network_interface}")
    switch = LidarSwitch.connect(config.connection)
    try:
        switch.send(command, repeats=args.repeats)
    finally:
        switch.close()
    print(f"[go2ctl] lidar switch command sent: {command}")
    return 0


def _add_common(s: argparse.ArgumentParser, *, backends: bool = True) -> None:
    s.add_argument("interface", nargs="?", help="network interface bound to the robot, e.g. enp44s0")
    s.add_argument("--config", help="YAML config file")
    if backends:
        s.add_argument("--backend", choices=("go2", "mock"), default="go2")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="go2ctl - Unitree Go2 heading-hold control")
    p.add_argument("--log-level", default="WARNING")
    sp = p.add_subparsers(dest="cmd", required=True)

    s = sp.add_parser("route", help="drive a scripted forward/turn route")
    _add_common(s)
    s.add_argument("--route", help="YAML route file (default: built-in loop)")
    s.add_argument("--wait-s", type=float, default=3.0, help="pose feed start-up timeout")
    s.add_argument("--pause-s", type=float, default=None, help="pause between steps")
    s.add_argument("--skip-stance", action="store_true", help="do not stand up before driving")
    s.add_argument("--quiet", action="store_true", help="no live progress line")
    s.add_argument("--json", action="store_true", help="print per-step results as JSON")
    s.set_defaults(fn=cmd_route)

    s = sp.add_parser(
        "sport-mode",
        help="repeat one sport-mode command",
        epilog="modes:\n" + describe_modes(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common(s)
    s.add_argument("mode", help="mode number or name")
    s.add_argument("--duration-s", type=float, default=None, help="stop after this long")
    s.set_defaults(fn=cmd_sport_mode)

    s = sp.add_parser("teleop", help="WASD keyboard teleoperation")
    _add_common(s)
    s.add_argument("--skip-stance", action="store_true", help="do not stand up first")
    s.set_defaults(fn=cmd_teleop)

    s = sp.add_parser("lidar", help="switch the lidar ON or OFF")
    _add_common(s, backends=False)
    s.add_argument("command", nargs="?", default="ON", type=str.upper, choices=("ON", "OFF"))
    s.add_argument("--repeats", type=int, default=5)
    s.set_defaults(fn=cmd_lidar)
    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        code = args.fn(args)
    except (Go2CtlError, FileNotFoundError, ValueError) as exc:
        print(f"[go2ctl] error: {exc}", file=sys.stderr)
        code = 1
    raise SystemExit(code)


if __name__ == "__main__":
    main()
