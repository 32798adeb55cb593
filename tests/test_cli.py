"""Tests for the go2ctl command line, run against the mock backend."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from go2ctl.cli import build_parser, main
from go2ctl.pose_feed import PoseFeed


def _exit_code(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return int(excinfo.value.code)


def test_parser_subcommands() -> None:
    parser = build_parser()

    args = parser.parse_args(["route", "enp44s0"])
    assert args.interface == "enp44s0"
    assert args.backend == "go2"
    assert args.wait_s == 3.0
    assert args.route is None

    args = parser.parse_args(["sport-mode", "enp44s0", "7", "--duration-s", "2"])
    assert args.mode == "7"
    assert args.duration_s == 2.0

    args = parser.parse_args(["lidar", "enp44s0", "off"])
    assert args.command == "OFF"
    assert parser.parse_args(["lidar", "enp44s0"]).command == "ON"


def test_parser_rejects_unknown_lidar_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["lidar", "enp44s0", "blink"])


def test_route_on_mock_backend(tmp_path: Path, capsys) -> None:
    route = tmp_path / "short.yaml"
    route.write_text("name: short\nsteps:\n  - forward: 0.2\n  - turn: 20\n")

    code = _exit_code(
        [
            "route",
            "lo",
            "--backend",
            "mock",
            "--route",
            str(route),
            "--pause-s",
            "0",
            "--wait-s",
            "2",
            "--quiet",
            "--json",
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "route completed: 2/2 steps" in out
    summary = json.loads(out[out.index("{") : out.rindex("}") + 1])
    assert [s["kind"] for s in summary["steps"]] == ["forward", "turn"]


def test_sport_mode_on_mock_backend(capsys) -> None:
    code = _exit_code(["sport-mode", "lo", "stand_down", "--backend", "mock", "--duration-s", "0.05"])
    assert code == 0
    assert "selected mode: 3 (stand_down)" in capsys.readouterr().out


def test_sport_mode_rejects_invalid_mode(capsys) -> None:
    code = _exit_code(["sport-mode", "lo", "42", "--backend", "mock"])
    assert code == 2
    err = capsys.readouterr().err
    assert "Mode must be 0-8 or 99" in err
    assert "balance_stand" in err


def test_missing_config_file_exits_with_error(capsys) -> None:
    code = _exit_code(["route", "lo", "--backend", "mock", "--config", "nope.yaml"])
    assert code == 1
    assert "Config not found" in capsys.readouterr().err


def test_route_exits_when_pose_feed_never_initializes(monkeypatch, capsys) -> None:
    monkeypatch.setattr(PoseFeed, "wait_until_initialized", lambda self, timeout_s=None: False)

    code = _exit_code(["route", "lo", "--backend", "mock", "--wait-s", "0.05", "--quiet"])

    captured = capsys.readouterr()
    assert code == 1
    assert "pose feed never initialized" in captured.err
    assert "route completed" not in captured.out
