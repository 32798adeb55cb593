#!/usr/bin/env python3
"""
Drive the built-in route against the simulated Go2

No hardware needed: a MockGo2 with heading drift publishes telemetry over the
in-process transport, and the controller holds heading against it.
"""

import logging

import go2ctl
from go2ctl.sim import MockGo2


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    transport = go2ctl.InprocTransport()
    feed = go2ctl.PoseFeed()
    robot = MockGo2(transport, yaw_drift_rps=0.05, noise_std=0.0005, seed=0)
    route = go2ctl.Route(
        name="demo",
        steps=(
            go2ctl.RouteStep("forward", 1.0),
            go2ctl.RouteStep("turn", 90.0),
            go2ctl.RouteStep("forward", 0.5),
            go2ctl.RouteStep("turn", -20.0),
        ),
        pause_s=0.2,
    )

    with go2ctl.TelemetryPump(feed, transport), robot:
        feed.wait_until_initialized(timeout_s=1.0)
        with go2ctl.HeadingController(feed, robot) as controller:
            results = go2ctl.run_route(controller, route)

    summary = go2ctl.RouteSummary(results)
    pose = robot.pose()
    print(f"Route completed: {summary.completed}, {summary.distance_m:.2f} m over {summary.ticks} ticks")
    print(f"Final pose: position={pose.position}, yaw={pose.yaw:.3f} rad")


if __name__ == "__main__":
    main()
