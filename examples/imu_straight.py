#!/usr/bin/env python3
"""
IMU heading-hold example for the Unitree Go2

This example demonstrates:
- Binding the DDS channel to a network interface
- Feeding sport-mode state into a PoseFeed
- Walking straight and turning with the HeadingController

Usage: python imu_straight.py enp44s0
"""

import sys

import go2ctl
from go2ctl.config import ConnectionConfig
from go2ctl.real import Go2SportSink, Go2StateSubscriber, prepare_stance


def main():
    if len(sys.argv) < 2:
        print(f"Usage: {sys.argv[0]} networkInterface")
        sys.exit(-1)

    connection = ConnectionConfig(network_interface=sys.argv[1])
    print("Connecting to Go2...")
    sink = Go2SportSink.connect(connection)
    feed = go2ctl.PoseFeed()

    with Go2StateSubscriber(feed, connection.state_topic):
        print("Standing...")
        prepare_stance(sink)

        print("Waiting for IMU...")
        if not feed.wait_until_initialized(timeout_s=3.0):
            print("No IMU data!")
            return
        print(f"Initial yaw: {feed.initial_yaw:.3f} rad")

        with go2ctl.HeadingController(feed, sink) as controller:
            try:
                print("Forward 2 m...")
                result = controller.move_forward(2.0)
                print(f"  {result.status.value}: {result.distance_m:.2f} m in {result.ticks} ticks")

                print("Turning left 90 deg...")
                result = controller.turn_left_90(timeout_s=10.0)
                print(f"  {result.status.value}: final error {result.final_error_rad:+.3f} rad")

                print("Forward 1 m...")
                controller.move_forward(1.0)
            except KeyboardInterrupt:
                print("\nInterrupted!")
                controller.cancel()

    print("Done!")


if __name__ == "__main__":
    main()
