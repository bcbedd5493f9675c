#!/usr/bin/env python
"""Docking approach example.

This example demonstrates the translation controller end to end:
1. Build an asymmetric thruster layout
2. Null a drift velocity in absolute target-velocity mode
3. Match a target's velocity plus a slow closing speed in relative mode
4. Save a response plot and the raw data

The vehicle is rolled 30 degrees so the local and world frames differ.
"""

import logging
from pathlib import Path

import numpy as np

from rcs_control import RCSControllerConfig, RCSVelocityController, ThrusterTable
from rcs_control.frames import axis_angle_to_quaternion
from rcs_control.plotting import plot_velocity_response
from rcs_control.simulation import SimulationResult, Simulator


def main() -> None:
    """Run the docking approach example."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("RCS DOCKING APPROACH")
    print("=" * 60)

    # =========================================================================
    # 1. Vehicle and thrusters
    # =========================================================================
    print("\n1. Setting up vehicle...")

    mass = 2500.0  # kg
    # RIGHT, LEFT, UP, DOWN, FORWARD, BACK thrust [N]
    thrust = np.array([1000.0, 1000.0, 1000.0, 1000.0, 2000.0, 500.0])
    thrusters = ThrusterTable.from_thrust(thrust, mass)

    sim = Simulator(
        velocity=np.array([0.6, -0.3, 0.2]),
        thrusters=thrusters,
        orientation=axis_angle_to_quaternion(np.array([1.0, 0.0, 0.0]), np.radians(30.0)),
        dt=0.02,
        target_velocity=np.array([0.1, 0.0, 0.0]),
    )

    for direction, accel in zip(("+X", "-X", "+Y", "-Y", "+Z", "-Z"), thrusters.acceleration):
        print(f"   {direction}: {accel:.2f} m/s^2")

    # =========================================================================
    # 2. Null drift
    # =========================================================================
    print("\n2. Nulling drift velocity...")

    config = RCSControllerConfig(tf=1.0, conserve_fuel=True, conserve_threshold=0.01)
    ctrl = RCSVelocityController(dt=sim.dt, config=config)
    ctrl.activate()
    ctrl.set_target_velocity(np.zeros(3))

    for _ in range(int(20.0 / sim.dt)):
        sim.step(ctrl.drive(sim.vehicle_state(), sim.target_state()))

    print(f"   Speed after 20 s: {np.linalg.norm(sim.velocity):.4f} m/s")
    print(f"   Accel factor:     {ctrl.accel_factor:.4f}")

    # =========================================================================
    # 3. Relative approach
    # =========================================================================
    print("\n3. Closing on target at 0.05 m/s...")

    closing = np.array([0.0, 0.0, 0.05])
    ctrl.set_target_relative_velocity(closing)

    for _ in range(int(20.0 / sim.dt)):
        sim.step(ctrl.drive(sim.vehicle_state(), sim.target_state()))

    relative = sim.target_state().relative_velocity
    print(f"   Relative velocity: {np.round(relative, 4)} m/s")

    # =========================================================================
    # 4. Save results
    # =========================================================================
    print("\n4. Saving results...")

    output_dir = Path("outputs/docking_approach")
    output_dir.mkdir(parents=True, exist_ok=True)

    result = SimulationResult.from_simulator(sim)
    fig = plot_velocity_response(result, conserve_threshold=config.conserve_threshold)
    fig.savefig(output_dir / "velocity_response.png", dpi=120)
    print(f"   Plot saved: {output_dir}/velocity_response.png")

    result.save_csv(output_dir / "docking_approach.csv")
    print(f"   Data saved: {output_dir}/docking_approach.csv")

    print("\n" + "=" * 60)
    print("APPROACH COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
