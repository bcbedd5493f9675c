"""Closed-loop tests of the controller against the step-driven Simulator."""

import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.figure import Figure
from numpy.testing import assert_allclose

from rcs_control.config import RCSControllerConfig
from rcs_control.controller import Command, RCSVelocityController
from rcs_control.frames import axis_angle_to_quaternion
from rcs_control.plotting import plot_velocity_response
from rcs_control.simulation import SimulationResult, Simulator, thrust_acceleration
from rcs_control.thrusters import ThrusterTable

DT = 0.02


def run_loop(sim: Simulator, ctrl: RCSVelocityController, steps: int) -> SimulationResult:
    for _ in range(steps):
        sim.step(ctrl.drive(sim.vehicle_state(), sim.target_state()))
    return SimulationResult.from_simulator(sim)


# =============================================================================
# Plant Tests
# =============================================================================


class TestPlant:
    """Test the thruster model and integration."""

    def test_positive_command_pushes_negative(self):
        thrusters = ThrusterTable.uniform(2.0)
        assert_allclose(thrust_acceleration(Command(x=0.5), thrusters), [-1.0, 0.0, 0.0])

    def test_actuator_axes_swapped(self):
        """Actuator y drives local Z."""
        thrusters = ThrusterTable.uniform(2.0)
        assert_allclose(thrust_acceleration(Command(y=-1.0), thrusters), [0.0, 0.0, 2.0])

    def test_direction_specific_availability(self):
        thrusters = ThrusterTable(acceleration=np.array([1.0, 3.0, 0.0, 0.0, 0.0, 0.0]))
        assert_allclose(thrust_acceleration(Command(x=1.0), thrusters), [-1.0, 0.0, 0.0])
        assert_allclose(thrust_acceleration(Command(x=-1.0), thrusters), [3.0, 0.0, 0.0])

    def test_coasting(self):
        """Zero command keeps velocity and advances position."""
        sim = Simulator(velocity=np.array([1.0, 0.0, -2.0]), thrusters=ThrusterTable.uniform(1.0))
        for _ in range(50):
            sim.step(Command())

        assert_allclose(sim.velocity, [1.0, 0.0, -2.0])
        assert_allclose(sim.position, [1.0, 0.0, -2.0], rtol=1e-9)
        assert sim.time == pytest.approx(1.0)

    def test_gravity(self):
        sim = Simulator(
            velocity=np.zeros(3),
            thrusters=ThrusterTable.uniform(1.0),
            gravity=np.array([0.0, 0.0, -9.81]),
        )
        for _ in range(50):
            sim.step(Command())

        assert_allclose(sim.velocity, [0.0, 0.0, -9.81], rtol=1e-9)

    def test_reported_acceleration_includes_gravity(self):
        sim = Simulator(
            velocity=np.zeros(3),
            thrusters=ThrusterTable.uniform(1.0),
            gravity=np.array([0.0, -1.0, 0.0]),
        )
        state = sim.step(Command(x=1.0))

        assert_allclose(state.acceleration, [-1.0, -1.0, 0.0])
        assert_allclose(state.gravity, [0.0, -1.0, 0.0])

    def test_target_state(self):
        sim = Simulator(velocity=np.array([1.0, 0.0, 0.0]), thrusters=ThrusterTable.uniform(1.0))
        assert sim.target_state() is None

        sim.target_velocity = np.array([0.25, 0.0, 0.0])
        assert_allclose(sim.target_state().relative_velocity, [0.75, 0.0, 0.0])

    def test_invalid(self):
        with pytest.raises(ValueError, match="Tick"):
            Simulator(velocity=np.zeros(3), thrusters=ThrusterTable.uniform(1.0), dt=0.0)


# =============================================================================
# Closed-Loop Tests
# =============================================================================


class TestClosedLoop:
    """Test convergence of the controller on the plant."""

    @pytest.mark.parametrize(
        "orientation",
        [
            np.array([1.0, 0.0, 0.0, 0.0]),
            axis_angle_to_quaternion(np.array([0.3, -1.0, 0.5]), 1.2),
        ],
    )
    def test_nulls_velocity(self, orientation):
        sim = Simulator(
            velocity=np.array([0.2, -0.1, 0.05]),
            thrusters=ThrusterTable.uniform(1.0),
            orientation=orientation,
            dt=DT,
        )
        ctrl = RCSVelocityController(dt=DT)
        ctrl.activate()
        ctrl.set_target_velocity(np.zeros(3))

        result = run_loop(sim, ctrl, 1000)

        assert result.speed[-1] < 0.01
        assert np.all(np.abs(result.command) <= 1.0)

    def test_asymmetric_thrusters(self):
        sim = Simulator(
            velocity=np.array([0.2, -0.1, 0.05]),
            thrusters=ThrusterTable(acceleration=np.array([0.5, 1.0, 0.8, 0.25, 1.0, 0.5])),
            dt=DT,
        )
        ctrl = RCSVelocityController(dt=DT)
        ctrl.activate()
        ctrl.set_target_velocity(np.zeros(3))

        result = run_loop(sim, ctrl, 1000)

        assert result.speed[-1] < 0.01

    def test_tracks_nonzero_target(self):
        target = np.array([0.1, 0.0, -0.05])
        sim = Simulator(velocity=np.zeros(3), thrusters=ThrusterTable.uniform(1.0), dt=DT)
        ctrl = RCSVelocityController(dt=DT)
        ctrl.activate()
        ctrl.set_target_velocity(target)

        run_loop(sim, ctrl, 1000)

        assert_allclose(sim.velocity, target, atol=0.01)

    def test_conservation_stops_thrusting(self):
        """Once inside the threshold the thrusters stay off."""
        sim = Simulator(velocity=np.array([0.2, -0.1, 0.05]), thrusters=ThrusterTable.uniform(1.0))
        ctrl = RCSVelocityController(
            dt=DT, config=RCSControllerConfig(conserve_fuel=True, conserve_threshold=0.05)
        )
        ctrl.activate()
        ctrl.set_target_velocity(np.zeros(3))

        result = run_loop(sim, ctrl, 1000)

        assert result.speed[-1] <= 0.05
        assert not ctrl.actuators.enabled
        assert_allclose(result.command[-1], np.zeros(3))

    def test_relative_velocity_mode(self):
        """Relative mode settles on the target's velocity plus the desired offset."""
        sim = Simulator(
            velocity=np.array([0.1, 0.0, 0.0]),
            thrusters=ThrusterTable.uniform(1.0),
            dt=DT,
            target_velocity=np.array([0.1, 0.0, 0.0]),
        )
        ctrl = RCSVelocityController(dt=DT)
        ctrl.activate()
        ctrl.set_target_relative_velocity(np.array([0.0, 0.0, 0.05]))

        run_loop(sim, ctrl, 1000)

        assert_allclose(sim.target_state().relative_velocity, [0.0, 0.0, 0.05], atol=0.01)

    def test_target_lost_mid_run(self):
        sim = Simulator(
            velocity=np.zeros(3),
            thrusters=ThrusterTable.uniform(1.0),
            target_velocity=np.array([0.1, 0.0, 0.0]),
        )
        ctrl = RCSVelocityController(dt=DT)
        ctrl.activate()
        ctrl.set_target_relative_velocity(np.zeros(3))
        run_loop(sim, ctrl, 10)

        sim.target_velocity = None
        run_loop(sim, ctrl, 10)

        assert not ctrl.active
        assert not ctrl.actuators.enabled
        result = SimulationResult.from_simulator(sim)
        assert_allclose(result.command[-10:], np.zeros((10, 3)))


# =============================================================================
# Result Tests
# =============================================================================


class TestSimulationResult:
    """Test recorded results and their exports."""

    @pytest.fixture
    def result(self) -> SimulationResult:
        sim = Simulator(velocity=np.array([0.2, 0.0, 0.0]), thrusters=ThrusterTable.uniform(1.0))
        ctrl = RCSVelocityController(dt=sim.dt)
        ctrl.activate()
        ctrl.set_target_velocity(np.zeros(3))
        return run_loop(sim, ctrl, 500)

    def test_shapes(self, result):
        assert result.time.shape == (500,)
        assert result.position.shape == (500, 3)
        assert result.velocity.shape == (500, 3)
        assert result.command.shape == (500, 3)
        assert result.speed.shape == (500,)

    def test_empty_history(self):
        sim = Simulator(velocity=np.zeros(3), thrusters=ThrusterTable.uniform(1.0))
        result = SimulationResult.from_simulator(sim)

        assert result.time.shape == (0,)
        assert result.velocity.shape == (0, 3)

    def test_settling_time(self, result):
        settled = result.settling_time(0.01, np.zeros(3))

        assert settled is not None
        assert 0.0 < settled < result.time[-1]
        assert np.all(result.speed[result.time >= settled] <= 0.01)

    def test_never_settles(self, result):
        assert result.settling_time(1e-12, np.array([5.0, 0.0, 0.0])) is None

    def test_to_dataframe(self, result):
        df = result.to_dataframe()

        assert df.height == 500
        assert set(df.columns) == {
            "time", "x", "y", "z", "vx", "vy", "vz", "cmd_x", "cmd_y", "cmd_z",
        }

    def test_save_csv(self, result, tmp_path):
        path = tmp_path / "run.csv"
        result.save_csv(path)

        assert path.exists()
        assert path.read_text().splitlines()[0].startswith("time,")

    def test_plot(self, result):
        fig = plot_velocity_response(result, conserve_threshold=0.05)

        assert isinstance(fig, Figure)
        assert len(fig.axes) == 2
        plt.close(fig)
