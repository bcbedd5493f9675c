"""Step-driven translation simulator for exercising the controller.

A point-mass plant with fixed attitude and six-direction translation
thrusters. The controller owns the loop:

    - sim.vehicle_state() -> snapshot the controller consumes
    - sim.step(command) -> propagate one tick

Thrusters push the vehicle away from the side they fire toward: a
positive command on a local axis fires that axis' positive direction and
accelerates the vehicle along the negative axis.

Example:
    >>> from rcs_control import RCSVelocityController, ThrusterTable
    >>> from rcs_control.simulation import SimulationResult, Simulator
    >>>
    >>> sim = Simulator(velocity=np.array([1.0, 0.0, 0.0]),
    ...                 thrusters=ThrusterTable.uniform(1.0))
    >>> ctrl = RCSVelocityController(dt=sim.dt)
    >>> ctrl.activate()
    >>> ctrl.set_target_velocity(np.zeros(3))
    >>>
    >>> for _ in range(500):
    ...     sim.step(ctrl.drive(sim.vehicle_state()))
    >>>
    >>> result = SimulationResult.from_simulator(sim)
"""

from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from rcs_control.controller import Command
from rcs_control.frames import IDENTITY_QUATERNION, local_to_world, normalize_quaternion
from rcs_control.thrusters import ThrusterTable
from rcs_control.vehicle import TargetState, VehicleState

# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True, fastmath=True)
def _integrate(
    px: float, py: float, pz: float,
    vx: float, vy: float, vz: float,
    ax: float, ay: float, az: float,
    dt: float,
) -> tuple[float, float, float, float, float, float]:
    """Semi-implicit Euler step for a point mass."""
    vx += ax * dt
    vy += ay * dt
    vz += az * dt
    return (px + vx * dt, py + vy * dt, pz + vz * dt, vx, vy, vz)


@beartype
def thrust_acceleration(command: Command, thrusters: ThrusterTable) -> NDArray[np.float64]:
    """Local-frame acceleration produced by an actuator-frame command.

    Args:
        command: Actuator-frame command (y and z carry local Z and Y)
        thrusters: Available acceleration per direction [m/s^2]

    Returns:
        Acceleration in the local frame [m/s^2]
    """
    local = np.clip([command.x, command.z, command.y], -1.0, 1.0)
    accel = np.zeros(3)
    for axis, u in enumerate(local):
        # Direction 2*axis is the positive side, 2*axis + 1 the negative
        direction = 2 * axis if u >= 0 else 2 * axis + 1
        available = max(thrusters.acceleration[direction], 0.0)
        accel[axis] = -u * available
    return accel


# =============================================================================
# Simulator
# =============================================================================


@beartype
@dataclass
class Simulator:
    """Translational plant with fixed attitude.

    Attributes:
        velocity: World-frame velocity [m/s]
        thrusters: Available acceleration per thruster direction [m/s^2]
        position: World-frame position [m]
        orientation: Fixed attitude quaternion (local to world)
        gravity: World-frame gravitational acceleration [m/s^2]
        dt: Tick duration [s]
        target_velocity: World velocity of the tracked target, None if
            nothing is tracked [m/s]
    """
    velocity: NDArray[np.float64]
    thrusters: ThrusterTable
    position: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    orientation: NDArray[np.float64] = field(default_factory=IDENTITY_QUATERNION.copy)
    gravity: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    dt: float = 0.02
    target_velocity: NDArray[np.float64] | None = None

    # Internal
    time: float = field(default=0.0, init=False)
    _acceleration: NDArray[np.float64] = field(
        default_factory=lambda: np.zeros(3), init=False, repr=False
    )
    _history: list[tuple[float, NDArray[np.float64], NDArray[np.float64], Command]] = field(
        default_factory=list, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.orientation = normalize_quaternion(self.orientation)
        if self.dt <= 0:
            raise ValueError(f"Tick duration must be positive, got {self.dt}")

    def vehicle_state(self) -> VehicleState:
        """Snapshot for the controller (copies, safe to keep)."""
        return VehicleState(
            velocity=self.velocity.copy(),
            thrusters=self.thrusters,
            orientation=self.orientation.copy(),
            acceleration=self._acceleration.copy(),
            gravity=self.gravity.copy(),
        )

    def target_state(self) -> TargetState | None:
        """Relative motion of the tracked target, if any."""
        if self.target_velocity is None:
            return None
        return TargetState(relative_velocity=self.velocity - self.target_velocity)

    def step(self, command: Command) -> VehicleState:
        """Apply a command for one tick and propagate.

        Returns:
            Vehicle snapshot after the step
        """
        thrust_local = thrust_acceleration(command, self.thrusters)
        self._acceleration = local_to_world(self.orientation, thrust_local) + self.gravity

        px, py, pz, vx, vy, vz = _integrate(
            self.position[0], self.position[1], self.position[2],
            self.velocity[0], self.velocity[1], self.velocity[2],
            self._acceleration[0], self._acceleration[1], self._acceleration[2],
            self.dt,
        )
        self.position = np.array([px, py, pz])
        self.velocity = np.array([vx, vy, vz])
        self.time += self.dt

        self._history.append((self.time, self.position.copy(), self.velocity.copy(), command))
        return self.vehicle_state()

    def get_history(self) -> list[tuple[float, NDArray[np.float64], NDArray[np.float64], Command]]:
        """Recorded (time, position, velocity, command) per step."""
        return self._history.copy()


# =============================================================================
# Results and Analysis
# =============================================================================


@beartype
@dataclass
class SimulationResult:
    """Recorded closed-loop run.

    Attributes:
        time: Step end times [s], shape (N,)
        position: World positions [m], shape (N, 3)
        velocity: World velocities [m/s], shape (N, 3)
        command: Actuator-frame commands, shape (N, 3)
    """
    time: NDArray[np.float64]
    position: NDArray[np.float64]
    velocity: NDArray[np.float64]
    command: NDArray[np.float64]

    @classmethod
    def from_simulator(cls, sim: Simulator) -> "SimulationResult":
        """Collect the simulator history."""
        history = sim.get_history()
        if not history:
            return cls(
                time=np.zeros(0),
                position=np.zeros((0, 3)),
                velocity=np.zeros((0, 3)),
                command=np.zeros((0, 3)),
            )
        return cls(
            time=np.array([h[0] for h in history], dtype=np.float64),
            position=np.array([h[1] for h in history], dtype=np.float64),
            velocity=np.array([h[2] for h in history], dtype=np.float64),
            command=np.array([h[3].to_array() for h in history], dtype=np.float64),
        )

    @property
    def speed(self) -> NDArray[np.float64]:
        """Speed history [m/s]."""
        return np.linalg.norm(self.velocity, axis=1)

    def settling_time(self, tolerance: float, reference: NDArray[np.float64]) -> float | None:
        """First time after which the velocity stays within `tolerance` of `reference`."""
        error = np.linalg.norm(self.velocity - reference, axis=1)
        outside = np.nonzero(error > tolerance)[0]
        if len(outside) == 0:
            return float(self.time[0]) if len(self.time) else None
        last = outside[-1]
        if last + 1 >= len(self.time):
            return None
        return float(self.time[last + 1])

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame({
            "time": self.time,
            "x": self.position[:, 0],
            "y": self.position[:, 1],
            "z": self.position[:, 2],
            "vx": self.velocity[:, 0],
            "vy": self.velocity[:, 1],
            "vz": self.velocity[:, 2],
            "cmd_x": self.command[:, 0],
            "cmd_y": self.command[:, 1],
            "cmd_z": self.command[:, 2],
        })

    def save_csv(self, path) -> None:
        """Write the run to CSV."""
        self.to_dataframe().write_csv(path)
