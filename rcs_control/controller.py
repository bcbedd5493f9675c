"""Closed-loop translation velocity controller.

Turns a velocity error into per-axis thruster commands once per fixed
tick. Data flow on each tick:

1. Mode selection picks the error source
2. The world-frame error is expressed in the vehicle-local frame
3. The allocator projects it onto the six thruster directions
4. The PID compensator filters the raw command using a rate feedback
   term, and the fuel gate suppresses negligible errors

Example:
    >>> from rcs_control import RCSVelocityController, RCSControllerConfig
    >>>
    >>> ctrl = RCSVelocityController(dt=0.02, config=RCSControllerConfig(tf=1.0))
    >>> ctrl.activate()
    >>> ctrl.set_target_velocity(np.zeros(3))
    >>>
    >>> # Each tick
    >>> command = ctrl.drive(vehicle_state)
    >>> mixer.translate(command.x, command.y, command.z)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from rcs_control.config import RCSControllerConfig
from rcs_control.frames import world_to_local
from rcs_control.modes import ControlMode, ModeSelector
from rcs_control.pid import PIDGains, VectorPIDController, clamp_time_constant
from rcs_control.thrusters import allocate
from rcs_control.vehicle import ActuatorGroup, RCSActionGroup, TargetState, VehicleState

logger = logging.getLogger(__name__)

# (last_command, command, tf, dt) -> filtered command
OutputFilter = Callable[
    [NDArray[np.float64], NDArray[np.float64], float, float],
    NDArray[np.float64],
]

# =============================================================================
# Command Output
# =============================================================================


class Command(NamedTuple):
    """Translation command in the actuator frame.

    Each axis is the fraction of full actuation in [-1, 1]. The actuator
    frame swaps the last two local axes: y carries local Z and z carries
    local Y.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_local(cls, local: NDArray[np.float64]) -> "Command":
        """Clamp a local-frame command and reorder it for the actuators."""
        x, y, z = np.clip(local, -1.0, 1.0)
        return cls(x=float(x), y=float(z), z=float(y))

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z])


@beartype
def low_pass_filter(
    last: NDArray[np.float64],
    command: NDArray[np.float64],
    tf: float,
    dt: float,
) -> NDArray[np.float64]:
    """First-order smoothing of successive commands.

    Not installed by default; pass as `output_filter` to enable.
    """
    return last + (command - last) / (tf / dt + 1.0)


# =============================================================================
# Controller
# =============================================================================


@beartype
@dataclass
class RCSVelocityController:
    """Velocity controller for six-direction translation thrusters.

    The controller is inert until `activate()` is called. Deactivation
    (explicit, or because relative mode lost its target) switches the
    actuator group off and clears all internal memories.

    Attributes:
        dt: Fixed tick duration [s]
        config: Tunable parameters
        actuators: Thruster group switch, written only on change
        output_filter: Optional post-filter on the compensated command
    """
    dt: float = 0.02
    config: RCSControllerConfig = field(default_factory=RCSControllerConfig)
    actuators: ActuatorGroup = field(default_factory=RCSActionGroup)
    output_filter: OutputFilter | None = None

    # Internal state
    _pid: VectorPIDController = field(init=False, repr=False)
    _modes: ModeSelector = field(default_factory=ModeSelector, init=False, repr=False)
    _last_command: NDArray[np.float64] = field(
        default_factory=lambda: np.zeros(3), init=False, repr=False
    )
    _feedback: NDArray[np.float64] = field(
        default_factory=lambda: np.zeros(3), init=False, repr=False
    )
    _active: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.dt <= 0:
            raise ValueError(f"Tick duration must be positive, got {self.dt}")
        self._pid = VectorPIDController(output_limits=self.config.output_limits)
        self.update_gains()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @beartype
    def reset(self) -> None:
        """Zero the integrator, error memories and last command."""
        self._pid.reset()
        self._modes.reset()
        self._last_command = np.zeros(3)
        self._feedback = np.zeros(3)

    @beartype
    def activate(self) -> None:
        """Start controlling from a clean state in VELOCITY_ERROR mode."""
        self.update_gains()
        self.reset()
        self._active = True
        logger.info("RCS velocity controller activated (tf=%.3f s)", self.config.tf)

    @beartype
    def deactivate(self) -> bool:
        """Stop controlling, switch the thrusters off and forget all state."""
        self._active = False
        self._set_actuators(False)
        self.reset()
        logger.info("RCS velocity controller deactivated")
        return True

    @property
    def active(self) -> bool:
        return self._active

    # -------------------------------------------------------------------------
    # Setpoints
    # -------------------------------------------------------------------------

    @beartype
    def set_target_velocity(self, velocity: NDArray[np.float64]) -> None:
        """Track an absolute world-frame velocity [m/s]."""
        self._modes.set_target_velocity(velocity)

    @beartype
    def set_velocity_error(self, delta_v: NDArray[np.float64]) -> None:
        """Drive from a world-frame velocity change still required [m/s]."""
        self._modes.set_velocity_error(delta_v)

    @beartype
    def set_target_relative_velocity(self, velocity: NDArray[np.float64]) -> None:
        """Track a velocity relative to the tracked target [m/s]."""
        self._modes.set_target_relative_velocity(velocity)

    # -------------------------------------------------------------------------
    # Tuning
    # -------------------------------------------------------------------------

    @beartype
    def update_gains(self) -> PIDGains:
        """Recompute the compensator gains from the current time constant."""
        tf = clamp_time_constant(self.config.tf, self.dt)
        if tf != self.config.tf:
            logger.debug("Time constant %.4f s raised to %.4f s", self.config.tf, tf)
            self.config.tf = tf

        gains = PIDGains.from_time_constant(tf)
        self._pid.gains = gains
        return gains

    @property
    def accel_factor(self) -> float:
        """Share of available acceleration the loop actually commands.

        Equal to the proportional gain; other modules scale RCS throttle
        estimates by it.
        """
        return self._pid.kp

    @property
    def gains(self) -> PIDGains:
        return self._pid.gains

    @property
    def mode(self) -> ControlMode:
        return self._modes.mode

    @property
    def last_command(self) -> NDArray[np.float64]:
        """Last compensated command in the local frame, before clamping."""
        return self._last_command.copy()

    @property
    def feedback(self) -> NDArray[np.float64]:
        """Rate feedback term of the last actuating tick (local frame)."""
        return self._feedback.copy()

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    @beartype
    def drive(self, vehicle: VehicleState, target: TargetState | None = None) -> Command:
        """Run one control tick.

        Args:
            vehicle: Current vehicle snapshot
            target: Tracked target, or None when nothing is tracked

        Returns:
            Actuator-frame command; all zero when inactive, when relative
            mode has no target, or when the fuel gate holds
        """
        if not self._active:
            return Command()

        self.update_gains()

        world_error = self._world_error(vehicle, target)
        if world_error is None:
            logger.warning("Relative velocity mode without a tracked target, deactivating")
            self.deactivate()
            return Command()

        local_error = world_to_local(vehicle.orientation, world_error)

        cfg = self.config
        if cfg.conserve_fuel and np.linalg.norm(local_error) <= cfg.conserve_threshold:
            logger.debug(
                "Error %.4f m/s within conservation threshold, thrusters off",
                np.linalg.norm(local_error),
            )
            self._set_actuators(False)
            return Command()

        self._set_actuators(True)

        raw = allocate(local_error, vehicle.thrusters, self.dt)
        self._feedback = self._feedback_term(vehicle)
        output = self._pid.compute(raw, self._feedback, self.dt)

        if self.output_filter is not None:
            output = self.output_filter(self._last_command, output, cfg.tf, self.dt)

        self._last_command = output
        return Command.from_local(output)

    def _world_error(
        self,
        vehicle: VehicleState,
        target: TargetState | None,
    ) -> NDArray[np.float64] | None:
        """World-frame error for the active mode, None if the target is missing."""
        modes = self._modes

        if modes.mode is ControlMode.TARGET_VELOCITY:
            # Gravity is left out: it acts on the target as well and the
            # target position is unknown here. Negligible at docking range.
            modes.error = vehicle.velocity - modes.target_velocity
        elif modes.mode is ControlMode.VELOCITY_ERROR:
            pass
        elif modes.mode is ControlMode.VELOCITY_TARGET_REL:
            if target is None:
                return None
            modes.error = target.relative_velocity - modes.target_velocity
        else:
            raise NotImplementedError(f"Control mode {modes.mode.name} is not supported")

        return modes.error

    def _feedback_term(self, vehicle: VehicleState) -> NDArray[np.float64]:
        """Rate of change of the local-frame velocity error."""
        modes = self._modes
        q = vehicle.orientation

        if modes.mode is ControlMode.TARGET_VELOCITY:
            return world_to_local(q, vehicle.acceleration - vehicle.gravity)

        # Each error is expressed in the frame of the tick it was seen on.
        # A caller-set previous error has no attitude of its own.
        q_prev = q if modes.previous_orientation is None else modes.previous_orientation
        rate = (
            world_to_local(q, modes.error) - world_to_local(q_prev, modes.previous_error)
        ) / self.dt
        modes.advance_previous_error(q)
        return rate

    def _set_actuators(self, enabled: bool) -> None:
        if self.actuators.enabled != enabled:
            self.actuators.enabled = enabled
