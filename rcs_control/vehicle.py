"""Inputs and outputs the controller exchanges with the rest of the vehicle.

- VehicleState: what the physics side reports each tick
- TargetState: the tracked target's relative motion, when there is one
- ActuatorGroup: the on/off switch of the thruster group
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from rcs_control.frames import IDENTITY_QUATERNION, normalize_quaternion
from rcs_control.thrusters import ThrusterTable

logger = logging.getLogger(__name__)

# =============================================================================
# Vehicle State
# =============================================================================


@beartype
@dataclass
class VehicleState:
    """Per-tick snapshot from the physics collaborator.

    Attributes:
        velocity: Velocity in the world frame [m/s]
        orientation: Quaternion [q0, q1, q2, q3] rotating local into world
        thrusters: Available acceleration per thruster direction
        acceleration: Total acceleration in the world frame [m/s^2]
        gravity: Gravitational acceleration in the world frame [m/s^2]

    Vehicle mass enters through the thruster table, see
    `ThrusterTable.from_thrust`.
    """
    velocity: NDArray[np.float64]
    thrusters: ThrusterTable
    orientation: NDArray[np.float64] = field(default_factory=IDENTITY_QUATERNION.copy)
    acceleration: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    gravity: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        """Validate and normalize state."""
        self.orientation = normalize_quaternion(np.asarray(self.orientation, dtype=np.float64))

        for name in ("velocity", "acceleration", "gravity"):
            value = getattr(self, name)
            if value.shape != (3,):
                raise ValueError(f"{name.capitalize()} must be shape (3,), got {value.shape}")
        if self.orientation.shape != (4,):
            raise ValueError(f"Orientation must be shape (4,), got {self.orientation.shape}")


@beartype
@dataclass
class TargetState:
    """Relative motion of the tracked target.

    Attributes:
        relative_velocity: Vehicle velocity minus target velocity, world frame [m/s]
    """
    relative_velocity: NDArray[np.float64]

    def __post_init__(self) -> None:
        if self.relative_velocity.shape != (3,):
            raise ValueError(
                f"Relative velocity must be shape (3,), got {self.relative_velocity.shape}"
            )


# =============================================================================
# Actuator Group
# =============================================================================


@runtime_checkable
class ActuatorGroup(Protocol):
    """On/off switch of the thruster group."""

    enabled: bool


@dataclass
class RCSActionGroup:
    """In-memory actuator group that records every write to `enabled`."""
    _enabled: bool = False
    writes: int = field(default=0)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.writes += 1
        self._enabled = value
        logger.debug("RCS group %s", "enabled" if value else "disabled")
