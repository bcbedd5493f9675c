"""Control mode selection.

Decides which velocity-error source drives the controller on a tick and
holds the error memories that go with it.

Modes:
- TARGET_VELOCITY: track an absolute world velocity
- VELOCITY_ERROR: error supplied directly by an external caller
- VELOCITY_TARGET_REL: track a velocity relative to the tracked target
- POSITION_TARGET_REL: declared, never selected; the controller refuses
  to run in it
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


class ControlMode(Enum):
    """Source of the velocity error."""

    TARGET_VELOCITY = auto()
    VELOCITY_ERROR = auto()
    VELOCITY_TARGET_REL = auto()
    POSITION_TARGET_REL = auto()


def _as_vector(value: NDArray[np.float64], name: str) -> NDArray[np.float64]:
    vector = np.asarray(value, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"{name} must be shape (3,), got {vector.shape}")
    return vector.copy()


@beartype
@dataclass
class ModeSelector:
    """Active control mode plus the world-frame error memories.

    Errors follow the `current - desired` convention.

    Attributes:
        mode: Active control mode
        target_velocity: Absolute target (TARGET_VELOCITY) or desired
            relative velocity (VELOCITY_TARGET_REL) [m/s]
        error: World-frame velocity error of the latest tick [m/s]
        previous_error: Error used for the finite-difference rate term [m/s]
        previous_orientation: Vehicle orientation when `previous_error` was
            recorded; None when it was set by a caller rather than a tick
    """
    mode: ControlMode = ControlMode.VELOCITY_ERROR
    target_velocity: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    error: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    previous_error: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    previous_orientation: NDArray[np.float64] | None = None

    @beartype
    def reset(self) -> None:
        """Back to VELOCITY_ERROR with every memory zeroed."""
        self.mode = ControlMode.VELOCITY_ERROR
        self.target_velocity = np.zeros(3)
        self.error = np.zeros(3)
        self.previous_error = np.zeros(3)
        self.previous_orientation = None

    def _switch(self, mode: ControlMode) -> None:
        if mode is not self.mode:
            logger.debug("Control mode %s -> %s", self.mode.name, mode.name)
        self.mode = mode

    @beartype
    def set_target_velocity(self, velocity: NDArray[np.float64]) -> None:
        """Track an absolute world-frame velocity [m/s]."""
        self.target_velocity = _as_vector(velocity, "Target velocity")
        self._switch(ControlMode.TARGET_VELOCITY)

    @beartype
    def set_velocity_error(self, delta_v: NDArray[np.float64]) -> None:
        """Drive directly from a caller-supplied velocity change.

        Args:
            delta_v: World-frame velocity change still required [m/s].
                The stored error is its negation.

        On entry from another mode the previous-error memory is set to the
        new error, so the first rate term after the switch is zero.
        """
        self.error = -_as_vector(delta_v, "Velocity change")
        if self.mode is not ControlMode.VELOCITY_ERROR:
            self.previous_error = self.error.copy()
            self.previous_orientation = None
            self._switch(ControlMode.VELOCITY_ERROR)

    @beartype
    def set_target_relative_velocity(self, velocity: NDArray[np.float64]) -> None:
        """Track a velocity relative to the tracked target [m/s]."""
        self.target_velocity = _as_vector(velocity, "Relative velocity")
        self._switch(ControlMode.VELOCITY_TARGET_REL)

    @beartype
    def advance_previous_error(self, orientation: NDArray[np.float64]) -> None:
        """Remember the current error and attitude for the next rate term."""
        self.previous_error = self.error.copy()
        self.previous_orientation = orientation.copy()
