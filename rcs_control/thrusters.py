"""Thruster directions and velocity-error allocation.

The vehicle carries translation thrusters along six fixed local
directions. Each direction reports its own available acceleration
(thrust divided by vehicle mass), so asymmetric layouts such as a strong
aft cluster and weak lateral blocks are handled per direction instead of
per axis.

A direction's entry is indexed by the side it fires toward. A positive
projection of the local velocity error onto a direction means that
direction's thrusters reduce the error; the opposite sign belongs to the
opposing direction's entry.

Example:
    >>> from rcs_control.thrusters import ThrusterTable, allocate
    >>>
    >>> table = ThrusterTable.from_thrust(
    ...     np.array([400.0, 400.0, 200.0, 200.0, 800.0, 100.0]),
    ...     mass=200.0,
    ... )
    >>> raw = allocate(np.array([0.5, 0.0, -0.2]), table, dt=0.02)
"""

from dataclasses import dataclass
from enum import IntEnum

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

# Projections at or below this magnitude are numerical noise [m/s]
DEADBAND: float = 0.001

# Cap on per-direction magnitudes, far beyond full actuation
ACTION_LIMIT: float = 1e9

# =============================================================================
# Directions
# =============================================================================


class ThrusterDirection(IntEnum):
    """The six fixed thruster directions in the vehicle-local frame."""
    RIGHT = 0    # +X
    LEFT = 1     # -X
    UP = 2       # +Y
    DOWN = 3     # -Y
    FORWARD = 4  # +Z
    BACK = 5     # -Z

    @property
    def unit(self) -> NDArray[np.float64]:
        """Unit vector of this direction in the local frame."""
        return DIRECTION_VECTORS[self].copy()


# Row i is the unit vector of ThrusterDirection(i)
DIRECTION_VECTORS: NDArray[np.float64] = np.array([
    [1.0, 0.0, 0.0],
    [-1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0],
    [0.0, -1.0, 0.0],
    [0.0, 0.0, 1.0],
    [0.0, 0.0, -1.0],
])


# =============================================================================
# Availability Table
# =============================================================================


@beartype
@dataclass
class ThrusterTable:
    """Available acceleration per thruster direction.

    Attributes:
        acceleration: shape (6,) array indexed by ThrusterDirection [m/s^2].
            Zero or negative entries mark a direction as unavailable.
    """
    acceleration: NDArray[np.float64]

    def __post_init__(self) -> None:
        self.acceleration = np.asarray(self.acceleration, dtype=np.float64)
        if self.acceleration.shape != (len(ThrusterDirection),):
            raise ValueError(
                f"Thruster table must be shape (6,), got {self.acceleration.shape}"
            )

    @classmethod
    def uniform(cls, acceleration: float) -> "ThrusterTable":
        """Same available acceleration in every direction."""
        return cls(acceleration=np.full(len(ThrusterDirection), acceleration))

    @classmethod
    def from_thrust(cls, thrust: NDArray[np.float64], mass: float) -> "ThrusterTable":
        """Build the table from available thrust per direction.

        Args:
            thrust: shape (6,) available thrust per direction [N]
            mass: current vehicle mass [kg]
        """
        if mass <= 0:
            raise ValueError(f"Vehicle mass must be positive, got {mass}")
        return cls(acceleration=np.asarray(thrust, dtype=np.float64) / mass)

    def __getitem__(self, direction: ThrusterDirection) -> float:
        return float(self.acceleration[direction])

    @property
    def available(self) -> NDArray[np.bool_]:
        """Mask of directions that can fire."""
        return self.acceleration > 0


# =============================================================================
# Allocation
# =============================================================================


@beartype
def direction_actions(
    local_error: NDArray[np.float64],
    thrusters: ThrusterTable,
    dt: float,
) -> NDArray[np.float64]:
    """Raw actuation magnitude for each thruster direction.

    For each direction the local error is projected onto its unit vector
    and divided by the velocity change that direction can deliver in one
    tick. Directions that are unavailable, whose projection is inside the
    deadband, or whose magnitude is not positive get zero. Magnitudes are
    capped at ACTION_LIMIT.

    Args:
        local_error: Velocity error in the local frame [m/s]
        thrusters: Available acceleration per direction
        dt: Tick duration [s]

    Returns:
        shape (6,) non-negative magnitudes indexed by ThrusterDirection
    """
    actions = np.zeros(len(ThrusterDirection))
    if dt <= 0:
        return actions

    projections = DIRECTION_VECTORS @ local_error
    accel = thrusters.acceleration
    usable = (accel > 0) & (np.abs(projections) > DEADBAND)

    # Vanishing availability overflows to inf before the cap
    with np.errstate(over="ignore", divide="ignore"):
        actions[usable] = projections[usable] / (accel[usable] * dt)
    return np.clip(actions, 0.0, ACTION_LIMIT)


@beartype
def allocate(
    local_error: NDArray[np.float64],
    thrusters: ThrusterTable,
    dt: float,
) -> NDArray[np.float64]:
    """Raw local-frame command vector for a local velocity error.

    Each local axis is its positive direction's magnitude from
    `direction_actions` minus its negative direction's. The result is
    neither compensated nor clamped.
    """
    actions = direction_actions(local_error, thrusters, dt)
    return actions[0::2] - actions[1::2]
