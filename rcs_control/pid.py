"""Vector PID compensator for translation commands.

The compensator takes the thruster allocator's raw command as its error
input and an externally supplied rate term (how fast the velocity error
is changing) for the derivative action:

    u = kp * e + integral(ki * e) + kd * omega

Gains are not tuned by hand. They derive from a single time constant Tf
with a fixed analytic rule:

    kd = 0.53 / Tf
    kp = kd / (3 * sqrt(2) * Tf)
    ki = kp / (12 * sqrt(2) * Tf)

Tf is clamped to at least two ticks so high simulation rates cannot
drive the loop unstable.

Example:
    >>> from rcs_control.pid import PIDGains, VectorPIDController, clamp_time_constant
    >>>
    >>> tf = clamp_time_constant(1.0, dt=0.02)
    >>> ctrl = VectorPIDController(output_limits=(-1.0, 1.0))
    >>> ctrl.gains = PIDGains.from_time_constant(tf)
    >>> command = ctrl.compute(raw_command, omega, dt=0.02)
"""

from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

SQRT2 = np.sqrt(2.0)

# Integrate only while the derivative action is below this share of the
# output limit; otherwise bleed the accumulator
WINDUP_FRACTION: float = 0.6
WINDUP_DECAY: float = 0.9

# =============================================================================
# PID Gains
# =============================================================================


@beartype
def clamp_time_constant(tf: float, dt: float) -> float:
    """Raise Tf to the two-tick floor if it is below it. Never lowers Tf."""
    return max(tf, 2.0 * dt)


@beartype
@dataclass
class PIDGains:
    """PID controller gains.

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
    """
    kp: float = 0.0
    ki: float = 0.0
    kd: float = 0.0

    @classmethod
    def from_time_constant(cls, tf: float) -> "PIDGains":
        """Gains for time constant `tf` [s].

        `tf` must already respect the tick floor, see `clamp_time_constant`.
        """
        if tf <= 0:
            raise ValueError(f"Time constant must be positive, got {tf}")
        kd = 0.53 / tf
        kp = kd / (3.0 * SQRT2 * tf)
        ki = kp / (12.0 * SQRT2 * tf)
        return cls(kp=float(kp), ki=float(ki), kd=float(kd))


# =============================================================================
# Vector PID Controller
# =============================================================================


@beartype
@dataclass
class VectorPIDController:
    """Three-axis PID with derivative supplied by the caller.

    Anti-windup: on each axis the integrator accumulates only while the
    derivative action is below WINDUP_FRACTION of the upper output limit,
    and decays by WINDUP_DECAY per tick otherwise.

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
        output_limits: (min, max) per-axis output limits
    """
    kp: float = 0.0
    ki: float = 0.0
    kd: float = 0.0
    output_limits: tuple[float, float] = (-1.0, 1.0)

    # Internal state
    _integral: NDArray[np.float64] = field(
        default_factory=lambda: np.zeros(3), init=False, repr=False
    )

    def __post_init__(self) -> None:
        low, high = self.output_limits
        if low >= high:
            raise ValueError(f"Output limits must be increasing, got {self.output_limits}")

    @beartype
    def reset(self) -> None:
        """Clear the integrator."""
        self._integral = np.zeros(3)

    @beartype
    def compute(
        self,
        error: NDArray[np.float64],
        omega: NDArray[np.float64],
        dt: float,
    ) -> NDArray[np.float64]:
        """Compute the compensated command.

        Args:
            error: Raw command from the allocator (local frame)
            omega: Rate of change of the velocity error (local frame)
            dt: Tick duration [s]

        Returns:
            Command vector clipped to output_limits
        """
        low, high = self.output_limits

        d_term = self.kd * omega

        winding = np.abs(d_term) < WINDUP_FRACTION * high
        self._integral = np.where(
            winding,
            self._integral + error * self.ki * dt,
            WINDUP_DECAY * self._integral,
        )

        p_term = self.kp * error

        return np.clip(p_term + d_term + self._integral, low, high)

    @property
    def integral(self) -> NDArray[np.float64]:
        """Current integrator accumulator (copy)."""
        return self._integral.copy()

    @property
    def gains(self) -> PIDGains:
        """Get current gains as PIDGains object."""
        return PIDGains(kp=self.kp, ki=self.ki, kd=self.kd)

    @gains.setter
    def gains(self, value: PIDGains) -> None:
        """Set gains from PIDGains object."""
        self.kp = value.kp
        self.ki = value.ki
        self.kd = value.kd
