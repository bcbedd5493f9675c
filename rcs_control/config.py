"""Tunable parameters of the velocity controller."""

from dataclasses import dataclass

from beartype import beartype


@beartype
@dataclass
class RCSControllerConfig:
    """Controller configuration.

    Attributes:
        tf: Response time constant [s]. Raised to two ticks when smaller,
            and the raised value is kept
        conserve_fuel: Suppress thrusting while the error is small
        conserve_threshold: Local error magnitude at or below which thrusters
            stay off when conserving [m/s]
        output_limits: (min, max) per-axis compensator output
    """
    tf: float = 1.0
    conserve_fuel: bool = False
    conserve_threshold: float = 0.05
    output_limits: tuple[float, float] = (-1.0, 1.0)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.tf <= 0:
            raise ValueError(f"Time constant must be positive, got {self.tf}")
        if self.conserve_threshold < 0:
            raise ValueError(
                f"Conservation threshold must be non-negative, got {self.conserve_threshold}"
            )
        low, high = self.output_limits
        if low >= high:
            raise ValueError(f"Output limits must be increasing, got {self.output_limits}")
