"""Plots of closed-loop controller runs.

All plots use matplotlib with the same style as the rest of the package.
"""

import matplotlib.pyplot as plt
import numpy as np
from beartype import beartype
from matplotlib.figure import Figure
from numpy.typing import NDArray

from rcs_control.simulation import SimulationResult

# =============================================================================
# Plot Style Configuration
# =============================================================================

AXIS_COLORS = ("#2E86AB", "#A23B72", "#F18F01")  # x, y, z
COLORS = {
    "target": "#454545",
    "threshold": "#C73E1D",
}

DEFAULT_FIGSIZE = (12.0, 7.0)


def _setup_style() -> None:
    """Apply a consistent plot style."""
    plt.rcParams.update({
        "font.size": 10,
        "axes.titlesize": 12,
        "axes.labelsize": 10,
        "legend.fontsize": 9,
        "axes.spines.top": False,
        "axes.spines.right": False,
    })


# =============================================================================
# Velocity Response
# =============================================================================


@beartype
def plot_velocity_response(
    result: SimulationResult,
    target_velocity: NDArray[np.float64] | None = None,
    conserve_threshold: float | None = None,
    figsize: tuple[float, float] = DEFAULT_FIGSIZE,
) -> Figure:
    """Velocity error and actuator commands against time.

    Args:
        result: Recorded run
        target_velocity: World velocity being tracked; zero if None [m/s]
        conserve_threshold: Draw the conservation threshold on the error plot
        figsize: Figure size

    Returns:
        matplotlib Figure with velocity error and command subplots
    """
    _setup_style()

    reference = np.zeros(3) if target_velocity is None else target_velocity
    error = result.velocity - reference

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=figsize, sharex=True)

    for axis, label in enumerate("xyz"):
        ax1.plot(result.time, error[:, axis], color=AXIS_COLORS[axis], linewidth=1.5,
                 label=f"v{label} error")
    ax1.plot(result.time, np.linalg.norm(error, axis=1), color=COLORS["target"],
             linestyle="--", linewidth=1.0, label="|error|")
    if conserve_threshold is not None:
        ax1.axhline(y=conserve_threshold, color=COLORS["threshold"], linestyle=":",
                    alpha=0.7, label="Conservation threshold")
    ax1.set_ylabel("Velocity error (m/s)")
    ax1.set_title("Velocity Error")
    ax1.grid(True, alpha=0.3)
    ax1.legend()

    for axis, label in enumerate("xyz"):
        ax2.step(result.time, result.command[:, axis], where="post",
                 color=AXIS_COLORS[axis], linewidth=1.2, label=f"cmd {label}")
    ax2.set_ylim(-1.1, 1.1)
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Command (-)")
    ax2.set_title("Actuator Commands")
    ax2.grid(True, alpha=0.3)
    ax2.legend()

    fig.tight_layout()
    return fig
