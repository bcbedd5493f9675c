"""Reference frame transforms for the velocity controller.

The controller receives its velocity error in the world frame and works
in the vehicle-local frame, where the thruster directions are fixed.

Quaternion convention:
- Scalar-first: q = [q0, q1, q2, q3] where q0 is the scalar part
- A vehicle orientation quaternion rotates vehicle-local vectors into the
  world frame, so the world-to-local transform is the inverse rotation

Example:
    >>> from rcs_control.frames import axis_angle_to_quaternion, world_to_local
    >>>
    >>> # Vehicle yawed 90 degrees about world Z
    >>> q = axis_angle_to_quaternion(np.array([0.0, 0.0, 1.0]), np.pi / 2)
    >>> world_to_local(q, np.array([0.0, 1.0, 0.0]))  # -> [1, 0, 0]
"""

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

IDENTITY_QUATERNION = np.array([1.0, 0.0, 0.0, 0.0])

# =============================================================================
# Quaternion Utilities
# =============================================================================


@beartype
def normalize_quaternion(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Normalize a quaternion to unit length.

    Degenerate (near-zero) quaternions collapse to the identity rotation.
    """
    norm = np.linalg.norm(q)
    if norm < 1e-10:
        return IDENTITY_QUATERNION.copy()
    return q / norm


@beartype
def quaternion_to_dcm(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Rotation matrix of a quaternion.

    Args:
        q: Orientation quaternion [q0, q1, q2, q3]

    Returns:
        3x3 matrix R with R @ v_local = v_world
    """
    q0, q1, q2, q3 = normalize_quaternion(q)

    return np.array([
        [1 - 2*(q2**2 + q3**2), 2*(q1*q2 - q0*q3), 2*(q1*q3 + q0*q2)],
        [2*(q1*q2 + q0*q3), 1 - 2*(q1**2 + q3**2), 2*(q2*q3 - q0*q1)],
        [2*(q1*q3 - q0*q2), 2*(q2*q3 + q0*q1), 1 - 2*(q1**2 + q2**2)],
    ])


@beartype
def axis_angle_to_quaternion(axis: NDArray[np.float64], angle: float) -> NDArray[np.float64]:
    """Quaternion for a rotation of `angle` radians about `axis`.

    A zero axis gives the identity rotation.
    """
    norm = np.linalg.norm(axis)
    if norm < 1e-10:
        return IDENTITY_QUATERNION.copy()
    half = 0.5 * angle
    return np.concatenate([[np.cos(half)], np.sin(half) * axis / norm])


# =============================================================================
# Frame Transforms
# =============================================================================


@beartype
def world_to_local(
    orientation: NDArray[np.float64],
    vector: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Express a world-frame vector in the vehicle-local frame."""
    return quaternion_to_dcm(orientation).T @ vector


@beartype
def local_to_world(
    orientation: NDArray[np.float64],
    vector: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Express a vehicle-local vector in the world frame."""
    return quaternion_to_dcm(orientation) @ vector
