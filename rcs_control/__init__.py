"""RCS Control - Translation velocity control with six-direction thrusters.

This package turns a velocity error into per-axis reaction-thruster
commands: frame transformation, per-direction allocation for asymmetric
thruster layouts, PID compensation with rate feedback, and a
fuel-conservation gate.

Example:
    >>> import numpy as np
    >>> from rcs_control import RCSVelocityController, ThrusterTable, VehicleState
    >>>
    >>> ctrl = RCSVelocityController(dt=0.02)
    >>> ctrl.activate()
    >>> ctrl.set_target_velocity(np.zeros(3))
    >>>
    >>> vehicle = VehicleState(
    ...     velocity=np.array([0.5, 0.0, 0.0]),
    ...     thrusters=ThrusterTable.uniform(1.0),
    ... )
    >>> command = ctrl.drive(vehicle)
    >>> print(command.x, command.y, command.z)
"""

__version__ = "0.1.0"

from rcs_control.config import RCSControllerConfig
from rcs_control.controller import (
    Command,
    OutputFilter,
    RCSVelocityController,
    low_pass_filter,
)
from rcs_control.frames import (
    axis_angle_to_quaternion,
    local_to_world,
    world_to_local,
)
from rcs_control.modes import ControlMode, ModeSelector
from rcs_control.pid import PIDGains, VectorPIDController, clamp_time_constant
from rcs_control.thrusters import (
    ACTION_LIMIT,
    DEADBAND,
    ThrusterDirection,
    ThrusterTable,
    allocate,
    direction_actions,
)
from rcs_control.vehicle import ActuatorGroup, RCSActionGroup, TargetState, VehicleState

__all__ = [
    # Version
    "__version__",
    # Controller
    "RCSVelocityController",
    "RCSControllerConfig",
    "Command",
    "OutputFilter",
    "low_pass_filter",
    # Modes
    "ControlMode",
    "ModeSelector",
    # Compensator
    "PIDGains",
    "VectorPIDController",
    "clamp_time_constant",
    # Thrusters
    "ACTION_LIMIT",
    "DEADBAND",
    "ThrusterDirection",
    "ThrusterTable",
    "allocate",
    "direction_actions",
    # Frames
    "axis_angle_to_quaternion",
    "world_to_local",
    "local_to_world",
    # Vehicle interfaces
    "VehicleState",
    "TargetState",
    "ActuatorGroup",
    "RCSActionGroup",
]
