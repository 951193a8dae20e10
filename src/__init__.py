"""Hybrid dynamics package for serial kinematic chains.

This package provides:
- Spatial algebra and spatial inertia utilities ([ω, v] twist convention)
- A serial chain model and robot presets
- The Vereshchagin hybrid dynamics solver (constrained forward dynamics)
- Recursive Newton-Euler inverse and forward dynamics

Based on Vereshchagin (1989) and Lynch and Park (2017), Chapter 8.
"""

from hybrid_dynamics.chain import (
    Chain,
    Joint,
    JointType,
    Segment,
)
from hybrid_dynamics.config import SolverConfig
from hybrid_dynamics.kinematics import (
    forward_kinematics,
    forward_kinematics_all_frames,
)
from hybrid_dynamics.newton_euler import (
    ChainFdSolverRNE,
    ChainIdSolverRNE,
    DynamicsState,
)
from hybrid_dynamics.robot_params import (
    RobotParametersBase,
    UR5eParameters,
    create_ur5e_parameters,
    pendulum_chain,
    planar_arm_chain,
)
from hybrid_dynamics.solver import (
    ChainFdSolver,
    ChainHdSolver,
    ChainIdSolver,
    Solver,
    SolverError,
    str_error,
)
from hybrid_dynamics.spatial_inertia import (
    spatial_inertia_at_com,
    spatial_inertia_at_frame,
    transform_spatial_inertia,
)
from hybrid_dynamics.vereshchagin import (
    ChainHdSolverVereshchagin,
    SegmentRecord,
)

__all__ = [
    # chain
    'Chain',
    'Joint',
    'JointType',
    'Segment',
    # config
    'SolverConfig',
    # kinematics
    'forward_kinematics',
    'forward_kinematics_all_frames',
    # newton_euler
    'ChainFdSolverRNE',
    'ChainIdSolverRNE',
    'DynamicsState',
    # robot_params
    'RobotParametersBase',
    'UR5eParameters',
    'create_ur5e_parameters',
    'pendulum_chain',
    'planar_arm_chain',
    # solver
    'ChainFdSolver',
    'ChainHdSolver',
    'ChainIdSolver',
    'Solver',
    'SolverError',
    'str_error',
    # spatial_inertia
    'spatial_inertia_at_com',
    'spatial_inertia_at_frame',
    'transform_spatial_inertia',
    # vereshchagin
    'ChainHdSolverVereshchagin',
    'SegmentRecord',
]
