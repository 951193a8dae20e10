"""Pytest fixtures for hybrid_dynamics tests."""

import numpy as np
import pytest

from hybrid_dynamics.chain import Chain
from hybrid_dynamics.robot_params import UR5eParameters, planar_arm_chain

GRAVITY = 9.81


@pytest.fixture
def ur5e_params() -> UR5eParameters:
    """Fixture providing UR5e robot parameters."""
    return UR5eParameters()


@pytest.fixture
def ur5e_chain(ur5e_params) -> Chain:
    """UR5e chain built from its DH table."""
    return ur5e_params.to_chain()


@pytest.fixture
def planar_arm() -> Chain:
    """Three-link planar arm rotating about base z."""
    return planar_arm_chain([0.5, 0.4, 0.3], [2.0, 1.5, 1.0])


@pytest.fixture
def gravity_root_acc() -> np.ndarray:
    """Root acceleration equivalent to gravity along -z [alpha, a]."""
    return np.array([0.0, 0.0, 0.0, 0.0, 0.0, GRAVITY])


@pytest.fixture
def random_config() -> np.ndarray:
    """Random joint configuration within limits."""
    np.random.seed(42)
    return np.random.uniform(-np.pi, np.pi, 6)


@pytest.fixture
def random_velocity() -> np.ndarray:
    """Random joint velocity."""
    np.random.seed(43)
    return np.random.uniform(-1.0, 1.0, 6)


@pytest.fixture
def random_torque() -> np.ndarray:
    """Random applied joint torque."""
    np.random.seed(44)
    return np.random.uniform(-5.0, 5.0, 6)
