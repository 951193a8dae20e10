"""Tests for newton_euler module."""

import numpy as np
import pytest

from hybrid_dynamics.chain import JointType
from hybrid_dynamics.newton_euler import ChainFdSolverRNE, ChainIdSolverRNE, DynamicsState
from hybrid_dynamics.robot_params import pendulum_chain
from hybrid_dynamics.solver import SolverError


@pytest.fixture
def ur5e_dynamics(ur5e_chain, gravity_root_acc):
    """Inverse dynamics of the UR5e under gravity."""
    return ChainIdSolverRNE(ur5e_chain, gravity_root_acc)


@pytest.fixture
def ur5e_dynamics_no_gravity(ur5e_chain):
    """Inverse dynamics of the UR5e without gravity."""
    return ChainIdSolverRNE(ur5e_chain)


class TestDynamicsState:
    """Tests for the intermediate state."""

    def test_state_attributes(self, ur5e_dynamics):
        tau, state = ur5e_dynamics.inverse_dynamics_full(np.zeros(6), np.zeros(6), np.zeros(6))
        assert isinstance(state, DynamicsState)
        assert tau.shape == (6,)
        assert len(state.twists) == 6
        assert len(state.twist_dots) == 6
        assert len(state.wrenches) == 6
        assert len(state.transforms) == 6


class TestInverseDynamics:
    """Tests for inverse dynamics computation."""

    def test_static_equilibrium(self, ur5e_dynamics):
        """At rest (dq=ddq=0), torque should equal gravity torques."""
        q = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
        tau = ur5e_dynamics.inverse_dynamics(q, np.zeros(6), np.zeros(6))
        np.testing.assert_array_almost_equal(tau, ur5e_dynamics.gravity_torques(q))

    def test_zero_gravity_no_motion(self, ur5e_dynamics_no_gravity):
        """With no gravity and no motion, torque should be zero."""
        q = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
        tau = ur5e_dynamics_no_gravity.inverse_dynamics(q, np.zeros(6), np.zeros(6))
        np.testing.assert_array_almost_equal(tau, np.zeros(6), decimal=10)

    def test_full_dynamics_equation(self, ur5e_dynamics):
        """Verify τ = M(q) @ ddq + c(q, dq) + g(q)."""
        np.random.seed(42)
        q = np.random.uniform(-np.pi / 2, np.pi / 2, 6)
        dq = np.random.uniform(-1.0, 1.0, 6)
        ddq = np.random.uniform(-0.5, 0.5, 6)

        tau = ur5e_dynamics.inverse_dynamics(q, dq, ddq)

        M = ur5e_dynamics.mass_matrix(q)
        g = ur5e_dynamics.gravity_torques(q)
        c = ur5e_dynamics.coriolis_vector(q, dq)

        np.testing.assert_array_almost_equal(tau, M @ ddq + c + g, decimal=8)

    def test_coriolis_is_quadratic(self, ur5e_dynamics, random_config, random_velocity):
        c1 = ur5e_dynamics.coriolis_vector(random_config, random_velocity)
        c2 = ur5e_dynamics.coriolis_vector(random_config, 2.0 * random_velocity)
        np.testing.assert_allclose(c2, 4.0 * c1, atol=1e-10)

    def test_pendulum_gravity_torque(self):
        """Holding a horizontal pendulum needs τ = -m g L."""
        chain = pendulum_chain(length=0.7, mass=2.0, joint_type=JointType.ROT_Y)
        solver = ChainIdSolverRNE(chain, np.array([0.0, 0.0, 0.0, 0.0, 0.0, 9.81]))
        tau = solver.gravity_torques(np.zeros(1))
        # rod along +x, gravity along -z: gravity pulls with +m g L about y
        np.testing.assert_allclose(tau, [-2.0 * 9.81 * 0.7])

    def test_external_wrench(self):
        """A force on the pendulum tip is balanced by the joint torque."""
        chain = pendulum_chain(length=0.5, mass=1.0)
        solver = ChainIdSolverRNE(chain)
        f_ext = np.array([[0.0, 0.0, 0.0, 0.0, 4.0, 0.0]])
        tau = solver.inverse_dynamics(np.zeros(1), np.zeros(1), np.zeros(1), f_ext)
        # the force pushes with moment +0.5 * 4 about z, the joint must resist it
        np.testing.assert_allclose(tau, [-2.0])


class TestMassMatrix:
    """Tests for the joint-space mass matrix."""

    def test_symmetric_positive_definite(self, ur5e_dynamics, random_config):
        M = ur5e_dynamics.mass_matrix(random_config)
        np.testing.assert_allclose(M, M.T, atol=1e-10)
        assert np.all(np.linalg.eigvalsh(M) > 0.0)

    def test_independent_of_gravity(self, ur5e_dynamics, ur5e_dynamics_no_gravity, random_config):
        np.testing.assert_allclose(
            ur5e_dynamics.mass_matrix(random_config),
            ur5e_dynamics_no_gravity.mass_matrix(random_config),
        )


class TestCartToJnt:
    """Tests for the return-code interface."""

    def test_fills_torques(self, ur5e_dynamics, random_config, random_velocity):
        torques = np.zeros(6)
        ddq = np.full(6, 0.1)
        code = ur5e_dynamics.cart_to_jnt(random_config, random_velocity, ddq, None, torques)
        assert code == SolverError.E_NOERROR
        np.testing.assert_allclose(
            torques, ur5e_dynamics.inverse_dynamics(random_config, random_velocity, ddq)
        )

    def test_size_mismatch(self, ur5e_dynamics):
        torques = np.zeros(6)
        code = ur5e_dynamics.cart_to_jnt(np.zeros(5), np.zeros(6), np.zeros(6), None, torques)
        assert code == SolverError.E_SIZE_MISMATCH_Q
        code = ur5e_dynamics.cart_to_jnt(np.zeros(6), np.zeros(6), np.zeros(6), np.zeros((5, 6)), torques)
        assert code == SolverError.E_SIZE_MISMATCH_FEXT
        assert ur5e_dynamics.get_error() == SolverError.E_SIZE_MISMATCH_FEXT


class TestForwardDynamics:
    """Tests for forward dynamics through the mass matrix."""

    def test_inverts_inverse_dynamics(self, ur5e_chain, gravity_root_acc, random_config, random_velocity):
        id_solver = ChainIdSolverRNE(ur5e_chain, gravity_root_acc)
        fd_solver = ChainFdSolverRNE(ur5e_chain, gravity_root_acc)
        ddq_expected = np.array([0.5, -0.2, 0.3, 1.0, -0.7, 0.1])
        tau = id_solver.inverse_dynamics(random_config, random_velocity, ddq_expected)

        ddq = np.zeros(6)
        code = fd_solver.cart_to_jnt(random_config, random_velocity, tau, None, ddq)
        assert code == SolverError.E_NOERROR
        np.testing.assert_allclose(ddq, ddq_expected, atol=1e-8)

    def test_size_mismatch_leaves_output(self, ur5e_chain):
        fd_solver = ChainFdSolverRNE(ur5e_chain)
        ddq = np.full(6, 7.0)
        code = fd_solver.cart_to_jnt(np.zeros(6), np.zeros(6), np.zeros(4), None, ddq)
        assert code == SolverError.E_SIZE_MISMATCH_TORQUES
        np.testing.assert_array_equal(ddq, np.full(6, 7.0))
