"""Recursive Newton-Euler dynamics for serial chains.

Based on Lynch and Park (2017), Section 8.3.2, twist-wrench formulation:
    V_i  = [Ad_{T_{i,i-1}}] V_{i-1} + A_i θ̇_i
    V̇_i  = [Ad_{T_{i,i-1}}] V̇_{i-1} + [ad_{V_i}] A_i θ̇_i + A_i θ̈_i
    F_i  = [Ad_{T_{i+1,i}}]^T F_{i+1} + G_i V̇_i - [ad_{V_i}]^T G_i V_i
    τ_i  = F_i^T A_i

Quantities are expressed in segment tip frames. The root acceleration
enters as V̇_0, so gravity g is passed as root_acc = [0, 0, 0, -g].
External wrenches follow the hybrid solver convention: base orientation,
applied at the segment tip, acting on the segment.

Forward dynamics solves M(q) θ̈ = τ - b(q, θ̇) with a Cholesky
factorisation of the mass matrix.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from scipy.linalg import cho_factor, cho_solve

from hybrid_dynamics.chain import Chain
from hybrid_dynamics.lie_algebra import ad, adjoint_inverse, rotate_spatial
from hybrid_dynamics.solver import SolverError, has_shape, str_error


@dataclass
class DynamicsState:
    """State variables computed during the Newton-Euler algorithm.

    Attributes:
        twists: Body twists V_i for each segment (6,).
        twist_dots: Body twist derivatives V̇_i for each segment (6,).
        wrenches: Body wrenches F_i transmitted by each joint (6,).
        transforms: Transforms T_{i-1,i} of each segment tip (4, 4).
    """

    twists: List[np.ndarray] = field(default_factory=list)
    twist_dots: List[np.ndarray] = field(default_factory=list)
    wrenches: List[np.ndarray] = field(default_factory=list)
    transforms: List[np.ndarray] = field(default_factory=list)


class ChainIdSolverRNE:
    """Recursive Newton-Euler inverse dynamics for a serial chain.

    Attributes:
        chain: Private copy of the chain.
        root_acc: (6,) root acceleration twist in the base frame.
        ns: Number of segments.
        nj: Number of movable joints.
        error: Last return code.
    """

    def __init__(
        self,
        chain: Chain,
        root_acc: Optional[np.ndarray] = None,
    ) -> None:
        """Initialize Newton-Euler dynamics.

        Args:
            chain: Kinematic chain; copied.
            root_acc: Root acceleration twist. Default is zero.
        """
        if root_acc is None:
            self.root_acc = np.zeros(6)
        else:
            self.root_acc = np.asarray(root_acc, dtype=np.float64).flatten()
        if self.root_acc.shape != (6,):
            raise ValueError(f"root_acc must have 6 elements, got {self.root_acc.shape[0]}")

        self._chain_source = chain
        self.error = SolverError.E_NOERROR
        self.update_internal_data_structures()

    def update_internal_data_structures(self) -> None:
        self.chain = self._chain_source.copy()
        self.ns = self.chain.nr_of_segments
        self.nj = self.chain.nr_of_joints

    def get_error(self) -> int:
        return self.error

    def str_error(self, code: int) -> str:
        return str_error(code)

    def _joint_values(self, values: np.ndarray) -> List[float]:
        """Spread a joint array over segments, zero for fixed joints."""
        out = []
        j = 0
        for segment in self.chain:
            if segment.joint.is_movable:
                out.append(float(values[j]))
                j += 1
            else:
                out.append(0.0)
        return out

    def _forward_iterations(
        self,
        q: np.ndarray,
        dq: np.ndarray,
        ddq: np.ndarray,
        root_acc: np.ndarray,
    ) -> DynamicsState:
        """Transforms, twists and twist derivatives, base to tip."""
        state = DynamicsState()

        V_prev = np.zeros(6)
        Vdot_prev = root_acc
        T_base = np.eye(4)

        for segment, theta_i, dtheta_i, ddtheta_i in zip(
            self.chain, self._joint_values(q), self._joint_values(dq), self._joint_values(ddq)
        ):
            T_i = segment.pose(theta_i)
            T_base = T_base @ T_i
            state.transforms.append(T_i)

            Ad_T = adjoint_inverse(T_i)
            A_i = Ad_T @ segment.unit_twist()

            V_i = Ad_T @ V_prev + A_i * dtheta_i
            state.twists.append(V_i)

            Vdot_i = Ad_T @ Vdot_prev + ad(V_i) @ A_i * dtheta_i + A_i * ddtheta_i
            state.twist_dots.append(Vdot_i)

            V_prev = V_i
            Vdot_prev = Vdot_i

        return state

    def _backward_iterations(
        self,
        state: DynamicsState,
        f_ext: Optional[np.ndarray],
    ) -> Tuple[np.ndarray, DynamicsState]:
        """Wrenches and joint torques, tip to base."""
        tau = np.zeros(self.nj)
        state.wrenches = [None] * self.ns

        R_base = [np.eye(3)] * self.ns
        T_base = np.eye(4)
        for i, T_i in enumerate(state.transforms):
            T_base = T_base @ T_i
            R_base[i] = T_base[:3, :3].copy()

        F_next = np.zeros(6)
        j = self.nj - 1
        for i in range(self.ns - 1, -1, -1):
            segment = self.chain.get_segment(i)
            G_i = segment.inertia
            V_i = state.twists[i]
            Vdot_i = state.twist_dots[i]

            if i < self.ns - 1:
                F_propagated = adjoint_inverse(state.transforms[i + 1]).T @ F_next
            else:
                F_propagated = F_next

            F_i = F_propagated + G_i @ Vdot_i - ad(V_i).T @ (G_i @ V_i)
            if f_ext is not None:
                F_i = F_i - rotate_spatial(R_base[i].T, f_ext[i])
            state.wrenches[i] = F_i

            if segment.joint.is_movable:
                A_i = adjoint_inverse(state.transforms[i]) @ segment.unit_twist()
                tau[j] = F_i @ A_i
                j -= 1

            F_next = F_i

        return tau, state

    def cart_to_jnt(
        self,
        q: np.ndarray,
        q_dot: np.ndarray,
        q_dotdot: np.ndarray,
        f_ext: Optional[np.ndarray],
        torques: np.ndarray,
    ) -> int:
        """Compute joint torques for the given motion.

        Args:
            q: Joint positions (nj,).
            q_dot: Joint velocities (nj,).
            q_dotdot: Joint accelerations (nj,).
            f_ext: (ns, 6) external wrenches or None.
            torques: Output joint torques (nj,), filled in place.

        Returns:
            SolverError code.
        """
        if (self._chain_source.nr_of_segments != self.ns
                or self._chain_source.nr_of_joints != self.nj):
            self.error = SolverError.E_NOT_UP_TO_DATE
            return self.error
        checks = (
            (q, (self.nj,), SolverError.E_SIZE_MISMATCH_Q),
            (q_dot, (self.nj,), SolverError.E_SIZE_MISMATCH_QDOT),
            (q_dotdot, (self.nj,), SolverError.E_SIZE_MISMATCH_QDOTDOT),
            (torques, (self.nj,), SolverError.E_SIZE_MISMATCH_TORQUES),
        )
        for array, shape, code in checks:
            if not has_shape(array, shape):
                self.error = code
                return self.error
        if f_ext is not None and not has_shape(f_ext, (self.ns, 6)):
            self.error = SolverError.E_SIZE_MISMATCH_FEXT
            return self.error

        torques[:] = self.inverse_dynamics(q, q_dot, q_dotdot, f_ext)
        self.error = SolverError.E_NOERROR
        return self.error

    def inverse_dynamics(
        self,
        q: np.ndarray,
        dq: np.ndarray,
        ddq: np.ndarray,
        f_ext: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Compute joint torques given motion.

        Args:
            q: Joint positions (nj,).
            dq: Joint velocities (nj,).
            ddq: Joint accelerations (nj,).
            f_ext: (ns, 6) external wrenches or None.

        Returns:
            tau: Joint torques (nj,).
        """
        tau, _ = self.inverse_dynamics_full(q, dq, ddq, f_ext)
        return tau

    def inverse_dynamics_full(
        self,
        q: np.ndarray,
        dq: np.ndarray,
        ddq: np.ndarray,
        f_ext: Optional[np.ndarray] = None,
        root_acc: Optional[np.ndarray] = None,
    ) -> Tuple[np.ndarray, DynamicsState]:
        """Compute inverse dynamics with full state information.

        Args:
            q: Joint positions (nj,).
            dq: Joint velocities (nj,).
            ddq: Joint accelerations (nj,).
            f_ext: (ns, 6) external wrenches or None.
            root_acc: Overrides the solver's root acceleration.

        Returns:
            Tuple of joint torques (nj,) and the DynamicsState.
        """
        q = np.asarray(q, dtype=np.float64).flatten()
        dq = np.asarray(dq, dtype=np.float64).flatten()
        ddq = np.asarray(ddq, dtype=np.float64).flatten()
        if q.shape[0] != self.nj or dq.shape[0] != self.nj or ddq.shape[0] != self.nj:
            raise ValueError(f"Expected arrays of length {self.nj}")
        if f_ext is not None:
            f_ext = np.asarray(f_ext, dtype=np.float64)

        if root_acc is None:
            root_acc = self.root_acc
        state = self._forward_iterations(q, dq, ddq, root_acc)
        return self._backward_iterations(state, f_ext)

    def gravity_torques(self, q: np.ndarray) -> np.ndarray:
        """Torques balancing the root acceleration at rest."""
        zeros = np.zeros(self.nj)
        return self.inverse_dynamics(q, zeros, zeros)

    def coriolis_vector(self, q: np.ndarray, dq: np.ndarray) -> np.ndarray:
        """Coriolis/centrifugal torques c(q, θ̇), without root acceleration."""
        zeros = np.zeros(self.nj)
        tau, _ = self.inverse_dynamics_full(q, dq, zeros, root_acc=np.zeros(6))
        return tau

    def mass_matrix(self, q: np.ndarray) -> np.ndarray:
        """Compute the joint-space mass matrix M(q).

        Column k is the torque for a unit acceleration of joint k with zero
        velocity and zero root acceleration.
        """
        M = np.zeros((self.nj, self.nj))
        zeros = np.zeros(self.nj)
        for k in range(self.nj):
            ddq = np.zeros(self.nj)
            ddq[k] = 1.0
            M[:, k], _ = self.inverse_dynamics_full(q, zeros, ddq, root_acc=np.zeros(6))
        return M


class ChainFdSolverRNE:
    """Forward dynamics from inverse dynamics: M(q) θ̈ = τ - b(q, θ̇, f_ext).

    Attributes:
        id_solver: Inverse dynamics solver providing M and b.
        error: Last return code.
    """

    def __init__(
        self,
        chain: Chain,
        root_acc: Optional[np.ndarray] = None,
    ) -> None:
        self.id_solver = ChainIdSolverRNE(chain, root_acc)
        self.error = SolverError.E_NOERROR

    @property
    def nj(self) -> int:
        return self.id_solver.nj

    @property
    def ns(self) -> int:
        return self.id_solver.ns

    def update_internal_data_structures(self) -> None:
        self.id_solver.update_internal_data_structures()

    def get_error(self) -> int:
        return self.error

    def str_error(self, code: int) -> str:
        return str_error(code)

    def cart_to_jnt(
        self,
        q: np.ndarray,
        q_dot: np.ndarray,
        torques: np.ndarray,
        f_ext: Optional[np.ndarray],
        q_dotdot: np.ndarray,
    ) -> int:
        """Compute joint accelerations for the applied torques.

        Args:
            q: Joint positions (nj,).
            q_dot: Joint velocities (nj,).
            torques: Applied joint torques (nj,).
            f_ext: (ns, 6) external wrenches or None.
            q_dotdot: Output joint accelerations (nj,), filled in place.

        Returns:
            SolverError code.
        """
        checks = (
            (q, SolverError.E_SIZE_MISMATCH_Q),
            (q_dot, SolverError.E_SIZE_MISMATCH_QDOT),
            (q_dotdot, SolverError.E_SIZE_MISMATCH_QDOTDOT),
            (torques, SolverError.E_SIZE_MISMATCH_TORQUES),
        )
        for array, code in checks:
            if not has_shape(array, (self.nj,)):
                self.error = code
                return self.error

        # b(q, θ̇, f_ext) is the inverse dynamics at zero acceleration
        bias = np.zeros(self.nj)
        self.error = self.id_solver.cart_to_jnt(q, q_dot, np.zeros(self.nj), f_ext, bias)
        if self.error != SolverError.E_NOERROR:
            return self.error

        M = self.id_solver.mass_matrix(q)
        rhs = np.asarray(torques, dtype=np.float64) - bias
        q_dotdot[:] = cho_solve(cho_factor(M), rhs)
        return self.error
