"""Hybrid dynamics of a serial chain with end-effector acceleration constraints.

Based on Vereshchagin (1989), an articulated-body method extended with
Gauss' principle of least constraint. Given q, q_dot, applied joint
torques, external segment wrenches, a root acceleration and nc task-space
acceleration constraints alfa^T a_ee = beta at the chain tip, it computes
the joint accelerations and the joint torques induced by the constraint
forces.

One call runs four sweeps:
    1. outward: poses, twists, bias accelerations C and bias wrenches U,
    2. inward: articulated-body inertias P, bias wrenches R, unit
       constraint wrenches E and acceleration energies M, G,
    3. constraint solve: nu = M_0^+ (beta - E_0^T a_root - G_0),
    4. outward: q_dotdot as nullspace + bias + parent + constraint parts.

Frames: for segment i, "tilde" quantities are expressed in its tip frame,
the others in its root frame (the parent's tip frame).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from hybrid_dynamics.chain import Chain
from hybrid_dynamics.config import SolverConfig
from hybrid_dynamics.lie_algebra import ad, adjoint, adjoint_inverse, rotate_spatial
from hybrid_dynamics.solver import SolverError, has_shape, str_error

logger = logging.getLogger(__name__)


def _vec6() -> np.ndarray:
    return np.zeros(6)


def _mat6() -> np.ndarray:
    return np.zeros((6, 6))


@dataclass
class SegmentRecord:
    """Per-segment state of one solver call. Record 0 is the base.

    Attributes:
        F: Pose of the segment tip in its root frame.
        F_base: Pose of the segment tip in the base frame.
        X: Ad_{F^-1}, maps root-frame twists to the tip frame.
        Z: Unit joint twist (root frame).
        v: Segment twist (tip frame).
        acc: Segment acceleration twist (tip frame).
        U: Velocity-product and external bias wrench (tip frame).
        R: Articulated bias wrench (root frame).
        R_tilde: Articulated bias wrench (tip frame).
        C: Velocity-product bias acceleration (root frame).
        A: Root acceleration in the segment orientation.
        H: Rigid-body inertia (tip frame).
        P: Articulated-body inertia (root frame).
        P_tilde: Articulated-body inertia (tip frame).
        PZ: P @ Z.
        PC: P @ C.
        D: Z^T P Z, articulated inertia along the joint.
        E: Unit constraint wrenches, one column per constraint (root frame).
        E_tilde: Unit constraint wrenches (tip frame).
        M: Acceleration energy of the unit constraint forces (nc, nc).
        G: Acceleration energy of the bias forces and torques (nc,).
        EZ: E^T Z.
        torque: Applied joint torque.
        u: torque - Z^T (R + P C).
        total_bias: -Z^T (R + P C).
        nullspace_acc_comp: Joint acceleration due to the applied torque.
        const_acc_comp: Joint acceleration due to the constraint forces.
        bias_acc_comp: Joint acceleration due to the bias forces.
        parent_acc_comp: Joint acceleration due to the parent acceleration.
        movable: False for fixed joints and for the base record.
        joint_index: Index into joint arrays, -1 if not movable.
    """

    F: np.ndarray = field(default_factory=lambda: np.eye(4))
    F_base: np.ndarray = field(default_factory=lambda: np.eye(4))
    X: np.ndarray = field(default_factory=lambda: np.eye(6))
    Z: np.ndarray = field(default_factory=_vec6)
    v: np.ndarray = field(default_factory=_vec6)
    acc: np.ndarray = field(default_factory=_vec6)
    U: np.ndarray = field(default_factory=_vec6)
    R: np.ndarray = field(default_factory=_vec6)
    R_tilde: np.ndarray = field(default_factory=_vec6)
    C: np.ndarray = field(default_factory=_vec6)
    A: np.ndarray = field(default_factory=_vec6)
    H: np.ndarray = field(default_factory=_mat6)
    P: np.ndarray = field(default_factory=_mat6)
    P_tilde: np.ndarray = field(default_factory=_mat6)
    PZ: np.ndarray = field(default_factory=_vec6)
    PC: np.ndarray = field(default_factory=_vec6)
    D: float = 0.0
    E: np.ndarray = field(default_factory=lambda: np.zeros((6, 0)))
    E_tilde: np.ndarray = field(default_factory=lambda: np.zeros((6, 0)))
    M: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    G: np.ndarray = field(default_factory=lambda: np.zeros(0))
    EZ: np.ndarray = field(default_factory=lambda: np.zeros(0))
    torque: float = 0.0
    u: float = 0.0
    total_bias: float = 0.0
    nullspace_acc_comp: float = 0.0
    const_acc_comp: float = 0.0
    bias_acc_comp: float = 0.0
    parent_acc_comp: float = 0.0
    movable: bool = False
    joint_index: int = -1

    @classmethod
    def allocate(cls, nc: int) -> "SegmentRecord":
        """Create a zeroed record sized for nc constraints."""
        return cls(
            E=np.zeros((6, nc)),
            E_tilde=np.zeros((6, nc)),
            M=np.zeros((nc, nc)),
            G=np.zeros(nc),
            EZ=np.zeros(nc),
        )


class ChainHdSolverVereshchagin:
    """Hybrid dynamics solver for a serial chain (Vereshchagin 1989).

    The solver keeps a reference to the chain it was built with and works
    on a private copy taken at construction and at every call of
    `update_internal_data_structures`. Editing the original chain has no
    effect until that call; `cart_to_jnt` reports E_NOT_UP_TO_DATE when
    the original's segment or joint count no longer matches the copy.

    All buffers are allocated at construction / update time and
    overwritten in place by every `cart_to_jnt` call. An instance is not
    thread-safe: serialize concurrent calls externally.

    Attributes:
        chain: Private copy of the chain.
        root_acc: (6,) root acceleration twist [alpha, a] in the base
            frame. For gravity g pass [0, 0, 0, -g].
        nc: Number of constraints.
        ns: Number of segments.
        nj: Number of movable joints.
        config: Constraint solve configuration.
        results: ns + 1 segment records, index 0 is the base.
        nu: (nc,) constraint force magnitudes of the last call.
        n_truncated: Singular values of M_0 zeroed in the last call.
        error: Last return code.
    """

    def __init__(
        self,
        chain: Chain,
        root_acc: np.ndarray,
        nc: int,
        config: Optional[SolverConfig] = None,
    ) -> None:
        """Initialize the solver and allocate all buffers.

        Args:
            chain: Kinematic chain; copied, see class docstring.
            root_acc: (6,) root acceleration twist in the base frame.
            nc: Number of task-space constraints (columns of alfa).
            config: Constraint solve configuration.
        """
        root_acc = np.asarray(root_acc, dtype=np.float64).flatten()
        if root_acc.shape != (6,):
            raise ValueError(f"root_acc must have 6 elements, got {root_acc.shape[0]}")
        if nc < 0:
            raise ValueError(f"nc must be non-negative, got {nc}")

        self._chain_source = chain
        self.root_acc = root_acc
        self.nc = int(nc)
        self.config = config if config is not None else SolverConfig()
        self.error = SolverError.E_NOERROR
        self.n_truncated = 0
        self.update_internal_data_structures()

    def update_internal_data_structures(self) -> None:
        """Re-copy the chain and resize every buffer to its dimensions."""
        self.chain = self._chain_source.copy()
        self.ns = self.chain.nr_of_segments
        self.nj = self.chain.nr_of_joints
        nc = self.nc

        self.results: List[SegmentRecord] = [SegmentRecord.allocate(nc) for _ in range(self.ns + 1)]
        j = 0
        for i, segment in enumerate(self.chain, start=1):
            s = self.results[i]
            s.H[...] = segment.inertia
            s.movable = segment.joint.is_movable
            if s.movable:
                s.joint_index = j
                j += 1

        self.nu = np.zeros(nc)
        self.nu_sum = np.zeros(nc)
        self.M_0_inverse = np.zeros((nc, nc))
        self.Um = np.eye(nc)
        self.Vm = np.eye(nc)
        self.Sm = np.ones(nc)
        self.Sm_inverse = np.zeros(nc)
        self._F_total = np.eye(4)

        logger.debug("Allocated Vereshchagin buffers: ns=%d nj=%d nc=%d", self.ns, self.nj, nc)

    def get_error(self) -> int:
        return self.error

    def str_error(self, code: int) -> str:
        return str_error(code)

    def cart_to_jnt(
        self,
        q: np.ndarray,
        q_dot: np.ndarray,
        q_dotdot: np.ndarray,
        alfa: np.ndarray,
        beta: np.ndarray,
        f_ext: np.ndarray,
        torques: np.ndarray,
    ) -> int:
        """Compute joint accelerations and constraint torques.

        Sizes are checked before anything is written; on a mismatch the
        outputs are left untouched and the code of the first offending
        argument is returned.

        Args:
            q: Joint positions (nj,).
            q_dot: Joint velocities (nj,).
            q_dotdot: Output joint accelerations (nj,), filled in place.
            alfa: (6, nc) unit constraint wrenches [m, f] at the chain tip,
                in base-frame orientation.
            beta: (nc,) desired accelerations alfa^T a_ee.
            f_ext: (ns, 6) wrenches applied on each segment, base-frame
                orientation, at the segment tip. Gravity goes in root_acc.
            torques: (nj,) applied joint torques on input; overwritten with
                the constraint torques.

        Returns:
            SolverError code, E_NOERROR (0) on success.
        """
        if (self._chain_source.nr_of_segments != self.ns
                or self._chain_source.nr_of_joints != self.nj):
            self.error = SolverError.E_NOT_UP_TO_DATE
            return self.error

        checks = (
            (q, (self.nj,), SolverError.E_SIZE_MISMATCH_Q),
            (q_dot, (self.nj,), SolverError.E_SIZE_MISMATCH_QDOT),
            (q_dotdot, (self.nj,), SolverError.E_SIZE_MISMATCH_QDOTDOT),
            (alfa, (6, self.nc), SolverError.E_SIZE_MISMATCH_ALFA),
            (beta, (self.nc,), SolverError.E_SIZE_MISMATCH_BETA),
            (f_ext, (self.ns, 6), SolverError.E_SIZE_MISMATCH_FEXT),
            (torques, (self.nj,), SolverError.E_SIZE_MISMATCH_TORQUES),
        )
        for array, shape, code in checks:
            if not has_shape(array, shape):
                self.error = code
                return self.error

        self._initial_upwards_sweep(q, q_dot, np.asarray(f_ext, dtype=np.float64))
        self._downwards_sweep(np.asarray(alfa, dtype=np.float64), torques)
        self._constraint_calculation(np.asarray(beta, dtype=np.float64))
        self._final_upwards_sweep(q_dotdot, torques)

        self.error = SolverError.E_NOERROR
        return self.error

    def _initial_upwards_sweep(self, q, q_dot, f_ext: np.ndarray) -> None:
        """Poses, twists and bias terms, base to tip.

        External wrenches enter through U.
        """
        base = self.results[0]
        base.A[...] = self.root_acc

        F_total = np.eye(4)
        for i, segment in enumerate(self.chain, start=1):
            s = self.results[i]
            parent = self.results[i - 1]
            if s.movable:
                q_j = q[s.joint_index]
                q_dot_j = q_dot[s.joint_index]
            else:
                q_j = 0.0
                q_dot_j = 0.0

            s.F[...] = segment.pose(q_j)
            F_total = F_total @ s.F
            s.F_base[...] = F_total
            s.X[...] = adjoint_inverse(s.F)

            s.Z[...] = segment.unit_twist()
            vj = s.X @ s.Z * q_dot_j

            s.v[...] = s.X @ parent.v + vj
            s.A[...] = rotate_spatial(s.F[:3, :3].T, parent.A)

            # c = v x vj; S is constant in the root frame so cj = 0
            ad_v = ad(s.v)
            s.C[...] = adjoint(s.F) @ (ad_v @ vj)

            f_local = rotate_spatial(F_total[:3, :3].T, f_ext[i - 1])
            s.U[...] = -ad_v.T @ (s.H @ s.v) - f_local

        self._F_total = F_total

    def _downwards_sweep(self, alfa: np.ndarray, torques) -> None:
        """Articulated inertias, bias wrenches and acceleration energies, tip to base."""
        for i in range(self.ns, -1, -1):
            s = self.results[i]
            if i == self.ns:
                s.P_tilde[...] = s.H
                s.R_tilde[...] = s.U
                s.M.fill(0.0)
                s.G.fill(0.0)
                # constraints are given in base orientation at the tip
                s.E_tilde[...] = rotate_spatial(self._F_total[:3, :3].T, alfa)
            else:
                child = self.results[i + 1]
                s.P_tilde[...] = s.H + child.P
                s.R_tilde[...] = s.U + child.R + child.PC
                s.E_tilde[...] = child.E
                s.M[...] = child.M
                s.G[...] = child.G + child.E.T @ child.C
                if child.movable:
                    s.P_tilde -= np.outer(child.PZ, child.PZ) / child.D
                    s.R_tilde += child.PZ * (child.u / child.D)
                    s.E_tilde -= np.outer(child.PZ, child.EZ) / child.D
                    s.M -= np.outer(child.EZ, child.EZ) / child.D
                    s.G += child.EZ * (child.u / child.D)

            if i == 0:
                continue

            # tip frame -> root frame
            s.P[...] = s.X.T @ s.P_tilde @ s.X
            s.R[...] = s.X.T @ s.R_tilde
            s.E[...] = s.X.T @ s.E_tilde

            s.PZ[...] = s.P @ s.Z
            s.D = float(s.Z @ s.PZ)
            s.PC[...] = s.P @ s.C
            s.total_bias = -float(s.Z @ (s.R + s.PC))
            s.torque = float(torques[s.joint_index]) if s.movable else 0.0
            s.u = s.torque + s.total_bias
            s.EZ[...] = s.E.T @ s.Z

    def _constraint_calculation(self, beta: np.ndarray) -> None:
        """Solve M_0 nu = beta - E_0^T a_root - G_0 with a truncated SVD."""
        if self.nc == 0:
            self.n_truncated = 0
            return

        base = self.results[0]
        U, S, Vt = np.linalg.svd(base.M)
        self.Um[...] = U
        self.Sm[...] = S
        self.Vm[...] = Vt.T

        keep = self.Sm > self.config.cutoff(self.Sm[0])
        self.Sm_inverse.fill(0.0)
        self.Sm_inverse[keep] = 1.0 / self.Sm[keep]
        self.n_truncated = int(self.nc - np.count_nonzero(keep))
        if self.n_truncated and self.config.log_truncation:
            logger.debug(
                "Truncated %d of %d singular values of M_0 (s_max=%.3e)",
                self.n_truncated, self.nc, self.Sm[0],
            )

        self.M_0_inverse[...] = (self.Vm * self.Sm_inverse) @ self.Um.T
        self.nu_sum[...] = beta - base.E_tilde.T @ self.root_acc - base.G
        self.nu[...] = self.M_0_inverse @ self.nu_sum

    def _final_upwards_sweep(self, q_dotdot, torques) -> None:
        """Joint accelerations and constraint torques, base to tip."""
        self.results[0].acc[...] = self.root_acc

        for i in range(1, self.ns + 1):
            s = self.results[i]
            a_p = self.results[i - 1].acc

            if not s.movable:
                s.nullspace_acc_comp = 0.0
                s.const_acc_comp = 0.0
                s.bias_acc_comp = 0.0
                s.parent_acc_comp = 0.0
                s.acc[...] = s.X @ (a_p + s.C)
                continue

            constraint_force = s.E @ self.nu
            parent_force = s.P @ a_p
            constraint_torque = -float(s.Z @ constraint_force)

            s.parent_acc_comp = -float(s.Z @ parent_force) / s.D
            s.const_acc_comp = constraint_torque / s.D
            s.nullspace_acc_comp = s.torque / s.D
            s.bias_acc_comp = s.total_bias / s.D

            j = s.joint_index
            q_dotdot_j = (s.nullspace_acc_comp + s.bias_acc_comp
                          + s.parent_acc_comp + s.const_acc_comp)
            q_dotdot[j] = q_dotdot_j
            torques[j] = constraint_torque

            s.acc[...] = s.X @ (a_p + s.Z * q_dotdot_j + s.C)

    @staticmethod
    def _output(out: Optional[np.ndarray], shape) -> np.ndarray:
        if out is None:
            return np.zeros(shape)
        if np.shape(out) != tuple(shape):
            raise ValueError(f"out must have shape {tuple(shape)}, got {np.shape(out)}")
        return out

    def get_transformed_link_acceleration(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Segment accelerations of the last call in base orientation.

        Each row is the acceleration twist of a segment tip frame, rotated to
        the base orientation and referenced at the segment tip. Row 0 is the
        root acceleration.

        Args:
            out: Optional (ns + 1, 6) array to fill.

        Returns:
            (ns + 1, 6) array.
        """
        out = self._output(out, (self.ns + 1, 6))
        for i, s in enumerate(self.results):
            out[i] = rotate_spatial(s.F_base[:3, :3], s.acc)
        return out

    def get_link_cartesian_pose(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(ns + 1, 4, 4) segment tip poses in the base frame."""
        out = self._output(out, (self.ns + 1, 4, 4))
        for i, s in enumerate(self.results):
            out[i] = s.F_base
        return out

    def get_link_cartesian_velocity(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(ns + 1, 6) segment twists in base orientation, at the segment tip."""
        out = self._output(out, (self.ns + 1, 6))
        for i, s in enumerate(self.results):
            out[i] = rotate_spatial(s.F_base[:3, :3], s.v)
        return out

    def get_link_cartesian_acceleration(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(ns + 1, 6) segment accelerations in base orientation, at the segment tip.

        Same rows as `get_transformed_link_acceleration`.
        """
        return self.get_transformed_link_acceleration(out)

    def get_link_pose(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(ns + 1, 4, 4) segment tip poses in their root frames."""
        out = self._output(out, (self.ns + 1, 4, 4))
        for i, s in enumerate(self.results):
            out[i] = s.F
        return out

    def get_link_velocity(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(ns + 1, 6) segment twists in tip coordinates."""
        out = self._output(out, (self.ns + 1, 6))
        for i, s in enumerate(self.results):
            out[i] = s.v
        return out

    def get_link_acceleration(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(ns + 1, 6) segment accelerations in tip coordinates."""
        out = self._output(out, (self.ns + 1, 6))
        for i, s in enumerate(self.results):
            out[i] = s.acc
        return out

    def get_link_unit_force_acceleration_energy(self) -> np.ndarray:
        """Copy of M_0, acceleration energy of the unit constraint forces."""
        return self.results[0].M.copy()

    def get_link_bias_force_acceleration_energy(self) -> np.ndarray:
        """Copy of G_0, acceleration energy of the bias forces and torques."""
        return self.results[0].G.copy()

    def get_link_unit_force_matrix(self) -> np.ndarray:
        """Copy of E_tilde_0, unit constraint wrenches at the base."""
        return self.results[0].E_tilde.copy()

    def get_link_bias_force_matrix(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(ns + 1, 6) articulated bias wrenches R_tilde of every record."""
        out = self._output(out, (self.ns + 1, 6))
        for i, s in enumerate(self.results):
            out[i] = s.R_tilde
        return out

    def get_joint_bias_acceleration(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """(nj,) joint accelerations due to the bias forces alone."""
        out = self._output(out, (self.nj,))
        for s in self.results:
            if s.movable:
                out[s.joint_index] = s.bias_acc_comp
        return out

    def get_constraint_forces(self) -> np.ndarray:
        """Copy of nu, the constraint force magnitudes of the last call."""
        return self.nu.copy()
