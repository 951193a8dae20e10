"""Solver capability protocols and error codes.

Every chain solver reports its outcome as a small integer code: 0 on
success, a negative value naming the failure. The last code is kept in
the solver's `error` attribute.
"""

from enum import IntEnum
from typing import Optional, Protocol, runtime_checkable

import numpy as np


class SolverError(IntEnum):
    """Return codes shared by all chain solvers."""

    E_NOERROR = 0
    E_NOT_UP_TO_DATE = -3
    E_SIZE_MISMATCH_Q = -4
    E_SIZE_MISMATCH_QDOT = -5
    E_SIZE_MISMATCH_QDOTDOT = -6
    E_SIZE_MISMATCH_ALFA = -7
    E_SIZE_MISMATCH_BETA = -8
    E_SIZE_MISMATCH_FEXT = -9
    E_SIZE_MISMATCH_TORQUES = -10


_DESCRIPTIONS = {
    SolverError.E_NOERROR: "No error",
    SolverError.E_NOT_UP_TO_DATE: "Internal data structures not up to date with Chain",
    SolverError.E_SIZE_MISMATCH_Q: "The size of the joint position array does not match the chain",
    SolverError.E_SIZE_MISMATCH_QDOT: "The size of the joint velocity array does not match the chain",
    SolverError.E_SIZE_MISMATCH_QDOTDOT: "The size of the joint acceleration array does not match the chain",
    SolverError.E_SIZE_MISMATCH_ALFA: "The constraint Jacobian does not have shape (6, nc)",
    SolverError.E_SIZE_MISMATCH_BETA: "The size of the constraint target array does not match nc",
    SolverError.E_SIZE_MISMATCH_FEXT: "The external wrench array does not have shape (ns, 6)",
    SolverError.E_SIZE_MISMATCH_TORQUES: "The size of the joint torque array does not match the chain",
}


def str_error(code: int) -> str:
    """Return a human-readable description of a solver return code."""
    try:
        return _DESCRIPTIONS[SolverError(code)]
    except ValueError:
        return "UNKNOWN ERROR"


def has_shape(array, shape) -> bool:
    """True if `array` is array-like with exactly the given shape."""
    return np.shape(array) == tuple(shape)


@runtime_checkable
class Solver(Protocol):
    """Capability shared by all chain solvers."""

    error: int

    def update_internal_data_structures(self) -> None:
        """Resize internal buffers after the chain changed."""
        ...

    def get_error(self) -> int:
        ...

    def str_error(self, code: int) -> str:
        ...


@runtime_checkable
class ChainHdSolver(Solver, Protocol):
    """Hybrid dynamics: joint accelerations under task-space constraints."""

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
        ...


@runtime_checkable
class ChainIdSolver(Solver, Protocol):
    """Inverse dynamics: joint torques for a given motion."""

    def cart_to_jnt(
        self,
        q: np.ndarray,
        q_dot: np.ndarray,
        q_dotdot: np.ndarray,
        f_ext: Optional[np.ndarray],
        torques: np.ndarray,
    ) -> int:
        ...


@runtime_checkable
class ChainFdSolver(Solver, Protocol):
    """Forward dynamics: joint accelerations for given torques."""

    def cart_to_jnt(
        self,
        q: np.ndarray,
        q_dot: np.ndarray,
        torques: np.ndarray,
        f_ext: Optional[np.ndarray],
        q_dotdot: np.ndarray,
    ) -> int:
        ...
