"""Spatial inertia matrix utilities.

This module provides functions for computing 6x6 spatial inertia matrices
using the twist convention [ω, v] (angular velocity, linear velocity).

The spatial inertia matrix relates twists to wrenches:
    F = G @ V̇ - ad_V^T @ G @ V

where F = [τ, f] is a wrench (torque, force) in [ω, v] convention.
Articulated-body inertias use the same 6x6 representation and the same
frame transformation.
"""

import numpy as np

from hybrid_dynamics.lie_algebra import adjoint_inverse, skew


def spatial_inertia_at_com(
    mass: float,
    inertia: np.ndarray,
) -> np.ndarray:
    """Compute 6x6 spatial inertia matrix at center of mass.

    For twist convention [ω, v]:
        G = [[I_c,    0    ],
             [0,      m*I_3]]

    Args:
        mass: Link mass [kg].
        inertia: (3, 3) rotational inertia tensor at CoM [kg*m^2].

    Returns:
        (6, 6) spatial inertia matrix at CoM.
    """
    G = np.zeros((6, 6))
    G[:3, :3] = np.asarray(inertia)
    G[3:, 3:] = mass * np.eye(3)
    return G


def spatial_inertia_at_frame(
    mass: float,
    inertia_at_com: np.ndarray,
    com_position: np.ndarray,
) -> np.ndarray:
    """Compute 6x6 spatial inertia matrix at a frame displaced from the CoM.

    For twist convention [ω, v], with p the vector from the frame origin
    to the CoM:
        G = [[I_c + m*[p]×[p]×^T,    m*[p]×   ],
             [m*[p]×^T,              m*I_3    ]]

    Args:
        mass: Link mass [kg].
        inertia_at_com: (3, 3) rotational inertia tensor at CoM [kg*m^2].
        com_position: (3,) position vector from frame origin to CoM [m].

    Returns:
        (6, 6) spatial inertia matrix at the frame origin.
    """
    inertia_at_com = np.asarray(inertia_at_com, dtype=np.float64)
    if inertia_at_com.shape != (3, 3):
        raise ValueError(
            f"inertia_at_com must have shape (3, 3), got {inertia_at_com.shape}"
        )
    p = np.asarray(com_position, dtype=np.float64).ravel()
    p_skew = skew(p)

    G = np.zeros((6, 6))
    # [p]×[p]×^T = ||p||^2*I - p*p^T
    G[:3, :3] = inertia_at_com + mass * (np.dot(p, p) * np.eye(3) - np.outer(p, p))
    G[:3, 3:] = mass * p_skew
    G[3:, :3] = -mass * p_skew
    G[3:, 3:] = mass * np.eye(3)

    return G


def transform_spatial_inertia(
    G: np.ndarray,
    T: np.ndarray,
) -> np.ndarray:
    """Express a spatial inertia given in frame A in frame B.

    With T the pose of frame A in frame B:
        G_b = Ad_{T^-1}^T @ G_a @ Ad_{T^-1}

    Args:
        G: (6, 6) spatial inertia matrix in frame A.
        T: (4, 4) pose of frame A in frame B.

    Returns:
        (6, 6) spatial inertia matrix in frame B.
    """
    Ad_inv = adjoint_inverse(T)
    return Ad_inv.T @ G @ Ad_inv


def is_positive_definite(G: np.ndarray, tol: float = 1e-10) -> bool:
    """Check if spatial inertia matrix is positive definite.

    Args:
        G: (6, 6) spatial inertia matrix.
        tol: Tolerance for eigenvalue check.

    Returns:
        True if all eigenvalues are positive.
    """
    eigenvalues = np.linalg.eigvalsh(G)
    return bool(np.all(eigenvalues > tol))


def is_symmetric(G: np.ndarray, tol: float = 1e-10) -> bool:
    """Check if spatial inertia matrix is symmetric."""
    return bool(np.allclose(G, G.T, atol=tol))
