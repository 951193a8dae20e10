"""Spatial algebra on SE(3) for twists, wrenches and frames.

Pure NumPy implementation, rotations via scipy.spatial.transform.
Based on Lynch and Park (2017), Chapter 3 and 8.

Conventions:
    twist  V = [omega, v]   (angular first)
    wrench F = [m, f]       (moment first, dual of the twist)
    frame  T = (4, 4) homogeneous transform of a child frame in its parent.
"""

import numpy as np
from scipy.spatial.transform import Rotation


def skew(v: np.ndarray) -> np.ndarray:
    """Convert a 3-vector to a skew-symmetric matrix.

    [v]^ = [[ 0, -v3,  v2],
            [v3,   0, -v1],
            [-v2, v1,   0]]

    Args:
        v: (3,) vector.

    Returns:
        (3, 3) skew-symmetric matrix.
    """
    v = np.asarray(v, dtype=np.float64).flatten()
    return np.array([
        [0, -v[2], v[1]],
        [v[2], 0, -v[0]],
        [-v[1], v[0], 0]
    ], dtype=np.float64)


def unskew(S: np.ndarray) -> np.ndarray:
    """Convert a skew-symmetric matrix to a 3-vector."""
    return np.array([S[2, 1], S[0, 2], S[1, 0]], dtype=np.float64)


def so3_exp(omega: np.ndarray, theta: float = 1.0) -> np.ndarray:
    """Rotation matrix exp([omega]^ * theta).

    Args:
        omega: (3,) rotation axis, scaled by theta.
        theta: Rotation angle [rad] (or scale of omega).

    Returns:
        (3, 3) rotation matrix in SO(3).
    """
    omega = np.asarray(omega, dtype=np.float64).flatten()
    return Rotation.from_rotvec(omega * theta).as_matrix()


def ad(twist: np.ndarray) -> np.ndarray:
    """Compute the Lie bracket operator [ad_V].

    Based on Equation 8.38:
        [ad_V] = [[[omega],    0    ],
                  [ [v]  , [omega] ]]

    [ad_V] @ W is the spatial motion cross product V x W.

    Args:
        twist: (6,) twist [omega, v].

    Returns:
        (6, 6) ad matrix.
    """
    twist = np.asarray(twist, dtype=np.float64).flatten()
    omega_hat = skew(twist[:3])

    ad_V = np.zeros((6, 6), dtype=np.float64)
    ad_V[:3, :3] = omega_hat
    ad_V[3:, :3] = skew(twist[3:])
    ad_V[3:, 3:] = omega_hat
    return ad_V


def ad_transpose(twist: np.ndarray) -> np.ndarray:
    """Compute [ad_V]^T, the operator acting on wrenches."""
    return ad(twist).T


def cross_force(twist: np.ndarray, wrench: np.ndarray) -> np.ndarray:
    """Spatial force cross product V x* F = -[ad_V]^T F.

    Args:
        twist: (6,) twist [omega, v].
        wrench: (6,) wrench [m, f].

    Returns:
        (6,) wrench.
    """
    return -ad_transpose(twist) @ wrench


def adjoint(T: np.ndarray) -> np.ndarray:
    """Compute the Adjoint representation [Ad_T].

    For T = [[R, p], [0, 1]]:
        [Ad_T] = [[R,       0],
                  [[p]*R,   R]]

    Maps a twist expressed in the child frame to the parent frame.

    Args:
        T: (4, 4) homogeneous transformation matrix.

    Returns:
        (6, 6) Adjoint matrix.
    """
    T = np.asarray(T, dtype=np.float64)
    R = T[:3, :3]

    Ad_T = np.zeros((6, 6), dtype=np.float64)
    Ad_T[:3, :3] = R
    Ad_T[3:, :3] = skew(T[:3, 3]) @ R
    Ad_T[3:, 3:] = R
    return Ad_T


def adjoint_inverse(T: np.ndarray) -> np.ndarray:
    """Compute [Ad_{T^-1}], mapping twists from the parent to the child frame.

    Its transpose maps wrenches from the child to the parent frame.
    """
    return adjoint(inverse_transform(T))


def inverse_transform(T: np.ndarray) -> np.ndarray:
    """Compute the inverse of a homogeneous transformation.

    T^{-1} = [[R^T, -R^T*p], [0, 1]]
    """
    T = np.asarray(T, dtype=np.float64)
    R = T[:3, :3]

    T_inv = np.eye(4, dtype=np.float64)
    T_inv[:3, :3] = R.T
    T_inv[:3, 3] = -R.T @ T[:3, 3]
    return T_inv


def se3_exp(twist: np.ndarray, theta: float = 1.0) -> np.ndarray:
    """Compute the matrix exponential exp([S]*theta).

    Based on Lynch and Park Proposition 3.25.

    Args:
        twist: (6,) screw axis S = [omega, v].
        theta: Rotation angle (rad) or displacement for prismatic joints.

    Returns:
        (4, 4) homogeneous transformation matrix.
    """
    twist = np.asarray(twist, dtype=np.float64).flatten()
    omega = twist[:3]
    v = twist[3:]
    omega_norm = np.linalg.norm(omega)

    T = np.eye(4, dtype=np.float64)
    if omega_norm < 1e-10:
        # Pure translation
        T[:3, 3] = v * theta
        return T

    omega_unit = omega / omega_norm
    angle = omega_norm * theta
    T[:3, :3] = so3_exp(omega_unit, angle)

    # Equation 3.51
    omega_hat = skew(omega_unit)
    G = np.eye(3) * angle + (1 - np.cos(angle)) * omega_hat + \
        (angle - np.sin(angle)) * (omega_hat @ omega_hat)
    T[:3, 3] = G @ (v / omega_norm)
    return T


def rotation_about_axis(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotation matrix of `angle` radians about a unit `axis`."""
    return so3_exp(axis, angle)


def rotation_from_transform(T: np.ndarray) -> np.ndarray:
    """Extract rotation matrix from homogeneous transformation."""
    return T[:3, :3].copy()


def translation_from_transform(T: np.ndarray) -> np.ndarray:
    """Extract translation vector from homogeneous transformation."""
    return T[:3, 3].copy()


def transform_from_rotation_translation(R: np.ndarray, p: np.ndarray) -> np.ndarray:
    """Create homogeneous transformation from rotation and translation.

    Args:
        R: (3, 3) rotation matrix.
        p: (3,) translation vector.

    Returns:
        (4, 4) homogeneous transformation matrix.
    """
    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = R
    T[:3, 3] = np.asarray(p, dtype=np.float64).flatten()
    return T


def transform_twist(T: np.ndarray, twist: np.ndarray) -> np.ndarray:
    """Express a child-frame twist in the parent frame of T."""
    return adjoint(T) @ twist


def inverse_transform_twist(T: np.ndarray, twist: np.ndarray) -> np.ndarray:
    """Express a parent-frame twist in the child frame of T."""
    return adjoint_inverse(T) @ twist


def transform_wrench(T: np.ndarray, wrench: np.ndarray) -> np.ndarray:
    """Express a child-frame wrench in the parent frame of T.

    Uses [Ad_{T^-1}]^T = [[R, [p]*R], [0, R]].
    """
    return adjoint_inverse(T).T @ wrench


def inverse_transform_wrench(T: np.ndarray, wrench: np.ndarray) -> np.ndarray:
    """Express a parent-frame wrench in the child frame of T."""
    return adjoint(T).T @ wrench


def rotate_spatial(R: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Change only the orientation of twists or wrenches.

    The reference point is kept, so the same block rotation applies to
    twists and wrenches alike.

    Args:
        R: (3, 3) rotation matrix.
        x: (6,) vector or (6, k) matrix of stacked columns.

    Returns:
        Array of the same shape as `x`.
    """
    x = np.asarray(x, dtype=np.float64)
    out = np.empty_like(x)
    out[:3] = R @ x[:3]
    out[3:] = R @ x[3:]
    return out
