"""Forward kinematics for serial chains."""

from typing import List

import numpy as np

from hybrid_dynamics.chain import Chain


def forward_kinematics_all_frames(chain: Chain, q: np.ndarray) -> List[np.ndarray]:
    """Compute FK for every segment tip.

    Args:
        chain: Kinematic chain.
        q: Joint positions (nj,). Fixed joints consume no entry.

    Returns:
        List of (4, 4) poses T_0_i of each segment tip in the base frame.
    """
    q = np.asarray(q, dtype=np.float64).flatten()
    if q.shape[0] != chain.nr_of_joints:
        raise ValueError(f"Expected q of length {chain.nr_of_joints}, got {q.shape[0]}")

    frames = []
    T = np.eye(4)
    j = 0
    for segment in chain:
        if segment.joint.is_movable:
            T = T @ segment.pose(q[j])
            j += 1
        else:
            T = T @ segment.pose(0.0)
        frames.append(T.copy())
    return frames


def forward_kinematics(chain: Chain, q: np.ndarray) -> np.ndarray:
    """Compute the pose of the chain tip in the base frame.

    Args:
        chain: Kinematic chain.
        q: Joint positions (nj,).

    Returns:
        (4, 4) transformation matrix of the last segment tip.
    """
    frames = forward_kinematics_all_frames(chain, q)
    if not frames:
        return np.eye(4)
    return frames[-1]
