"""Command-line simulation of the UR5e arm under end-effector constraints.

Integrates the hybrid dynamics with explicit Euler steps and prints joint
accelerations, constraint torques and the constraint residual.
"""

import argparse
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from hybrid_dynamics.config import SolverConfig
from hybrid_dynamics.robot_params import UR5eParameters
from hybrid_dynamics.solver import SolverError
from hybrid_dynamics.vereshchagin import ChainHdSolverVereshchagin


@dataclass
class SimulationConfig:
    """Configuration for the hybrid dynamics simulation.

    Attributes:
        q0: Initial joint positions [rad].
        dq0: Initial joint velocities [rad/s].
        gravity: Gravity vector in the base frame [m/s²].
        constraint: End-effector constraint preset.
            none: free motion.
            hold_position: zero linear acceleration of the tool.
            hold_z: zero vertical acceleration of the tool.
        dt: Integration step [s].
        n_steps: Number of integration steps.
        print_every: Print a report every this many steps.
        svd_rtol: Relative singular-value cutoff of the constraint solve.
        verbose: Enable DEBUG logging.
    """

    q0: Tuple[float, float, float, float, float, float] = (0.0, -1.2, 1.4, -1.7, -1.57, 0.0)
    dq0: Tuple[float, float, float, float, float, float] = (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    gravity: Tuple[float, float, float] = (0.0, 0.0, -9.81)
    constraint: str = "none"
    dt: float = 1e-3
    n_steps: int = 10
    print_every: int = 1
    svd_rtol: float = 1e-12
    verbose: bool = False


CONSTRAINT_PRESETS = ("none", "hold_position", "hold_z")


def constraint_preset(name: str) -> Tuple[np.ndarray, np.ndarray]:
    """Unit constraint wrenches and targets of a preset.

    Args:
        name: Preset name, see SimulationConfig.constraint.

    Returns:
        Tuple of alfa (6, nc) and beta (nc,).
    """
    if name == "none":
        return np.zeros((6, 0)), np.zeros(0)
    if name == "hold_position":
        alfa = np.zeros((6, 3))
        alfa[3:, :] = np.eye(3)
        return alfa, np.zeros(3)
    if name == "hold_z":
        alfa = np.zeros((6, 1))
        alfa[5, 0] = 1.0
        return alfa, np.zeros(1)
    raise ValueError(f"Unknown constraint preset '{name}'")


def main(config: SimulationConfig) -> None:
    """Run the simulation.

    Args:
        config: Simulation configuration.
    """
    logging.basicConfig(level=logging.DEBUG if config.verbose else logging.WARNING)

    chain = UR5eParameters().to_chain()
    alfa, beta = constraint_preset(config.constraint)
    root_acc = np.concatenate([np.zeros(3), -np.asarray(config.gravity, dtype=np.float64)])
    solver = ChainHdSolverVereshchagin(
        chain, root_acc, alfa.shape[1], SolverConfig(svd_rtol=config.svd_rtol)
    )

    q = np.array(config.q0, dtype=np.float64)
    dq = np.array(config.dq0, dtype=np.float64)
    ddq = np.zeros(solver.nj)
    torques = np.zeros(solver.nj)
    f_ext = np.zeros((solver.ns, 6))
    x_dotdot = np.zeros((solver.ns + 1, 6))

    print(f"Simulating {config.n_steps} steps of {config.dt} s, constraint: {config.constraint}")
    for step in range(config.n_steps):
        torques.fill(0.0)
        code = solver.cart_to_jnt(q, dq, ddq, alfa, beta, f_ext, torques)
        if code != SolverError.E_NOERROR:
            raise SystemExit(f"Solver failed: {solver.str_error(code)}")

        if step % config.print_every == 0:
            solver.get_transformed_link_acceleration(x_dotdot)
            residual = alfa.T @ x_dotdot[-1] - beta
            print(f"step {step:4d}")
            print(f"  ddq      = {np.array2string(ddq, precision=4)}")
            print(f"  tau_c    = {np.array2string(torques, precision=4)}")
            if alfa.shape[1]:
                print(f"  residual = {np.max(np.abs(residual)):.2e}"
                      f"  (truncated: {solver.n_truncated})")

        dq = dq + ddq * config.dt
        q = q + dq * config.dt

    print(f"Final q = {np.array2string(q, precision=4)}")


def parse_args(argv: Optional[List[str]] = None) -> SimulationConfig:
    """Parse command line arguments into a SimulationConfig."""
    defaults = SimulationConfig()
    parser = argparse.ArgumentParser(
        description="Simulate the UR5e arm with the Vereshchagin hybrid dynamics solver"
    )
    parser.add_argument("--q0", type=float, nargs=6, default=list(defaults.q0),
                        help="Initial joint positions [rad]")
    parser.add_argument("--dq0", type=float, nargs=6, default=list(defaults.dq0),
                        help="Initial joint velocities [rad/s]")
    parser.add_argument("--gravity", type=float, nargs=3, default=list(defaults.gravity),
                        help="Gravity vector in the base frame [m/s^2]")
    parser.add_argument("--constraint", choices=CONSTRAINT_PRESETS, default=defaults.constraint,
                        help="End-effector constraint preset")
    parser.add_argument("--dt", type=float, default=defaults.dt, help="Integration step [s]")
    parser.add_argument("--n-steps", type=int, default=defaults.n_steps,
                        help="Number of integration steps")
    parser.add_argument("--print-every", type=int, default=defaults.print_every,
                        help="Print a report every this many steps")
    parser.add_argument("--svd-rtol", type=float, default=defaults.svd_rtol,
                        help="Relative singular-value cutoff of the constraint solve")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")
    args = parser.parse_args(argv)

    return SimulationConfig(
        q0=tuple(args.q0),
        dq0=tuple(args.dq0),
        gravity=tuple(args.gravity),
        constraint=args.constraint,
        dt=args.dt,
        n_steps=args.n_steps,
        print_every=args.print_every,
        svd_rtol=args.svd_rtol,
        verbose=args.verbose,
    )


def entry_point() -> None:
    main(parse_args())


if __name__ == "__main__":
    entry_point()
