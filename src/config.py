"""Configuration for the hybrid dynamics solver."""

from dataclasses import dataclass


@dataclass
class SolverConfig:
    """Configuration for the constraint force solve.

    Singular values of the base acceleration-energy matrix M_0 below
    max(svd_atol, svd_rtol * s_max) are treated as zero when forming its
    pseudo-inverse.

    Attributes:
        svd_rtol: Relative singular-value cutoff (default 1e-12).
        svd_atol: Absolute singular-value cutoff (default 1e-14).
        log_truncation: Emit a DEBUG log record whenever singular values
            are truncated.
    """

    svd_rtol: float = 1e-12
    svd_atol: float = 1e-14
    log_truncation: bool = True

    def __post_init__(self):
        if self.svd_rtol < 0.0:
            raise ValueError(f"svd_rtol must be non-negative, got {self.svd_rtol}")
        if self.svd_atol < 0.0:
            raise ValueError(f"svd_atol must be non-negative, got {self.svd_atol}")

    def cutoff(self, s_max: float) -> float:
        """Singular-value threshold for a matrix whose largest value is s_max."""
        return max(self.svd_atol, self.svd_rtol * s_max)
