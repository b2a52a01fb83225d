"""
CEV Corridor Option Demo
========================

Prices the reference corridor call under the Constant Elasticity of Variance
model and produces the standard set of diagnostic plots.

Features:
    - Reference pricing with 95% confidence interval
    - Sensitivity sweeps over every model and contract parameter
    - Convergence of the estimator with the number of simulations
    - Sample paths with the corridor and checkpoints overlaid

Example:
    python demoCorridorOption.py
"""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
from numpy.typing import NDArray

from cevcorridor import (
    CorridorCallPricer,
    ConvergencePoint,
    PricingResult,
    SimulationConfig,
    SweepPoint,
    convergence_study,
    sensitivity_sweep,
    simulate_paths,
)

# =============================================================================
# Configuration Constants
# =============================================================================

# Output Configuration
OUTPUT_DIR = Path("img/corridor")
DPI = 150

# Visualization Parameters
N_PATHS_TO_DISPLAY = 30
FIGURE_SIZE_LARGE = (10, 6)
FIGURE_SIZE_MEDIUM = (8, 5)
ALPHA_INDIVIDUAL_PATHS = 0.5
ALPHA_BAND = 0.2
LINEWIDTH_PATHS = 0.8
GRID_ALPHA = 0.3

# Simulation Parameters
SEED = 2024
N_SIMULATIONS_SWEEP = 5_000
CONVERGENCE_SIZES = (100, 250, 500, 1_000, 2_500, 5_000, 10_000)
CONVERGENCE_REPETITIONS = 50

REFERENCE = SimulationConfig(
    n_simulations=10_000,
    horizon_steps=100,
    initial_price=1.0,
    gamma=1.0,
    volatility=0.01,
    drift=0.0,
    lower_bound=0.5,
    upper_bound=1.5,
    strike=1.0,
)

SWEEPS = {
    "strike": np.linspace(0.8, 1.2, 9),
    "drift": np.linspace(-0.002, 0.002, 9),
    "horizon": [20, 40, 60, 80, 100, 150, 200],
    "volatility": np.linspace(0.005, 0.05, 10),
    "gamma": np.linspace(0.5, 1.5, 11),
    "lower_bound": np.linspace(0.5, 0.98, 9),
    "upper_bound": np.linspace(1.02, 1.5, 9),
}

# Color Scheme
COLOR_PATHS = 'steelblue'
COLOR_ESTIMATE = 'darkred'
COLOR_CORRIDOR = 'seagreen'
COLOR_CHECKPOINT = 'gray'


# =============================================================================
# Utility Functions
# =============================================================================

def ensure_output_directory() -> None:
    """Create output directory if it doesn't exist."""
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


def save_figure(fig: plt.Figure, filename: str) -> None:
    """Save ``fig`` under :data:`OUTPUT_DIR` and close it."""
    filepath = OUTPUT_DIR / filename
    fig.savefig(filepath, dpi=DPI, bbox_inches='tight')
    plt.close(fig)
    print(f"Saved plot to {filepath}")


# =============================================================================
# Plotting Functions
# =============================================================================

def plot_sweep(parameter: str, points: list[SweepPoint]) -> None:
    """
    Plot price against one parameter with its 95% band.

    Parameters
    ----------
    parameter : str
        Name of the swept parameter, used for labels and the filename.
    points : list of SweepPoint
        Output of :func:`cevcorridor.sensitivity_sweep`.
    """
    x = np.array([p.value for p in points], dtype=float)
    y = np.array([p.expected_value for p in points])
    lo = np.array([p.lower_bound for p in points])
    hi = np.array([p.upper_bound for p in points])

    fig, ax = plt.subplots(figsize=FIGURE_SIZE_MEDIUM)
    ax.fill_between(x, lo, hi, color=COLOR_ESTIMATE, alpha=ALPHA_BAND, label="95% CI")
    ax.plot(x, y, marker='o', color=COLOR_ESTIMATE, label="Price")
    ax.set_xlabel(parameter)
    ax.set_ylabel("Corridor call price")
    ax.set_title(f"Sensitivity to {parameter}")
    ax.legend(loc='best')
    ax.grid(True, alpha=GRID_ALPHA)
    save_figure(fig, f"sweep_{parameter}.png")


def plot_convergence(points: list[ConvergencePoint]) -> None:
    """Plot estimator spread against the number of simulations on log axes."""
    n = np.array([p.n_simulations for p in points], dtype=float)
    spread = np.array([p.std for p in points])
    reference = spread[0] * np.sqrt(n[0] / n)

    fig, ax = plt.subplots(figsize=FIGURE_SIZE_MEDIUM)
    ax.loglog(n, spread, marker='o', color=COLOR_ESTIMATE, label="Std of estimate")
    ax.loglog(n, reference, linestyle='--', color=COLOR_CHECKPOINT, label=r"$1/\sqrt{n}$")
    ax.set_xlabel("Number of simulations")
    ax.set_ylabel("Standard deviation")
    ax.set_title(f"Convergence ({points[0].repetitions} repetitions per size)")
    ax.legend(loc='best')
    ax.grid(True, which='both', alpha=GRID_ALPHA)
    save_figure(fig, "convergence.png")


def plot_paths(config: SimulationConfig, paths: NDArray[np.float64]) -> None:
    """
    Plot sample paths with the corridor band and checkpoint times.

    Parameters
    ----------
    config : SimulationConfig
        Configuration the paths were generated from.
    paths : ndarray
        Array of shape ``(n_paths, horizon_steps + 1)``.
    """
    steps = np.arange(paths.shape[1])
    fig, ax = plt.subplots(figsize=FIGURE_SIZE_LARGE)
    for row in paths[:N_PATHS_TO_DISPLAY]:
        ax.plot(steps, row, color=COLOR_PATHS, alpha=ALPHA_INDIVIDUAL_PATHS, linewidth=LINEWIDTH_PATHS)
    ax.axhspan(config.lower_bound, config.upper_bound, color=COLOR_CORRIDOR, alpha=ALPHA_BAND, label="Corridor")
    ax.axhline(config.strike, color=COLOR_ESTIMATE, linestyle=':', label="Strike")
    for t in config.checkpoints[:3]:
        ax.axvline(t, color=COLOR_CHECKPOINT, linestyle='--', linewidth=1.0)
    ax.set_xlabel("Step")
    ax.set_ylabel("Price")
    ax.set_title("Simulated CEV paths")
    ax.legend(loc='best')
    ax.grid(True, alpha=GRID_ALPHA)
    save_figure(fig, "paths.png")


# =============================================================================
# Simulation Functions
# =============================================================================

def run_reference() -> PricingResult:
    """Price the reference scenario with a seeded pricer."""
    pricer = CorridorCallPricer(name="Reference Corridor Call")
    pricer.set_seed(SEED)
    return pricer.run(REFERENCE)


def run_sweeps() -> dict[str, list[SweepPoint]]:
    """Run every sensitivity sweep from :data:`SWEEPS`."""
    base = REFERENCE.with_overrides(n_simulations=N_SIMULATIONS_SWEEP)
    rng = np.random.default_rng(SEED)
    return {name: sensitivity_sweep(base, name, values, rng=rng) for name, values in SWEEPS.items()}


# =============================================================================
# Main Execution
# =============================================================================

def main() -> None:
    """Price the reference corridor call and write all plots."""
    ensure_output_directory()

    print("Pricing reference corridor call...")
    result = run_reference()
    print(result.result_to_string())

    print("\nRunning sensitivity sweeps...")
    for name, points in run_sweeps().items():
        plot_sweep(name, points)

    print("\nRunning convergence study...")
    points = convergence_study(REFERENCE, CONVERGENCE_SIZES, repetitions=CONVERGENCE_REPETITIONS, rng=SEED)
    plot_convergence(points)

    print("\nSimulating sample paths...")
    plot_paths(REFERENCE, simulate_paths(REFERENCE, n_paths=N_PATHS_TO_DISPLAY, rng=SEED))

    print(f"\nCorridor demo complete. Plots saved to: {OUTPUT_DIR}\n")


if __name__ == "__main__":
    main()
