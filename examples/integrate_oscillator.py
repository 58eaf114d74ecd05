# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "rkdense"]
#
# [tool.uv.sources]
# rkdense = { path = ".." }
# ///
"""Integrate a damped harmonic oscillator and print dense-output samples.

Solves ``q'' + 2 zeta q' + q = 0`` from ``q(0) = 1, q'(0) = 0`` with an
adaptive embedded Runge-Kutta method, samples the solution on an evenly
spaced grid, and compares it with the closed-form solution.

Requires rkdense to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/integrate_oscillator.py [OPTIONS]

Examples:
    # Default: Dormand-Prince 5(4), tolerance 1e-8, 10 time units
    uv run examples/integrate_oscillator.py

    # Lower-order method on a loose tolerance
    uv run examples/integrate_oscillator.py --method bs32 --tolerance 1e-5

    # Undamped, long run, with rejected steps logged
    uv run examples/integrate_oscillator.py --damping 0 --duration 100 --verbose
"""

import enum
import logging
import math
import time
from typing import Annotated

import jax.numpy as jnp
import typer

from rkdense import (
    BOGACKI_SHAMPINE_32,
    DORMAND_PRINCE_54,
    HEUN_EULER_21,
    IntegrationError,
    IntegratorConfig,
    solve,
)


class Method(enum.StrEnum):
    dp54 = "dp54"
    bs32 = "bs32"
    he21 = "he21"


_TABLEAUX = {
    Method.dp54: DORMAND_PRINCE_54,
    Method.bs32: BOGACKI_SHAMPINE_32,
    Method.he21: HEUN_EULER_21,
}


def _exact(t: float, zeta: float) -> float:
    """Closed-form q(t) for the underdamped case (0 <= zeta < 1)."""
    wd = math.sqrt(1.0 - zeta * zeta)
    return math.exp(-zeta * t) * (math.cos(wd * t) + zeta / wd * math.sin(wd * t))


def main(
    method: Annotated[Method, typer.Option(help="Embedded Runge-Kutta method")] = Method.dp54,
    tolerance: Annotated[float, typer.Option(help="Local error tolerance")] = 1e-8,
    duration: Annotated[float, typer.Option(help="Integration time span")] = 10.0,
    samples: Annotated[int, typer.Option(help="Number of output times")] = 11,
    damping: Annotated[float, typer.Option(help="Damping ratio zeta, in [0, 1)")] = 0.1,
    jit: Annotated[bool, typer.Option(help="JIT-compile each step attempt")] = False,
    verbose: Annotated[bool, typer.Option(help="Log rejected steps")] = False,
):
    """Integrate the damped oscillator and report accuracy and cost."""
    if not 0.0 <= damping < 1.0:
        raise typer.BadParameter("damping must be in [0, 1)")
    if samples < 2:
        raise typer.BadParameter("samples must be at least 2")
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    def derivative(y, t):
        return jnp.array([y[1], -y[0] - 2.0 * damping * y[1]])

    times = [duration * i / (samples - 1) for i in range(samples)]
    tableau = _TABLEAUX[method]

    print(f"── {tableau.name}, tolerance {tolerance:g} ──")
    start = time.perf_counter()
    try:
        solution = solve(
            times,
            jnp.array([1.0, 0.0]),
            tolerance,
            derivative,
            tableau=tableau,
            config=IntegratorConfig(jit=jit),
        )
    except IntegrationError as exc:
        print(f"  Integration failed at t={exc.t}: {exc}")
        raise typer.Exit(code=1) from exc
    elapsed = time.perf_counter() - start

    print(f"  {'t':>8}  {'q(t)':>16}  {'exact':>16}  {'error':>10}")
    max_error = 0.0
    for t, y in zip(solution.ts, solution.ys):
        q = float(y[0])
        exact = _exact(t, damping)
        max_error = max(max_error, abs(q - exact))
        print(f"  {t:8.3f}  {q:16.10f}  {exact:16.10f}  {abs(q - exact):10.2e}")

    stats = solution.stats
    print(f"\n  Accepted steps:   {stats.n_accepted}")
    print(f"  Rejected steps:   {stats.n_rejected}")
    print(f"  Evaluations:      {stats.n_evaluations}")
    print(f"  Max sample error: {max_error:.2e}")
    print(f"  Elapsed:          {elapsed:.3f} s")


if __name__ == "__main__":
    typer.run(main)
