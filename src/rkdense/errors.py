"""Exceptions raised when an integration cannot complete.

Invalid arguments (non-positive tolerance, decreasing output times, bad
configuration values) raise :class:`ValueError` directly. The classes here
cover failures discovered *during* stepping, after the inputs were accepted:

- :class:`IntegrationError`: Base class for all integration failures.
- :class:`ToleranceUnreachableError`: The step-size controller cannot satisfy
  the requested tolerance.
- :class:`NonFiniteStateError`: The derivative produced ``nan`` or ``inf``.

No partial results are returned when one of these is raised.
"""

from __future__ import annotations


class IntegrationError(RuntimeError):
    """Base class for integration failures.

    Attributes:
        t: Time at the start of the step that failed.
        h: Step size of the failing attempt.
    """

    def __init__(self, message: str, t: float | None = None, h: float | None = None):
        super().__init__(message)
        self.t = t
        self.h = h


class ToleranceUnreachableError(IntegrationError):
    """Raised when the tolerance cannot be met with a usable step size.

    Triggered by too many consecutive rejections, too many accepted steps,
    or a step size so small that ``t + h == t``.
    """


class NonFiniteStateError(IntegrationError):
    """Raised when a stage derivative, candidate state or error is not finite."""
