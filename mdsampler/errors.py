"""Exception and warning types raised by the simulation engine."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """
    Malformed integrator, orchestrator or system configuration.

    Raised at construction time, or at the start of a run before any step
    executes. Never corrected silently.
    """


class UnitMismatchError(ValueError):
    """
    A force or energy contribution disagrees with the system's declared units.

    Signals a broken interaction implementation rather than a runtime
    condition, so it is not recoverable.
    """


class NumericalInstabilityWarning(RuntimeWarning):
    """Non-finite or extreme forces were encountered during a step."""
