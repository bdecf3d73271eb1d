"""Exception types raised by propax.

Configuration problems are detected while bodies, acceleration models and
simulators are being set up; evaluation problems are detected while a
state derivative is being computed.  Neither is retried or replaced by a
fallback value anywhere in the package.
"""


class ConfigurationError(ValueError):
    """Inconsistent or incomplete setup (missing model, bad degree/order, unknown tag)."""


class EvaluationError(RuntimeError):
    """Failure while evaluating a model (stale state, non-finite value, out-of-range lookup)."""
