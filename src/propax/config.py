"""Module-wide floating-point precision configuration.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used
throughout propax.  The default is ``jnp.float64``: acceleration models
are compared against each other to machine precision and repeated
evaluations must be bit-identical, so JAX's 64-bit mode
(``jax_enable_x64``) is switched on when this module is imported.

Lower precisions remain selectable for quick exploratory runs.  Call
``set_dtype`` before building bodies and acceleration models, since
static tables are converted to the active dtype when they are stored.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

jax.config.update("jax_enable_x64", True)

_dtype = jnp.float64


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for propax.

    If *dtype* is ``jnp.float64``, JAX's 64-bit mode is (re-)enabled via
    ``jax.config.update("jax_enable_x64", True)``.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: "
            f"jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64"
        )
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    Returns:
        The active float dtype (default ``jnp.float64``).
    """
    return _dtype


def get_time_tolerance() -> float:
    """Return the dtype-adaptive tolerance used when comparing state times.

    The tolerance scales with the precision of the configured float dtype:

    - ``float16``:  0.1 s
    - ``bfloat16``: 0.1 s
    - ``float32``:  1e-3 s
    - ``float64``:  0.0 s (times must match exactly)

    Returns:
        float: Tolerance in seconds.
    """
    if _dtype == jnp.float64:
        return 0.0
    if _dtype == jnp.float32:
        return 1e-3
    return 0.1
