"""Core building blocks shared by every feature: exceptions and cancellation."""

from .exceptions import *  # noqa: F401,F403
from .exceptions import __all__ as _exceptions_all
from .cancellation import CancellationToken, run_cancellable, check_cancelled

__all__ = list(_exceptions_all) + ["CancellationToken", "run_cancellable", "check_cancelled"]
