"""
Process execution backends.
"""

from varakit.sandbox.runner import KILL_GRACE_PERIOD, ProcessRunner, safe_spawn

__all__ = [
    "KILL_GRACE_PERIOD",
    "ProcessRunner",
    "safe_spawn",
]
