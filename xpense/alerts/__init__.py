"""Alert subsystem."""

from xpense.alerts.center import AlertCenter

__all__ = ["AlertCenter"]
