"""
Monitoring pipeline.
Fetch, gate on novelty, extract, capture, reconcile, redact and persist.
"""

from .runner import MonitorRunner

__all__ = ["MonitorRunner"]
