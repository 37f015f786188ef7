"""
Runtime layer for player exports.

This module coordinates the flow:
Campaign document → Visibility filter → Formatter → Export file
"""

from runtime.main import run_export, run_preview

__all__ = ["run_export", "run_preview"]
