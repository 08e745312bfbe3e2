"""
#WHERE
    Imported by session.py, main.py (inspect command) and tests.

#WHAT
    Diagnostics Module (Module 8) - developer-facing report of what a
    loaded avatar actually contains: joint names, clip names, root
    orientation and scale.  Pure read, callable any number of times.

#INPUT
    Loaded SceneNode root (or None before load).

#OUTPUT
    DiagnosticsReport.
"""

from .inspector import DiagnosticsReport, inspect

__all__ = ["DiagnosticsReport", "inspect"]
