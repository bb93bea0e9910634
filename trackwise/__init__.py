"""
TrackWise - Source Package

An AI-assisted personal spending tracker.

DESIGN PRINCIPLES:
1. The model formats and explains, it never owns the numbers
2. Every model reply is validated against a schema before use
3. A failed model call degrades one view, never the whole app
4. All state changes go through a single writer
"""

__version__ = "1.0.0"
__author__ = "TrackWise Team"
