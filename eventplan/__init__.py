# Event planner - timeline recalibration engine
"""
Core library for event timelines: records, store, recalibration, progress.
"""

__version__ = "1.0.0"
