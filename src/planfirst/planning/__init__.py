"""
Planning utilities for turning model-written markdown into structured plans.
"""

from .extractor import PlanExtractor, extract_plan
from .phaser import all_phases_completed, executable_phases, mark_verified, update_phase_status

__all__ = [
    "PlanExtractor",
    "all_phases_completed",
    "executable_phases",
    "extract_plan",
    "mark_verified",
    "update_phase_status",
]
