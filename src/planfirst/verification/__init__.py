"""Heuristic verification of an implementation against a structured plan."""

from .report import exit_code_for, render_markdown_report, render_summary, write_markdown_report
from .scoring import calculate_match_percentage, extract_keywords
from .verifier import Verifier, VerifyOptions, verify_plan

__all__ = [
    "Verifier",
    "VerifyOptions",
    "calculate_match_percentage",
    "exit_code_for",
    "extract_keywords",
    "render_markdown_report",
    "render_summary",
    "verify_plan",
    "write_markdown_report",
]
