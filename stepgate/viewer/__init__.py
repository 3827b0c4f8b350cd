"""
StepGate Viewer - Rendering components for module display.

This module provides:
- Section rendering with lock/completion state
- Progress bar and objectives list
"""

from .sections import (
    get_section_css,
    option_letter,
    render_box,
    render_code_section,
    render_exercise,
    render_code_exercise,
    render_quiz,
    render_lock_overlay,
    render_section,
    render_progress_bar,
    render_objectives,
)

__all__ = [
    "get_section_css",
    "option_letter",
    "render_box",
    "render_code_section",
    "render_exercise",
    "render_code_exercise",
    "render_quiz",
    "render_lock_overlay",
    "render_section",
    "render_progress_bar",
    "render_objectives",
]
