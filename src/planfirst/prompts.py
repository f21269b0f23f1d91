"""Prompt templates used when asking a model for an implementation plan."""

from __future__ import annotations

PLANNER_SYSTEM_PROMPT = (
    "You are an expert software architect and planning assistant. Your role is to help developers "
    "create detailed, actionable implementation plans.\n\n"
    "When creating plans, you should:\n"
    "1. Break down complex tasks into manageable phases\n"
    "2. Identify all files that need to be created or modified\n"
    "3. Provide clear reasoning for each change\n"
    "4. Consider dependencies between tasks\n"
    "5. Suggest best practices and patterns\n"
    "6. Be specific about what code changes are needed\n"
    "7. Consider edge cases and potential issues\n\n"
    "Your plans should be thorough but practical, focusing on actionable steps rather than abstract concepts."
)

FORMAT_INSTRUCTION = (
    "Format the plan in Markdown. Start with a single `# Title` line. Use one `## Phase N: Name` "
    "heading per phase and no other `##` headings. Quote every file path in backticks and lead "
    "with the action, for example: Create `src/app/config.py`, Modify `src/app/main.py`, "
    "Delete `src/app/legacy.py`."
)


def render_plan_prompt(description: str) -> str:
    """Return the user prompt asking for a phased plan for ``description``."""
    return (
        "Generate a detailed implementation plan for the following task:\n\n"
        f"{description.strip()}\n\n"
        "Based on the project context provided, create a comprehensive plan that includes:\n"
        "1. Overview and objectives\n"
        "2. Phases breakdown (if the task is complex)\n"
        "3. Detailed file changes with:\n"
        "   - What file to create/modify\n"
        "   - What changes to make\n"
        "   - Why these changes are needed\n"
        "   - Code snippets where helpful\n"
        "4. Dependencies and prerequisites\n"
        "5. Testing strategy\n"
        "6. Potential risks and considerations\n\n"
        f"{FORMAT_INSTRUCTION}"
    )


__all__ = [
    "FORMAT_INSTRUCTION",
    "PLANNER_SYSTEM_PROMPT",
    "render_plan_prompt",
]
