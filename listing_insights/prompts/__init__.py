"""
Prompts Package.

Centralized location for reusable prompt components and instructions.
Each agent module imports common snippets and its own specific prompts.
"""

from .common import (
    JSON_OUTPUT_STRICT,
    FRESH_POLL_INSTRUCTION,
    ANONYMITY_INSTRUCTION,
)
from .ocr import SCREENSHOT_EXTRACTION_PROMPT
from .polling import build_system_prompt

__all__ = [
    "JSON_OUTPUT_STRICT",
    "FRESH_POLL_INSTRUCTION",
    "ANONYMITY_INSTRUCTION",
    "SCREENSHOT_EXTRACTION_PROMPT",
    "build_system_prompt",
]
