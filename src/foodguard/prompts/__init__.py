from __future__ import annotations

from foodguard.prompts.analysis import ANALYSIS_SYSTEM_PROMPT, analysis_user_prompt, quick_user_prompt
from foodguard.prompts.chat import build_chat_system_prompt

__all__ = [
    "ANALYSIS_SYSTEM_PROMPT",
    "analysis_user_prompt",
    "build_chat_system_prompt",
    "quick_user_prompt",
]
