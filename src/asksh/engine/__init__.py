"""Generation engines for ask-sh."""

from .llm import LLMEngine, build_engine, build_llm, parse_reply
from .prompts import PromptTemplates
from .system_info import UserSystemInfo

__all__ = ["LLMEngine", "PromptTemplates", "UserSystemInfo", "build_engine", "build_llm", "parse_reply"]
