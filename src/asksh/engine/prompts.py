"""Prompt templates for the LLM engine."""

from __future__ import annotations

from dataclasses import dataclass

SYSTEM_PROMPT = """\
You are a terminal assistant running on {user_os} ({user_arch}) with the {user_shell} shell.
You answer requests by proposing shell commands, reading their output and deciding when the request is answered.

Rules:
- Reply in the language of the user's request ({language}).
- Start with an explanation of at most two sentences, no meta-commentary.
- Put each command to run in its own fenced code block. Propose only commands that should run now.
- Commands must never wait for input: use `git --no-pager`, `--no-pager`, `-y` or piping instead of pagers and prompts.
- Never propose a command you just ran. Change the approach instead, or add a line `Justification: <why>` explaining what changed.
- When the output answers the request, reply with a short factual statement and no code blocks.
"""

USER_PROMPT = """\
User's request:
{user_input}
"""

TERMINAL_OUTPUT_PROMPT = """\
Command result for `{command}` (exit code {exit_code}{truncated}):
{terminal_text}
"""

REJECTION_PROMPT = """\
These commands were refused because they repeat earlier commands:
{reasons}
Propose a different command, or keep it and add `Justification: <why>`.
"""


class _KeepMissing(dict[str, object]):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@dataclass(frozen=True)
class PromptTemplates:
    """Prompt templates with optional overrides."""

    system: str = SYSTEM_PROMPT
    user: str = USER_PROMPT
    terminal_output: str = TERMINAL_OUTPUT_PROMPT
    rejection: str = REJECTION_PROMPT

    @classmethod
    def with_overrides(
        cls,
        *,
        system: str | None = None,
        user: str | None = None,
        terminal_output: str | None = None,
    ) -> PromptTemplates:
        return cls(
            system=system or SYSTEM_PROMPT,
            user=user or USER_PROMPT,
            terminal_output=terminal_output or TERMINAL_OUTPUT_PROMPT,
        )

    @staticmethod
    def render(template: str, **values: object) -> str:
        return template.format_map(_KeepMissing(values)).strip()
