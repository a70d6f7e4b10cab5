"""Generation engine backed by a Republic LLM client."""

from __future__ import annotations

from typing import Any

from loguru import logger
from republic import LLM

from asksh.config import Settings
from asksh.core.commands import extract_commands, extract_justification, strip_code_blocks
from asksh.core.types import CommandRecord, Proposal, TurnContext, Verdict
from asksh.engine.prompts import PromptTemplates
from asksh.engine.system_info import UserSystemInfo


def parse_reply(text: str) -> Proposal:
    """Split model text into explanation, commands and justification."""

    justification = extract_justification(text)
    explanation_lines = [
        line for line in strip_code_blocks(text).splitlines() if not line.strip().lower().startswith("justification:")
    ]
    return Proposal(
        explanation="\n".join(explanation_lines).strip(),
        commands=tuple(extract_commands(text)),
        justification=justification,
    )


class LLMEngine:
    """Propose commands and judge outcomes with one chat model."""

    def __init__(
        self,
        llm: Any,
        *,
        templates: PromptTemplates | None = None,
        max_tokens: int = 1024,
        system_info: UserSystemInfo | None = None,
    ) -> None:
        self._llm = llm
        self._templates = templates or PromptTemplates()
        self._max_tokens = max_tokens
        self._system_info = system_info or UserSystemInfo.collect()
        self._pending: tuple[int, Proposal] | None = None

    def propose(self, context: TurnContext) -> Proposal:
        if self._pending is not None:
            turn, proposal = self._pending
            self._pending = None
            if turn == context.turn:
                return proposal

        messages = self._messages(context)
        if context.rejections:
            reasons = "\n".join(f"- {decision.reason}" for decision in context.rejections)
            feedback = self._templates.render(self._templates.rejection, reasons=reasons)
            messages.append({"role": "user", "content": feedback})
        return parse_reply(self._chat(messages))

    def judge(self, context: TurnContext) -> Verdict:
        proposal = parse_reply(self._chat(self._messages(context)))
        if proposal.commands:
            # The model wants more commands; hand them to the next propose call.
            self._pending = (context.turn, proposal)
            return Verdict(conclusive=False)
        return Verdict(conclusive=True, summary=proposal.explanation)

    def _chat(self, messages: list[dict[str, str]]) -> str:
        logger.debug("engine.chat messages={}", len(messages))
        response = self._llm.chat.raw(messages=messages, max_tokens=self._max_tokens)
        return _extract_text(response)

    def _messages(self, context: TurnContext) -> list[dict[str, str]]:
        render = self._templates.render
        messages = [
            {
                "role": "system",
                "content": render(
                    self._templates.system,
                    user_os=self._system_info.os,
                    user_arch=self._system_info.arch,
                    user_shell=self._system_info.shell,
                    language=context.language,
                ),
            }
        ]
        for request, summary in context.transcript:
            messages.append({"role": "user", "content": render(self._templates.user, user_input=request)})
            if summary:
                messages.append({"role": "assistant", "content": summary})
        messages.append({"role": "user", "content": render(self._templates.user, user_input=context.request)})
        for record in context.turn_records:
            messages.append({"role": "assistant", "content": f"```\n{record.command}\n```"})
            messages.append({"role": "user", "content": self._render_record(record)})
        return messages

    def _render_record(self, record: CommandRecord) -> str:
        result = record.result
        parts = [part for part in (result.stdout.strip(), result.stderr.strip(), result.error or "") if part]
        return self._templates.render(
            self._templates.terminal_output,
            command=record.command,
            exit_code=result.exit_code if result.exit_code is not None else "none",
            truncated=", truncated" if result.truncated else "",
            terminal_text="\n".join(parts) or "(empty)",
        )


def _extract_text(response: Any) -> str:
    if isinstance(response, str):
        return response
    choices = getattr(response, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    if message is None:
        return ""
    return getattr(message, "content", "") or ""


def build_llm(settings: Settings) -> LLM:
    """Build the Republic LLM client configured for ask-sh."""

    return LLM(
        settings.resolve_model(),
        api_key=settings.api_key,
        api_base=settings.api_base,
    )


def build_engine(settings: Settings, llm: Any | None = None) -> LLMEngine:
    templates = PromptTemplates.with_overrides(
        system=settings.system_prompt,
        user=settings.user_prompt,
        terminal_output=settings.terminal_output_prompt,
    )
    if llm is None:
        llm = build_llm(settings)
    return LLMEngine(llm, templates=templates, max_tokens=settings.max_tokens)
