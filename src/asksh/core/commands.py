"""Command parsing, extraction and signature helpers."""

from __future__ import annotations

import re
import shlex
from collections.abc import Callable, Iterable
from pathlib import Path

DEFAULT_INERT_FLAGS: tuple[str, ...] = ("--no-pager",)
INERT_ENV_ASSIGNMENTS = frozenset({"PAGER=cat", "GIT_PAGER=cat", "PAGER=", "GIT_PAGER="})
SHELL_TAGS = frozenset({"bash", "sh", "zsh", "shell", "console"})
TIMESTAMP_PLACEHOLDER = "<timestamp>"

ENV_ASSIGN_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
SAFE_PATH_TOKEN_RE = re.compile(r"^[\w.~/+-]+$")
TIMESTAMP_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}(?:[T_]\d{2}:?\d{2}(?::?\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?"
    r"|\b\d{2}:\d{2}:\d{2}\b"
)
FENCE_RE = re.compile(r"```(.*?)```", re.DOTALL)
JUSTIFICATION_RE = re.compile(r"^\s*justification\s*:\s*(?P<text>.+?)\s*$", re.IGNORECASE | re.MULTILINE)
SENTENCE_RE = re.compile(r"[^.!?。！？]+(?:[.!?。！？]+|$)")
MAX_PATH_TOKEN_LENGTH = 240
TRUNCATION_MARKER = "\n[... output truncated ...]\n"

PathResolver = Callable[[str], str | None]


def parse_command_words(text: str) -> list[str]:
    """Split command text into words using shell rules."""

    try:
        return shlex.split(text)
    except ValueError:
        return []


def _quoted_words(text: str) -> list[str]:
    # Non-POSIX mode keeps quotes, so quoted whitespace survives normalization.
    try:
        return shlex.split(text, posix=False)
    except ValueError:
        return text.split()


def is_path_like(token: str) -> bool:
    if len(token) > MAX_PATH_TOKEN_LENGTH:
        return False
    if "://" in token:
        return False
    if SAFE_PATH_TOKEN_RE.fullmatch(token) is None:
        return False
    return token.startswith(("./", "../", "/", "~/")) or "/" in token or token in {".", ".."}


def command_signature(
    command: str,
    *,
    inert_flags: Iterable[str] = DEFAULT_INERT_FLAGS,
    fold_timestamps: bool = True,
    resolve_path: PathResolver | None = None,
) -> str:
    """Return the normalized signature used for duplicate comparison.

    Whitespace outside quotes is collapsed. Flag order is kept. Inert flags,
    pager-disabling env prefixes and timestamp values are folded. Paths are
    folded only when ``resolve_path`` maps them to a canonical form.
    """

    inert = frozenset(inert_flags)
    normalized: list[str] = []
    leading = True
    for word in _quoted_words(command.strip()):
        if leading and ENV_ASSIGN_RE.match(word):
            if word in INERT_ENV_ASSIGNMENTS:
                continue
        else:
            leading = False
        if word in inert:
            continue
        if fold_timestamps:
            word = TIMESTAMP_RE.sub(TIMESTAMP_PLACEHOLDER, word)
        if resolve_path is not None and is_path_like(word):
            word = resolve_path(word) or word
        normalized.append(word)
    return " ".join(normalized)


def extract_commands(text: str) -> list[str]:
    """Pull commands out of fenced code blocks, first occurrence wins."""

    commands: list[str] = []
    for match in FENCE_RE.finditer(text):
        lines = [line.strip() for line in match.group(1).splitlines()]
        lines = [line.removeprefix("$ ") for line in lines if line]
        if len(lines) > 1 and lines[0].lower() in SHELL_TAGS:
            lines = lines[1:]
        command = "; ".join(lines).strip("; ").strip()
        if command and command.lower() not in SHELL_TAGS:
            commands.append(command)
    return dedupe_commands(commands)


def dedupe_commands(commands: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for command in commands:
        stripped = command.strip()
        if not stripped or stripped in seen:
            continue
        seen.add(stripped)
        unique.append(stripped)
    return unique


def strip_code_blocks(text: str) -> str:
    return "\n".join(line for line in FENCE_RE.sub("", text).splitlines() if line.strip())


def extract_justification(text: str) -> str | None:
    match = JUSTIFICATION_RE.search(FENCE_RE.sub("", text))
    if match is None:
        return None
    return match.group("text")


def clip_sentences(text: str, limit: int = 2) -> str:
    """Keep at most ``limit`` sentences of ``text``."""

    flattened = " ".join(text.split())
    sentences = [part.strip() for part in SENTENCE_RE.findall(flattened) if part.strip()]
    return " ".join(sentences[:limit])


def truncate_output(text: str, limit: int) -> tuple[str, bool]:
    """Keep the head and tail of ``text`` within ``limit`` characters."""

    if len(text) <= limit:
        return text, False
    half = max((limit - len(TRUNCATION_MARKER)) // 2, 0)
    return f"{text[:half]}{TRUNCATION_MARKER}{text[len(text) - half :]}", True


def workspace_path_resolver(workspace: Path) -> PathResolver:
    """Resolve path tokens against the directory commands run in."""

    def resolve(token: str) -> str | None:
        try:
            path = Path(token).expanduser()
            if not path.is_absolute():
                path = workspace / path
            return str(path.resolve(strict=False))
        except (RuntimeError, OSError):
            # unknown ~user or an unresolvable path keeps the token as written
            return None

    return resolve
