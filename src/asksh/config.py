"""Configuration management for ask-sh."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .errors import InvalidModelFormatError, ModelNotConfiguredError
from .logging_utils import configure_logging


class Settings(BaseSettings):
    """Application settings."""

    # Model Configuration
    model: Optional[str] = Field("openai:gpt-4o-mini", description="Model in provider:model form")
    api_key: Optional[str] = Field(None, description="API key for the LLM provider")
    api_base: Optional[str] = Field(None, description="Optional API base URL")
    max_tokens: int = Field(default=1024, description="Maximum tokens for model responses")

    # Turn Controller Configuration
    retry_budget: int = Field(default=3, ge=1, description="Consecutive guard rejections allowed per turn")
    max_steps: int = Field(default=10, ge=1, description="Maximum proposal cycles per turn")
    default_language: str = Field(default="en", description="Language used when detection is ambiguous")
    require_approval: bool = Field(default=True, description="Ask before running state-changing commands")

    # Ledger Configuration
    ledger_retention: int = Field(default=500, ge=1, description="Records kept in memory per session")
    ledger_path: Optional[Path] = Field(None, description="Optional JSONL file mirroring the ledger")
    inert_flags: tuple[str, ...] = Field(default=("--no-pager",), description="Flags ignored by signatures")
    fold_timestamps: bool = Field(default=True, description="Abstract timestamp arguments in signatures")

    # Gateway Configuration
    command_timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for one command")
    max_output_chars: int = Field(default=4000, ge=64, description="Captured output kept per stream")
    workspace: Optional[Path] = Field(None, description="Working directory for commands")

    # Prompt Overrides
    system_prompt: Optional[str] = Field(None, description="System prompt template override")
    user_prompt: Optional[str] = Field(None, description="User prompt template override")
    terminal_output_prompt: Optional[str] = Field(None, description="Command result template override")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level")
    debug: bool = Field(default=False, description="Print host details and raw input before each request")

    class Config:
        """Pydantic configuration."""

        env_prefix = "ASK_SH_"
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def resolve_workspace(self) -> Path:
        return (self.workspace or Path.cwd()).resolve()

    def resolve_model(self) -> str:
        if not self.model:
            raise ModelNotConfiguredError("ASK_SH_MODEL is not set")
        provider, separator, name = self.model.partition(":")
        if not separator or not provider or not name:
            raise InvalidModelFormatError(f"model must be provider:model, got {self.model!r}")
        return self.model


def get_settings(workspace: Optional[Path] = None) -> Settings:
    """Get application settings.

    Args:
        workspace: Optional workspace path override

    Returns:
        Settings instance
    """
    settings = Settings() if workspace is None else Settings(workspace=workspace)

    configure_logging(level=settings.log_level)

    return settings
