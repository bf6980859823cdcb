# gptcoder/core/models.py
from dataclasses import dataclass
from typing import Optional

from .formatting import language_from_filename, number_with_commas
from .token_counter import encoding_for_model


class ConfigurationError(ValueError):
    """Raised for invalid model or application configuration."""


@dataclass(frozen=True)
class SourceFile:
    """A file record as handed over by a source loader."""
    path: str # Repo-relative path, unique within a session
    name: str # Base name, only used for the syntax hint
    content: str


@dataclass
class FileEntry:
    """A file in the assembler's working set."""
    key: int # Stable identity, survives deletions of other entries
    path: str
    name: str
    content: str
    token_used: int = 0 # Cached count of `content`, may lag behind during a pending recount
    is_expanded: bool = False # Presentation only

    @property
    def language(self) -> str:
        return language_from_filename(self.name)


@dataclass(frozen=True)
class ModelSpec:
    """A target model and its context window."""
    name: str
    max_tokens: int
    encoding: Optional[str] = None # Explicit tiktoken encoding, resolved from the name if unset

    def __post_init__(self):
        if not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise ConfigurationError(f"Model '{self.name}' must have a positive max_tokens, got {self.max_tokens!r}")

    @property
    def encoding_name(self) -> str:
        return self.encoding or encoding_for_model(self.name)


@dataclass(frozen=True)
class Budget:
    """Token usage of an assembly session against a model's limit."""
    files_token_used: int
    instruction_token_used: int
    template_token_used: int
    max_tokens: int

    @property
    def total_token_used(self) -> int:
        return self.files_token_used + self.instruction_token_used + self.template_token_used

    @property
    def utilization(self) -> float:
        """Percentage of the budget in use; may exceed 100."""
        return 100 * self.total_token_used / self.max_tokens

    @property
    def can_submit(self) -> bool:
        # Submission is blocked at exactly 100% as well
        return self.utilization < 100

    def describe(self, model_name: str) -> str:
        return (f"Token used: {number_with_commas(self.total_token_used)} / "
                f"{number_with_commas(self.max_tokens)} ({model_name})")
