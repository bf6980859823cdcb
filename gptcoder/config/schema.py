# gptcoder/config/schema.py
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from ..core.models import ConfigurationError, ModelSpec
from ..core.prompt_assembler import DEFAULT_INSTRUCTION, DEFAULT_RECOUNT_DELAY_MS


class ModelConfig(BaseModel):
    name: str
    max_tokens: int = Field(gt=0)
    encoding: Optional[str] = None # tiktoken encoding, derived from the name if unset

    def to_spec(self) -> ModelSpec:
        return ModelSpec(name=self.name, max_tokens=self.max_tokens, encoding=self.encoding)


class AppConfig(BaseModel):
    models: List[ModelConfig] = Field(default_factory=lambda: [
        ModelConfig(name="gpt-3.5-turbo", max_tokens=4096),
        ModelConfig(name="gpt-3.5-turbo-16k", max_tokens=16384),
        ModelConfig(name="gpt-4", max_tokens=8192),
        ModelConfig(name="gpt-4-32k", max_tokens=32768),
    ])
    default_model: str = "gpt-3.5-turbo"
    default_instruction: str = DEFAULT_INSTRUCTION
    recount_delay_ms: int = Field(default=DEFAULT_RECOUNT_DELAY_MS, ge=0)
    max_file_size: int = Field(default=1024 * 1024, gt=0) # Bytes; larger files are not loaded
    ignore_patterns: List[str] = Field(default_factory=lambda: [
        # Version control
        ".git", ".svn", ".hg",
        # IDE/Editor config
        ".idea", ".vscode", "*.sublime-project", "*.sublime-workspace",
        # Python specific
        "__pycache__", "*.pyc", "*.pyo", "*.pyd",
        "*.egg-info", ".pytest_cache", ".mypy_cache",
        # Virtual environments
        "venv", ".venv", "env", ".env",
        # Build artifacts / Distribution
        "build", "dist", "node_modules", "target", "*.o", "*.so", "*.a", "*.lib", "*.dll", "*.exe",
        # Lock files rarely help as context
        "package-lock.json", "yarn.lock", "poetry.lock",
        # OS specific
        ".DS_Store", "Thumbs.db",
        # Log files
        "*.log",
    ])

    @model_validator(mode="after")
    def _default_model_is_configured(self) -> "AppConfig":
        if self.default_model not in {m.name for m in self.models}:
            raise ValueError(f"default_model '{self.default_model}' is not among the configured models")
        return self

    def get_model(self, name: Optional[str] = None) -> ModelSpec:
        """Looks up a model by name (the default model if None)."""
        name = name or self.default_model
        for model in self.models:
            if model.name == name:
                return model.to_spec()
        available = ", ".join(m.name for m in self.models)
        raise ConfigurationError(f"Unknown model '{name}'. Available models: {available}")
