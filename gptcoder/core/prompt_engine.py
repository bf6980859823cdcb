# gptcoder/core/prompt_engine.py
from functools import lru_cache
from typing import Iterable, Protocol

from loguru import logger

from .token_counter import count_tokens

PROMPT_PREAMBLE = (
    "The following text is a Git repository with code. The structure of the text is sections that begin with ----, "
    "followed by a single line containing the file path and file name, followed by a variable amount of lines "
    "containing the file contents. The text representing the repository ends when the symbols --END-- are "
    "encountered. Any further text beyond --END-- is meant to be interpreted as instructions using the "
    "aforementioned code as context."
)
SECTION_MARKER = "----"
END_MARKER = "--END--"

REPO_FILES_PLACEHOLDER = "$GIT_REPO_FILES$"
INSTRUCTION_PLACEHOLDER = "$INSTRUCTION$"

# Shown for documentation and for measuring the fixed scaffolding; rendering never substitutes into it.
PROMPT_TEMPLATE = f"{PROMPT_PREAMBLE}\n{REPO_FILES_PLACEHOLDER}\n{END_MARKER}\n{INSTRUCTION_PLACEHOLDER}"


class PromptFile(Protocol):
    path: str
    content: str


def template_skeleton() -> str:
    """The template with both placeholders removed."""
    return PROMPT_TEMPLATE.replace(INSTRUCTION_PLACEHOLDER, "").replace(REPO_FILES_PLACEHOLDER, "")


@lru_cache(maxsize=8)
def template_overhead_tokens(encoding_name: str) -> int:
    """Tokens taken by the fixed scaffolding, present in every prompt."""
    tokens = count_tokens(template_skeleton(), encoding_name)
    logger.debug(f"Template overhead for '{encoding_name}': {tokens} tokens.")
    return tokens


def render_file_section(path: str, content: str) -> str:
    return f"{SECTION_MARKER}\n{path}\n{content}"


def render_prompt(files: Iterable[PromptFile], instruction: str) -> str:
    """
    Serializes files (in order) and the instruction into the final prompt.

    Built by concatenation so that placeholder-like text inside file contents
    or the instruction is emitted verbatim.
    """
    repo_files = "\n".join(render_file_section(f.path, f.content) for f in files)
    return f"{PROMPT_PREAMBLE}\n{repo_files}\n{END_MARKER}\n{instruction}"
