# gptcoder/core/prompt_assembler.py
import dataclasses
import itertools
import threading
from pathlib import PurePosixPath
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from loguru import logger

from .models import Budget, FileEntry, ModelSpec, SourceFile
from .prompt_engine import render_prompt, template_overhead_tokens
from .token_counter import count_tokens

DEFAULT_RECOUNT_DELAY_MS = 500
DEFAULT_INSTRUCTION = "Write me a ...\nOutput the filename and code block, which contain the content of files."


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay, on the caller's event loop."""
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class PromptAssembler:
    """
    Owns the working set of files and the instruction for one assembly session.

    Token counts of edited files are refreshed through a single debounced
    recount: every edit cancels the pending recount (whichever file it was
    for) and schedules a new one for the edited file. Only that file's count
    is refreshed when the timer fires; counts of other files edited in the
    same burst stay stale until they are edited again.

    The pending recount targets an entry by its stable key, never by list
    position, so deleting other entries meanwhile cannot misdirect it.

    Without a scheduler there is no event loop to defer on and edits are
    recounted synchronously.
    """

    def __init__(self, model: ModelSpec,
                 scheduler: Optional[Scheduler] = None,
                 recount_delay_ms: int = DEFAULT_RECOUNT_DELAY_MS,
                 instruction: str = DEFAULT_INSTRUCTION):
        self.model = model
        self.encoding_name = model.encoding_name
        self.template_token_used = template_overhead_tokens(self.encoding_name)
        self._scheduler = scheduler
        self._recount_delay_ms = recount_delay_ms
        self._instruction = instruction
        self._entries: List[FileEntry] = []
        self._keys = itertools.count()
        self._pending: Optional[TimerHandle] = None
        self._pending_key: Optional[int] = None
        self._lock = threading.RLock()
        logger.debug(f"PromptAssembler initialized for model '{model.name}' "
                     f"(encoding={self.encoding_name}, max_tokens={model.max_tokens}).")

    # --- Working set ---

    def initialize(self, files: Sequence[Union[SourceFile, Mapping[str, Any]]]) -> None:
        """Replaces the working set with the loader's files, counting every file right away."""
        with self._lock:
            entries = []
            for f in files:
                source = _as_source_file(f)
                entries.append(FileEntry(
                    key=next(self._keys),
                    path=source.path,
                    name=source.name,
                    content=source.content,
                    token_used=count_tokens(source.content, self.encoding_name),
                ))
            self._cancel_pending()
            self._entries = entries
            logger.info(f"Working set initialized with {len(entries)} files.")

    @property
    def files(self) -> Tuple[FileEntry, ...]:
        """Snapshot copies of the working set, in prompt order."""
        with self._lock:
            return tuple(dataclasses.replace(e) for e in self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def edit_content(self, index: int, new_content: str) -> None:
        """Stores new content immediately and schedules a debounced recount for that file."""
        with self._lock:
            entry = self._entry_at(index)
            entry.content = new_content
            self._schedule_recount(entry.key)

    def delete_file(self, index: int) -> None:
        with self._lock:
            entry = self._entry_at(index)
            del self._entries[index]
            if self._pending_key == entry.key:
                self._cancel_pending()
            logger.debug(f"Removed '{entry.path}' from working set, {len(self._entries)} files remain.")

    def toggle_expand(self, index: int) -> bool:
        """Flips the presentation flag of a file and returns its new value."""
        with self._lock:
            entry = self._entry_at(index)
            entry.is_expanded = not entry.is_expanded
            return entry.is_expanded

    # --- Instruction ---

    @property
    def instruction(self) -> str:
        with self._lock:
            return self._instruction

    @instruction.setter
    def instruction(self, text: str) -> None:
        with self._lock:
            self._instruction = text

    @property
    def instruction_token_used(self) -> int:
        return count_tokens(self.instruction, self.encoding_name)

    # --- Debounced recount ---

    @property
    def has_pending_recount(self) -> bool:
        with self._lock:
            return self._pending is not None

    def flush_pending(self) -> None:
        """Runs a pending recount now instead of waiting for its timer."""
        with self._lock:
            key = self._pending_key
            if key is None:
                return
            self._cancel_pending()
            self._recount(key)

    def _schedule_recount(self, key: int) -> None:
        self._cancel_pending()
        if self._scheduler is None:
            self._recount(key)
            return
        self._pending_key = key
        self._pending = self._scheduler.call_later(self._recount_delay_ms, lambda: self._on_recount_timer(key))

    def _on_recount_timer(self, key: int) -> None:
        with self._lock:
            if self._pending_key != key:
                # Superseded by a later edit or a deletion
                return
            self._pending = None
            self._pending_key = None
            self._recount(key)

    def _recount(self, key: int) -> None:
        entry = next((e for e in self._entries if e.key == key), None)
        if entry is None:
            logger.debug(f"Recount skipped, entry {key} is no longer in the working set.")
            return
        entry.token_used = count_tokens(entry.content, self.encoding_name)
        logger.trace(f"Recounted '{entry.path}': {entry.token_used} tokens.")

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = None
        self._pending_key = None

    # --- Derived state ---

    def compute_budget(self) -> Budget:
        with self._lock:
            return Budget(
                files_token_used=sum(e.token_used for e in self._entries),
                instruction_token_used=count_tokens(self._instruction, self.encoding_name),
                template_token_used=self.template_token_used,
                max_tokens=self.model.max_tokens,
            )

    def render_prompt(self) -> str:
        """
        Serializes the working set and instruction into the final prompt.
        Does not check the budget; callers gate on Budget.can_submit.
        """
        with self._lock:
            prompt = render_prompt(self._entries, self._instruction)
        logger.debug(f"Rendered prompt with {len(self)} files ({len(prompt)} characters).")
        return prompt

    def _entry_at(self, index: int) -> FileEntry:
        if not isinstance(index, int) or not 0 <= index < len(self._entries):
            raise IndexError(f"File index {index} out of range for working set of {len(self._entries)} files")
        return self._entries[index]


def _as_source_file(record: Union[SourceFile, Mapping[str, Any]]) -> SourceFile:
    if isinstance(record, SourceFile):
        return record
    path = record["path"]
    return SourceFile(path=path, name=record.get("name") or PurePosixPath(path).name, content=record["content"])
