# completion.py - tab completion over builtins and executables on the search path
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from commands import BUILTIN_NAMES
from external_runner import is_executable_file
from tokenizer import QUOTES

log = logging.getLogger("tabsh.completion")

LISTING_SEPARATOR = "  "


def word_start(line: str, cursor: int) -> int:
    """Offset just after the last unquoted space before `cursor` (0 if none)."""
    start = 0
    quote = None
    for i, c in enumerate(line[:cursor]):
        if quote is not None:
            if c == quote:
                quote = None
        elif c in QUOTES:
            quote = c
        elif c == " ":
            start = i + 1
    return start


def longest_common_prefix(candidates: Iterable[str]) -> str:
    it = iter(candidates)
    try:
        prefix = next(it)
    except StopIteration:
        return ""
    for candidate in it:
        n = min(len(prefix), len(candidate))
        i = 0
        while i < n and prefix[i] == candidate[i]:
            i += 1
        prefix = prefix[:i]
        if not prefix:
            break
    return prefix


class ListingCache:
    """Per-directory cache of entry names.

    Each entry remembers the directory's st_mtime_ns at listing time. Every
    lookup re-stats the directory and lists it again on any mismatch, so
    created and deleted files are never missed. Execute bits are not cached.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[int, List[str]]] = {}
        self.lock = threading.Lock()

    def listdir(self, directory: str) -> List[str]:
        mtime = os.stat(directory).st_mtime_ns
        with self.lock:
            cached = self._entries.get(directory)
            if cached is not None and cached[0] == mtime:
                return cached[1]
        names = os.listdir(directory)
        with self.lock:
            self._entries[directory] = (mtime, names)
        log.debug("listed %s (%d entries)", directory, len(names))
        return names

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()


class CompletionEngine:
    """Stateless apart from the optional listing cache; the search path is
    passed in on every call."""

    def __init__(self, builtins: Sequence[str] = BUILTIN_NAMES,
                 cache: Optional[ListingCache] = None):
        self.builtins = tuple(builtins)
        self.cache = cache

    def _listdir(self, directory: str) -> List[str]:
        if self.cache is not None:
            return self.cache.listdir(directory)
        return os.listdir(directory)

    def executable_candidates(self, prefix: str, search_path: Sequence[str]) -> Set[str]:
        matches = set()
        for directory in search_path:
            try:
                names = self._listdir(directory)
            except OSError:
                continue
            for name in names:
                if name.startswith(prefix) and is_executable_file(os.path.join(directory, name)):
                    matches.add(name)
        return matches

    def suggest(self, line: str, cursor: int,
                search_path: Sequence[str]) -> Tuple[int, List[str]]:
        start = word_start(line, cursor)
        word = line[start:cursor]
        found = {name for name in self.builtins if name.startswith(word)}
        found |= self.executable_candidates(word, search_path)
        return start, sorted(found)


# -----------------------
# Tab-press state machine
# -----------------------
@dataclass
class TabState:
    count: int = 0
    last_line: Optional[str] = None
    last_cursor: Optional[int] = None


@dataclass
class TabResult:
    """What the front end should do after a tab press.

    `replacement`, when set, replaces line[start:cursor]. `listing` is the
    candidate list to print below the prompt before redrawing it.
    """
    start: int = 0
    replacement: Optional[str] = None
    bell: bool = False
    listing: List[str] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return self.replacement is None


class TabHandler:
    """First press extends to the common prefix (or rings), second press lists.

    State is shared between calls and guarded by one lock, so the handler may
    be driven from an input thread other than the main loop.
    """

    def __init__(self, engine: CompletionEngine, search_path: Sequence[str],
                 state: Optional[TabState] = None):
        self.engine = engine
        self.search_path = search_path
        self.state = state if state is not None else TabState()
        self._lock = threading.Lock()

    def press(self, line: str, cursor: int) -> TabResult:
        with self._lock:
            return self._press(line, cursor)

    def _press(self, line: str, cursor: int) -> TabResult:
        start, candidates = self.engine.suggest(line, cursor, self.search_path)
        word = line[start:cursor]
        log.debug("tab on %r: %d candidates", word, len(candidates))

        if len(candidates) == 1:
            return TabResult(start, candidates[0] + " ")

        state = self.state
        if (line, cursor) != (state.last_line, state.last_cursor):
            state.count = 0
            state.last_line, state.last_cursor = line, cursor

        if not candidates:
            return TabResult(start, bell=True)

        state.count += 1
        if state.count == 1:
            prefix = longest_common_prefix(candidates)
            if len(prefix) > len(word):
                state.count = 0
                return TabResult(start, prefix)
            return TabResult(start, bell=True)

        return TabResult(start, listing=candidates)


def format_listing(candidates: Iterable[str]) -> str:
    return LISTING_SEPARATOR.join(candidates)
