"""Character cursor for the Tecplot ASCII grammar.

The scanner knows about separators (whitespace, commas, ``#`` comment
lines), identifiers, ``KEY =`` assignments, quoted strings, bare tokens,
and runs of numeric data tokens. It does not know any keyword; that is the
job of :mod:`interTecplot.DAT.DAT`.
"""

from __future__ import annotations

import re

from ..errors import (
    GrammarError,
    NumberFormatError,
    StructureError,
    UnexpectedEOFError,
)

_SEP_RE = re.compile(r"(?:[\s,]|#[^\n]*)+")
_SPACE_RE = re.compile(r"(?:\s|#[^\n]*)+")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ASSIGN_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*=")
_QUOTED_RE = re.compile(r'"([^"]*)"')
_BARE_RE = re.compile(r"[A-Za-z0-9_.+\-]+")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_DATA_RE = re.compile(r"(?:[\s,]|#[^\n]*)*([^\s,#]+)")


class Scanner:
    """Cursor over the full text of a ``.dat`` file."""

    __slots__ = ("text", "pos")

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def __repr__(self) -> str:
        return f"Scanner(pos={self.pos}, size={len(self.text)})"

    # ------------- separators -------------

    def skip(self, commas: bool = True) -> None:
        """Skip whitespace and comments, and commas unless ``commas`` is False."""
        m = (_SEP_RE if commas else _SPACE_RE).match(self.text, self.pos)
        if m:
            self.pos = m.end()

    def at_end(self) -> bool:
        self.skip()
        return self.pos >= len(self.text)

    # ------------- lookahead -------------

    def peek_ident(self) -> str | None:
        m = _IDENT_RE.match(self.text, self.pos)
        return m.group(0) if m else None

    def peek_assignment(self) -> str | None:
        """Return the key if the cursor is at ``KEY =``; do not advance."""
        m = _ASSIGN_RE.match(self.text, self.pos)
        return m.group(1) if m else None

    def peek_char(self) -> str:
        return self.text[self.pos : self.pos + 1]

    # ------------- consumers -------------

    def ident(self) -> str:
        m = _IDENT_RE.match(self.text, self.pos)
        if not m:
            raise self._error("expected a keyword")
        self.pos = m.end()
        return m.group(0)

    def expect(self, char: str) -> None:
        self.skip(commas=False)
        if not self.text.startswith(char, self.pos):
            raise self._error(f"expected {char!r}")
        self.pos += len(char)

    def accept(self, char: str) -> bool:
        """Consume ``char`` if it is next (after whitespace)."""
        self.skip(commas=False)
        if self.text.startswith(char, self.pos):
            self.pos += len(char)
            return True
        return False

    def quoted(self) -> str:
        self.skip(commas=False)
        m = _QUOTED_RE.match(self.text, self.pos)
        if not m:
            raise self._error("expected a quoted string")
        self.pos = m.end()
        return m.group(1)

    def bare(self) -> str:
        self.skip(commas=False)
        m = _BARE_RE.match(self.text, self.pos)
        if not m:
            raise self._error("expected a value")
        self.pos = m.end()
        return m.group(0)

    def number(self) -> float:
        self.skip(commas=False)
        start = self.pos
        m = _NUMBER_RE.match(self.text, self.pos)
        if not m:
            token = _BARE_RE.match(self.text, self.pos)
            raise NumberFormatError(
                token.group(0) if token else self.text[start : start + 1],
                "number",
                start,
            )
        self.pos = m.end()
        return float(m.group(0))

    def data_tokens(self, count: int) -> list[str]:
        """Consume ``count`` separator-delimited data tokens."""
        out: list[str] = []
        match = _DATA_RE.match
        text = self.text
        pos = self.pos
        for _ in range(count):
            m = match(text, pos)
            if m is None:
                self.pos = pos
                raise UnexpectedEOFError(
                    f"expected {count} values, found {len(out)}", pos
                )
            out.append(m.group(1))
            pos = m.end()
        self.pos = pos
        return out

    # ------------- errors -------------

    def line_col(self, pos: int | None = None) -> tuple[int, int]:
        """1-based line and column of ``pos`` (default: cursor)."""
        p = self.pos if pos is None else pos
        line = self.text.count("\n", 0, p) + 1
        col = p - (self.text.rfind("\n", 0, p) + 1) + 1
        return line, col

    def _error(self, message: str) -> StructureError:
        line, col = self.line_col()
        if self.pos >= len(self.text):
            return UnexpectedEOFError(f"{message}, found end of file", self.pos)
        return GrammarError(f"{message} at line {line}, column {col}", self.pos)
