"""Line tokenizers for delimited text.

Two strategies share the :class:`Tokenizer` interface: a single-character
delimiter and a whitespace-collapsing splitter. Both honour one quote and one
escape character; neither understands doubled quotes or multi-line fields.
"""

from __future__ import annotations

from typing import List


def strip_cr(line: str) -> str:
    """Drop one trailing carriage return (CRLF input read in text mode)."""
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


class Tokenizer:
    separator = ","

    def __init__(self, escape: str = "\\", quote: str = '"'):
        self.escape = escape
        self.quote = quote

    def split(self, line: str) -> List[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def __call__(self, line: str) -> List[str]:
        return self.split(strip_cr(line))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(separator={self.separator!r}, "
            f"escape={self.escape!r}, quote={self.quote!r})"
        )


class DelimitedTokenizer(Tokenizer):
    def __init__(self, separator: str = ",", escape: str = "\\", quote: str = '"'):
        super().__init__(escape=escape, quote=quote)
        if len(separator) != 1:
            raise ValueError(f"separator must be a single character, got {separator!r}")
        self.separator = separator

    def split(self, line: str) -> List[str]:
        if not line:
            return []
        fields: List[str] = []
        tok: List[str] = []
        quoted = False
        chars = iter(line)
        for ch in chars:
            if self.escape and ch == self.escape:
                tok.append(next(chars, ""))
            elif self.quote and ch == self.quote:
                quoted = not quoted
            elif ch == self.separator and not quoted:
                fields.append("".join(tok))
                tok = []
            else:
                tok.append(ch)
        fields.append("".join(tok))
        return fields


class WhitespaceTokenizer(Tokenizer):
    separator = " "

    def split(self, line: str) -> List[str]:
        fields: List[str] = []
        tok: List[str] = []
        quoted = False
        pending = False  # a quoted (possibly empty) field has started
        chars = iter(line)
        for ch in chars:
            if self.escape and ch == self.escape:
                tok.append(next(chars, ""))
                pending = True
            elif self.quote and ch == self.quote:
                quoted = not quoted
                pending = True
            elif not quoted and ch.isspace():
                if tok or pending:
                    fields.append("".join(tok))
                    tok = []
                    pending = False
            else:
                tok.append(ch)
        if tok or pending:
            fields.append("".join(tok))
        return fields


def make_tokenizer(separator: str, escape: str = "\\", quote: str = '"') -> Tokenizer:
    """Select the tokenizer strategy for ``separator`` (``" "`` collapses whitespace)."""
    if separator == " ":
        return WhitespaceTokenizer(escape=escape, quote=quote)
    return DelimitedTokenizer(separator, escape=escape, quote=quote)
