"""Hand-written scanner for the legacy paragraph (CONTROL) format.

A file is a sequence of paragraphs separated by blank lines. Each
paragraph is a sequence of `Field-Name: value` lines; a line starting
with whitespace continues the previous field's value. Lines beginning
with `#` are comments.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class ParagraphSyntaxError(Exception):
    """Raised when paragraph text does not follow the field grammar."""

    def __init__(self, message: str, origin: str, line: int, column: int) -> None:
        self.origin = origin
        self.line = line
        self.column = column
        self.reason = message
        super().__init__(f"{origin}:{line}:{column}: {message}")


@dataclass
class ParagraphField:
    """One `Name: value` field with the position of its name."""

    name: str
    value: str
    line: int
    column: int


@dataclass
class Paragraph:
    """An ordered set of fields."""

    line: int
    fields: dict[str, ParagraphField] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def get(self, name: str, default: str = "") -> str:
        found = self.fields.get(name)
        return found.value if found is not None else default


class ParagraphParser:
    """Split paragraph-format text into Paragraph objects.

    Usage:
        paragraphs = ParagraphParser(text, origin="ports/zlib/CONTROL").parse()
    """

    def __init__(self, source: str, origin: str) -> None:
        # Trailing whitespace is insignificant; dropping it turns
        # whitespace-only lines into paragraph separators.
        self._source = "\n".join(line.rstrip() for line in source.splitlines()) + "\n"
        self._origin = origin
        self._pos = 0
        self._line = 1
        self._col = 1

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def parse(self) -> list[Paragraph]:
        """Scan the entire source and return all paragraphs."""
        paragraphs: list[Paragraph] = []
        while True:
            self._skip_separators()
            if self._at_end():
                break
            paragraphs.append(self._parse_paragraph())
        return paragraphs

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _parse_paragraph(self) -> Paragraph:
        paragraph = Paragraph(line=self._line)
        while not self._at_end() and self._peek() != "\n":
            if self._peek() == "#":
                self._skip_line()
                continue
            parsed = self._parse_field()
            if parsed.name in paragraph.fields:
                raise self._error(f"duplicate field: {parsed.name}", parsed.line, parsed.column)
            paragraph.fields[parsed.name] = parsed
        return paragraph

    def _parse_field(self) -> ParagraphField:
        line, column = self._line, self._col

        if self._peek() in (" ", "\t"):
            raise self._error("continuation line without a field", line, column)

        name = ""
        while not self._at_end() and (self._peek().isalnum() or self._peek() == "-"):
            name += self._advance()
        if not name:
            raise self._error(f"expected field name, got {self._peek()!r}", line, column)
        if self._peek() != ":":
            raise self._error(f"expected ':' after field name {name!r}", self._line, self._col)
        self._advance()  # skip :

        while self._peek() in (" ", "\t"):
            self._advance()

        lines = [self._read_rest_of_line()]
        while self._peek() in (" ", "\t"):
            while self._peek() in (" ", "\t"):
                self._advance()
            lines.append(self._read_rest_of_line())

        value = "\n".join(lines).strip("\n")
        return ParagraphField(name=name, value=value, line=line, column=column)

    def _read_rest_of_line(self) -> str:
        text = ""
        while not self._at_end() and self._peek() != "\n":
            text += self._advance()
        if not self._at_end():
            self._advance()  # skip newline
        return text

    def _skip_line(self) -> None:
        self._read_rest_of_line()

    def _skip_separators(self) -> None:
        """Skip blank lines and comment lines between paragraphs."""
        while not self._at_end():
            if self._peek() == "\n":
                self._advance()
            elif self._peek() == "#" and self._col == 1:
                self._skip_line()
            else:
                break

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _peek(self) -> str:
        if self._at_end():
            return "\0"
        return self._source[self._pos]

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _error(self, message: str, line: int, column: int) -> ParagraphSyntaxError:
        return ParagraphSyntaxError(message, self._origin, line, column)


def parse_paragraphs(text: str, origin: str) -> list[Paragraph]:
    """Parse paragraph-format text; raises ParagraphSyntaxError."""
    return ParagraphParser(text, origin).parse()
