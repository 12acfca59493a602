"""
Minimal editable stylesheet model on top of tinycss2.

Only @font-face rules are ever rewritten. Everything else is written back
exactly as it was read, using the source positions tinycss2 records on each
node to slice the original text.
"""

import os
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import tinycss2

# At-rules whose block holds further rules
NESTED_AT_RULES = frozenset(
    {"media", "supports", "layer", "container", "document", "-moz-document", "scope", "starting-style"}
)

IMPORTANT_RE = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)


def normalize_newlines(css: str) -> str:
    """Apply the input preprocessing tinycss2 applies, so offsets line up."""
    return css.replace("\0", "\ufffd").replace("\r\n", "\n").replace("\r", "\n").replace("\f", "\n")


@dataclass(frozen=True)
class SourceLocation:
    """Where a rule came from."""

    file: str | None
    line: int
    column: int


@dataclass
class Declaration:
    """A property/value pair inside a rule."""

    name: str
    value: str
    important: bool = False
    source: SourceLocation | None = None

    @property
    def lower_name(self) -> str:
        return self.name.lower()

    def serialize(self) -> str:
        suffix = " !important" if self.important else ""
        return f"{self.name}: {self.value}{suffix}"


@dataclass
class Comment:
    """A comment between the declarations of a rule."""

    text: str

    def serialize(self) -> str:
        return f"/*{self.text}*/"


class FontFaceRule:
    """An @font-face rule whose declarations can be removed and appended."""

    def __init__(
        self,
        header: str,
        items: list[Declaration | Comment],
        source: SourceLocation,
        start: int,
        end: int,
    ) -> None:
        self.header = header
        self.items = items
        self.source = source
        self.start = start
        self.end = end

    @property
    def declarations(self) -> list[Declaration]:
        return [item for item in self.items if isinstance(item, Declaration)]

    @property
    def source_file(self) -> str | None:
        return self.source.file

    def find(self, name: str) -> list[Declaration]:
        name = name.lower()
        return [decl for decl in self.declarations if decl.lower_name == name]

    def first_value(self, name: str) -> str | None:
        found = self.find(name)
        return found[0].value if found else None

    def remove(self, declaration: Declaration) -> None:
        self.items.remove(declaration)

    def append(self, name: str, value: str, important: bool = False) -> Declaration:
        declaration = Declaration(name, value, important=important, source=self.source)
        self.items.append(declaration)
        return declaration

    def serialize(self, indent: str = "  ") -> str:
        lines = []
        for item in self.items:
            terminator = ";" if isinstance(item, Declaration) else ""
            lines.append(f"{indent}{item.serialize()}{terminator}\n")
        body = "".join(lines)
        return f"{self.header}\n{body}}}"


class Stylesheet:
    """
    A parsed stylesheet.

    Args:
        css: Stylesheet text
        source_file: Path the text was read from, used to resolve
            relative font URLs
    """

    def __init__(self, css: str, source_file: str | Path | None = None) -> None:
        self.text = normalize_newlines(css)
        self.source_file = os.fspath(source_file) if source_file else None
        self.font_face_rules: list[FontFaceRule] = []
        self._qualified_rules: list = []
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", self.text)]

        nodes = tinycss2.parse_stylesheet(self.text, skip_comments=False, skip_whitespace=False)
        self._walk(nodes, len(self.text))

    @classmethod
    def from_file(cls, path: Path) -> "Stylesheet":
        return cls(Path(path).read_text(encoding="utf-8"), path)

    @property
    def source_dir(self) -> str:
        directory = os.path.dirname(self.source_file) if self.source_file else ""
        return (directory or ".").replace(os.sep, "/")

    def _offset(self, node) -> int:
        return self._line_starts[node.source_line - 1] + node.source_column - 1

    def _spans(self, nodes: list, end: int) -> Iterator[tuple[object, int, int]]:
        """Pair each sibling node with the text range it owns."""
        starts = [self._offset(node) for node in nodes]
        for i, node in enumerate(nodes):
            yield node, starts[i], starts[i + 1] if i + 1 < len(nodes) else end

    def _block_end(self, start: int, end: int) -> int:
        """Index of the closing brace of the block in ``[start, end)``."""
        stripped = self.text[start:end].rstrip()
        if stripped.endswith("}"):
            return start + len(stripped) - 1
        return end

    def _walk(self, nodes: list, end: int) -> None:
        for node, start, stop in self._spans(nodes, end):
            if node.type == "qualified-rule":
                self._qualified_rules.append(node)
            elif node.type == "at-rule" and node.content is not None:
                if node.lower_at_keyword == "font-face":
                    self.font_face_rules.append(self._font_face(node, start, stop))
                elif node.lower_at_keyword in NESTED_AT_RULES:
                    children = tinycss2.parse_rule_list(node.content, skip_comments=False, skip_whitespace=False)
                    self._walk(children, self._block_end(start, stop))

    def _font_face(self, node, start: int, stop: int) -> FontFaceRule:
        body_end = self._block_end(start, stop)
        header = self.text[start : self.text.index("{", start) + 1]
        source = SourceLocation(self.source_file, node.source_line, node.source_column)

        kept = []
        items = tinycss2.parse_declaration_list(node.content, skip_comments=False, skip_whitespace=False)
        for item, item_start, item_stop in self._spans(items, body_end):
            if item.type == "comment":
                kept.append(Comment(item.value))
                continue
            if item.type != "declaration":
                continue
            raw = self.text[item_start:item_stop].split(":", 1)[1].strip().rstrip(";").strip()
            raw = IMPORTANT_RE.sub("", raw)
            kept.append(
                Declaration(
                    item.name,
                    raw,
                    important=item.important,
                    source=SourceLocation(self.source_file, item.source_line, item.source_column),
                )
            )

        end = body_end + 1 if body_end < stop else stop
        return FontFaceRule(header, kept, source, start, end)

    def declaration_values(self, name: str) -> list[str]:
        """Values of every declaration called ``name`` in style rules."""
        name = name.lower()
        values = []
        for rule in self._qualified_rules:
            for item in tinycss2.parse_declaration_list(rule.content, skip_comments=True, skip_whitespace=True):
                if item.type == "declaration" and item.lower_name == name:
                    values.append(tinycss2.serialize(item.value).strip())
        return values

    def serialize(self) -> str:
        parts = []
        position = 0
        for rule in sorted(self.font_face_rules, key=lambda r: r.start):
            parts.append(self.text[position : rule.start])
            parts.append(rule.serialize())
            position = rule.end
        parts.append(self.text[position:])
        return "".join(parts)
