"""
Reading and rewriting the declarations of @font-face rules.
"""

import re
from dataclasses import dataclass, field

from purge_glyphs.core.css import FontFaceRule
from purge_glyphs.core.font_src import FontFileMap, parse_font_src

QUOTE_RE = re.compile(r"""^["']|["']$""")


@dataclass
class FontFaceRecord:
    """What one @font-face rule declares, captured before it is rewritten."""

    font_family: str = ""
    font_files: FontFileMap = field(default_factory=FontFileMap)
    old_src_values: list[str] = field(default_factory=list)
    src_important: bool = False


def unquote_family(value: str) -> str:
    return QUOTE_RE.sub("", value.strip())


def collect_font_face(rule: FontFaceRule, src_root: str) -> FontFaceRecord:
    """
    Capture a rule's family and font files, removing its ``src`` declarations.

    Every ``src`` value is parsed into the same file map, so a path declared
    twice is one entry. When ``font-family`` is declared more than once, the
    last declaration wins. The new ``src`` is ``!important`` when any old one was.
    """
    record = FontFaceRecord()

    for declaration in list(rule.declarations):
        if declaration.lower_name == "src":
            parse_font_src(declaration.value, src_root, record.font_files)
            record.old_src_values.append(declaration.value)
            record.src_important = record.src_important or declaration.important
            rule.remove(declaration)
        elif declaration.lower_name == "font-family":
            record.font_family = unquote_family(declaration.value)

    return record


def rewrite_rule(rule: FontFaceRule, src_values: list[str], important: bool = False) -> None:
    """Append one ``src`` declaration per value, in order."""
    for value in src_values:
        rule.append("src", value, important=important)
