"""
Parser for Daypo XML quiz exports.

The export looks roughly like::

    <test>
      <p><t>Quiz title</t></p>
      <c>
        <c0>
          <p>15. What is X?</p>
          <r><o1>first</o1><o2>second</o2></r>
          <c>21</c>
        </c0>
        ...
      </c>
    </test>

The question container and the per-question correctness code share the tag
``c``, so the container is only ever looked up among the direct children of the
root element.
"""
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from loguru import logger

from quizbank.core.errors import ParseError


DEFAULT_TITLE = "Cuestionario"
CORRECT_MARK = "2"
INCORRECT_MARK = "1"

# accepts "15", "15.", "15)", "15:", "15-", "15 -"
IMPORT_NUMBERING = re.compile(r"^\s*(\d+)\s*(?:[.):\-]\s*)?(.*)$", re.DOTALL | re.ASCII)
# edit form only strips "15. " or "15) "
EDIT_NUMBERING = re.compile(r"^\s*(\d+)[.)]\s+(.*)$", re.DOTALL | re.ASCII)


@dataclass
class ParsedItem:
    orig_no: int
    prompt: str
    options: List[str]
    correct: List[int] = field(default_factory=list)


@dataclass
class ParsedQuiz:
    title: str
    items: List[ParsedItem]


def _extract(pattern: re.Pattern, text: Optional[str]) -> Tuple[int, str]:
    s = (text or "").strip()
    m = pattern.match(s)
    if m:
        return int(m.group(1)), (m.group(2) or "").strip()
    return 0, s


def extract_import_numbering(text: Optional[str]) -> Tuple[int, str]:
    """Splits a leading question number off an imported prompt.

    Returns ``(orig_no, clean)``; ``orig_no`` is 0 when there is no number.
    """
    return _extract(IMPORT_NUMBERING, text)


def extract_edit_numbering(text: Optional[str]) -> Tuple[int, str]:
    """Like :func:`extract_import_numbering` but only for ``N.`` / ``N)`` followed by whitespace."""
    return _extract(EDIT_NUMBERING, text)


def code_to_correct_indices(code: Optional[str], n_opts: int) -> List[int]:
    c = (code or "").strip()
    if not c:
        return []
    if len(c) < n_opts:
        c = c.ljust(n_opts, INCORRECT_MARK)
    c = c[:n_opts]
    return [i for i, ch in enumerate(c) if ch == CORRECT_MARK]


def _tag(el: ET.Element) -> str:
    return el.tag.rsplit("}", 1)[-1].lower() if isinstance(el.tag, str) else ""


def _text(el: Optional[ET.Element]) -> str:
    if el is None:
        return ""
    return "".join(el.itertext()).strip()


def _child(el: ET.Element, tag: str) -> Optional[ET.Element]:
    for child in el:
        if _tag(child) == tag:
            return child
    return None


def _find_title(root: ET.Element) -> str:
    parents = {child: parent for parent in root.iter() for child in parent}
    for el in root.iter():
        parent = parents.get(el)
        if _tag(el) == "t" and parent is not None and _tag(parent) == "p":
            return _text(el) or DEFAULT_TITLE
    return DEFAULT_TITLE


def parse_question(qnode: ET.Element) -> Optional[ParsedItem]:
    orig_no, clean = extract_import_numbering(_text(_child(qnode, "p")))

    r_el = _child(qnode, "r")
    options = []
    if r_el is not None:
        options = [t for t in (_text(o) for o in r_el) if t]

    code = _text(_child(qnode, "c"))
    correct = code_to_correct_indices(code, len(options))

    if not clean or len(options) < 2:
        return None
    return ParsedItem(orig_no=orig_no, prompt=clean, options=options, correct=correct)


def parse_daypo_xml(xml_text: str) -> ParsedQuiz:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ParseError(f"Invalid or corrupt XML: {e}") from e

    title = _find_title(root)

    container = _child(root, "c")
    if container is None:
        raise ParseError("Question container <c> not found under the document root.")

    items = []
    dropped = 0
    for qnode in container:
        item = parse_question(qnode)
        if item is None:
            dropped += 1
            continue
        items.append(item)

    logger.info("Parsed '{}': {} items kept, {} dropped", title, len(items), dropped)
    return ParsedQuiz(title=title, items=items)
