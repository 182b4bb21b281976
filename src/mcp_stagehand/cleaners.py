# mcp_stagehand/cleaners.py

import re
from typing import List

from bs4 import BeautifulSoup, Comment

# Tags whose text never reaches the reader
NON_TEXT_TAGS = ("script", "style", "noscript", "template", "svg", "iframe", "head")

CSS_RULE_PAT = re.compile(r"^\.[a-zA-Z0-9_-]+\s*{")
CSS_DECLARATION_PAT = re.compile(r"^[a-zA-Z-]+:[a-zA-Z0-9%\s().,-]+;$")
UNICODE_ESCAPE_PAT = re.compile(r"\\u([0-9a-fA-F]{4})")


def _is_style_noise(line: str) -> bool:
    """CSS that leaked into visible text: rules, keyframes, lone declarations."""
    return (
        ("{" in line and "}" in line)
        or "@keyframes" in line
        or bool(CSS_RULE_PAT.match(line))
        or bool(CSS_DECLARATION_PAT.match(line))
    )


def _decode_unicode_escapes(line: str) -> str:
    return UNICODE_ESCAPE_PAT.sub(lambda m: chr(int(m.group(1), 16)), line)


def clean_text_lines(raw_text: str) -> List[str]:
    """
    Filter page text line by line:
      - strip whitespace and drop empty lines
      - drop lines that look like CSS
      - decode literal \\uXXXX escapes
    """
    lines = []
    for line in (raw_text or "").split("\n"):
        line = line.strip()
        if not line or _is_style_noise(line):
            continue
        lines.append(_decode_unicode_escapes(line))
    return lines


def html_to_text(html: str) -> str:
    """Visible text of an HTML document, one block per line."""
    soup = BeautifulSoup(html or "", "html.parser")
    for c in soup.find_all(string=lambda s: isinstance(s, Comment)):
        c.extract()
    for tag in soup.find_all(NON_TEXT_TAGS):
        tag.decompose()
    root = soup.body or soup
    return root.get_text("\n")


def extract_page_text(html: str) -> str:
    """Cleaned, newline-joined text content of a page."""
    return "\n".join(clean_text_lines(html_to_text(html)))


__all__ = [
    "clean_text_lines",
    "html_to_text",
    "extract_page_text",
]
