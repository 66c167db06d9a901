"""
Single-File Merger
==================
Collapses a conventional index.html + style.css + script.js project into one
HTML document:

  1. start from index.html (required, found anywhere in the tree)
  2. inline style.css as a <style> block
       before the first "</head>", else before the first "<body", else prepended
     then drop <link ... href="[dir/]style.css"> tags
  3. inline script.js (or main.js) as a <script> block
       before the first "</body>", else appended
     then drop <script src="[dir/]script.js"></script> elements

This is text surgery with regular expressions, not HTML parsing. Unusual
markup (unquoted attributes, tags split across odd whitespace) may keep its
external reference. Only a tag whose own href/src value ends in the file
name is removed. The "</head>", "<body" and "</body>" anchors are matched
case-sensitively, so an upper-case <BODY> falls through to the next rule.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from .errors import MissingEntryPoint, NoProjectLoaded
from .models import File, Project
from .tree import TreeManager

logger = logging.getLogger("buildora.merger")

ENTRY_POINT = "index.html"
STYLE_SOURCE = "style.css"
# First match wins.
SCRIPT_SOURCES = ("script.js", "main.js")

# Optional directory part of an attribute value; never leaves the quotes.
_PATH_PREFIX = r"""(?:[^"'>]*/)?"""


def style_block(source: File) -> str:
    return f"<style>\n/* Injected from {source.name} */\n{source.content}\n</style>"


def script_block(source: File) -> str:
    return f"<script>\n/* Injected from {source.name} */\n{source.content}\n</script>"


def inject_style(html: str, block: str) -> str:
    if "</head>" in html:
        return html.replace("</head>", f"{block}\n</head>", 1)
    start = html.find("<body")
    if start >= 0:
        return f"{html[:start]}{block}\n{html[start:]}"
    return f"{block}\n{html}"


def inject_script(html: str, block: str) -> str:
    if "</body>" in html:
        return html.replace("</body>", f"{block}\n</body>", 1)
    return f"{html}\n{block}"


def strip_stylesheet_links(html: str, name: str = STYLE_SOURCE) -> str:
    pattern = re.compile(
        rf"""<link\s+[^>]*href=["']{_PATH_PREFIX}{re.escape(name)}["'][^>]*>""",
        re.IGNORECASE,
    )
    return pattern.sub("", html)


def strip_script_tags(html: str, name: str) -> str:
    pattern = re.compile(
        rf"""<script\s+[^>]*src=["']{_PATH_PREFIX}{re.escape(name)}["'][^>]*>\s*</script>""",
        re.IGNORECASE,
    )
    return pattern.sub("", html)


def merge_single_file(project: Optional[Project]) -> str:
    """
    Return the merged index.html for ``project``.

    Raises
    ------
    NoProjectLoaded   — project is None
    MissingEntryPoint — no file named index.html
    """
    if project is None:
        raise NoProjectLoaded()

    tree = TreeManager(project)
    index = tree.find_by_name(ENTRY_POINT, is_directory=False)
    if index is None:
        raise MissingEntryPoint(ENTRY_POINT)
    html = index.content

    css = tree.find_by_name(STYLE_SOURCE, is_directory=False)
    if css is not None:
        html = inject_style(html, style_block(css))
        html = strip_stylesheet_links(html, css.name)

    js = None
    for candidate in SCRIPT_SOURCES:
        js = tree.find_by_name(candidate, is_directory=False)
        if js is not None:
            break
    if js is not None:
        html = inject_script(html, script_block(js))
        html = strip_script_tags(html, js.name)

    logger.info(
        "Merged %s (style=%s, script=%s, %d chars)",
        ENTRY_POINT,
        css.name if css else "-",
        js.name if js else "-",
        len(html),
    )
    return html
