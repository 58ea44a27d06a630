"""Markdown + LaTeX rendering for question and option text.

The renderer only produces HTML fragments; math is left in ``$...$`` form for
MathJax (or any client-side engine) to typeset at display time. Raw HTML in
authored text is escaped.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

_EMPTY_FRAGMENT = "<p><em>No content provided.</em></p>"


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML block fragment."""
        sanitized = markdown_text.strip()
        if not sanitized:
            return _EMPTY_FRAGMENT
        return self._markdown.render(sanitized)


renderer = MarkdownMathRenderer()
# Shared instance; MarkdownIt renders are read-only so reuse across request
# threads is fine.
