"""Markdown rendering shared by the player page and the admin preview.

Architecture note:
    Question text is stored as markdown source and rendered on every view.
    Raw HTML in the source is disabled so text typed by admins can never
    inject markup into the player page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import html

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts question markdown into HTML fragments or full documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render one line (an answer option) without the surrounding paragraph."""
        return self._markdown.renderInline((markdown_text or "").strip())

    def render_question_document(
        self,
        text: str,
        options: list[str],
        correct_answer: int | None = None,
        title: str = "Preview",
    ) -> str:
        """Full HTML page showing the question and lettered options, correct one highlighted."""
        items = []
        for index, option in enumerate(options):
            css_class = "option correct" if index == correct_answer else "option"
            items.append(
                f'<li class="{css_class}"><span class="letter">{chr(65 + index)}</span>'
                f"{self.render_inline(option)}</li>"
            )
        body = self.render_fragment(text) + f'<ol class="options">{"".join(items)}</ol>'
        return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{html.escape(title)}</title>
    <style>
      body {{ font-family: 'Segoe UI', system-ui, sans-serif; margin: 0; padding: 1rem; background: transparent; color: #f5f7ff; }}
      .options {{ list-style: none; padding: 0; display: grid; gap: 0.5rem; }}
      .option {{ background: #1f2937; border-radius: 0.5rem; padding: 0.6rem 0.8rem; }}
      .option.correct {{ background: #14532d; }}
      .letter {{ font-weight: 700; margin-right: 0.6rem; color: #facc15; }}
    </style>
  </head>
  <body>{body}</body>
</html>"""


renderer = MarkdownRenderer()
