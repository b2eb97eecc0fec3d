"""Question rendering for the dashboard preview pane."""

from __future__ import annotations

from trivia_app.core.markdown_renderer import renderer


def render_question_with_options(
    question_text: str,
    options: list[str],
    correct_answer: int | None = None,
) -> str:
    """Render a question and its lettered options as an HTML document for QWebEngineView.

    Empty options are shown as placeholders so the preview lines up with the form.
    """
    shown = [option if option.strip() else "(empty)" for option in options]
    return renderer.render_question_document(
        question_text or "(No question text)",
        shown,
        correct_answer=correct_answer,
    )
