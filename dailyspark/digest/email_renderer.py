"""
Email Renderer - Daily curriculum topics as a single HTML fragment

Renders:
- Greeting header with the user's display name
- One card per topic: course badge, title, status badge, estimated time,
  description, question and resource links

Inline styles only (mail clients drop <style> blocks). The output is
whitespace-minified so identical input always yields identical bytes.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterable

from dailyspark.config import EMAIL_SUBJECT_PREFIX
from dailyspark.curriculum.models import FlattenedTopic, TopicStatus

CONTAINER_STYLE = "max-width:600px;margin:2rem auto;font-family:Arial,sans-serif;background:#f9f9f9;padding:1rem;"
HEADER_STYLE = "color:#f7b84a;"
CARD_STYLE = "background:#fff;border:1px solid #e3e3e3;padding:1rem;margin-bottom:1rem;color:#222;"
COURSE_STYLE = "font-weight:bold;color:#1a4e8a;background:#eaf1fb;padding:2px 8px;"
TITLE_STYLE = "font-weight:600;color:#222;margin:4px 0;"
LINK_STYLE = "color:#2d6cdf;"

# (background, foreground)
COMPLETED_COLORS = ("#c8e6c9", "#388e3c")
PENDING_COLORS = ("#fff3d6", "#f7b84a")

_RUNS_OF_SPACES = re.compile(r" {2,}")


def build_subject(display_name: str) -> str:
    return f"{EMAIL_SUBJECT_PREFIX} - Daily Curriculum Topics, {display_name}"


def minify_html(markup: str) -> str:
    """Drop newlines and tabs, collapse repeated spaces."""
    markup = markup.replace("\n", "").replace("\r", "").replace("\t", "")
    return _RUNS_OF_SPACES.sub(" ", markup)


class TopicsEmailRenderer:
    """
    Build the topics digest.

    Topic text, names and URLs are inserted verbatim. ``escape=True``
    HTML-escapes them instead (``Settings.escape_email_html``).
    """

    def __init__(self, escape: bool = False):
        self.escape = escape

    def _text(self, value: str) -> str:
        return html.escape(value) if self.escape else value

    def _attr(self, value: str) -> str:
        return html.escape(value, quote=True) if self.escape else value

    def render_resource(self, url: str) -> str:
        return (
            f"<a href='{self._attr(url)}' target='_blank' style='{LINK_STYLE}'>"
            f"{self._text(url)}</a>"
        )

    def render_topic(self, topic: FlattenedTopic) -> str:
        if topic.status == TopicStatus.COMPLETED:
            background, foreground = COMPLETED_COLORS
        else:
            background, foreground = PENDING_COLORS

        parts = [
            f"<div style='{CARD_STYLE}'>",
            f"<span style='{COURSE_STYLE}'>{self._text(topic.course_title)}</span>",
            f"<div style='{TITLE_STYLE}'>✨ {self._text(topic.title)}</div>",
            f"<span style='background:{background};color:{foreground};padding:2px 10px;'>"
            f"Status: {topic.status.value}</span>",
            f"<p>Estimated Time: {self._text(topic.estimated_time)}</p>",
            f"<p>Description: {self._text(topic.description)}</p>",
            f"<p>Question: {self._text(topic.question)}</p>",
        ]
        if topic.resources:
            links = ", ".join(self.render_resource(url) for url in topic.resources)
            parts.append(f"<p>Resources: {links}</p>")
        parts.append("</div>")
        return "".join(parts)

    def render(self, display_name: str, topics: Iterable[FlattenedTopic]) -> str:
        body = [
            f"<div style='{CONTAINER_STYLE}'>",
            f"<h2 style='{HEADER_STYLE}'>🚀 Ready to Spark Your Learning, "
            f"{self._text(display_name)}!</h2>",
        ]
        body.extend(self.render_topic(topic) for topic in topics)
        body.append("</div>")
        return minify_html("".join(body))


def render_topics_email(
    display_name: str, topics: Iterable[FlattenedTopic], escape: bool = False
) -> str:
    """Convenience wrapper around TopicsEmailRenderer.render."""
    return TopicsEmailRenderer(escape=escape).render(display_name, topics)
