from __future__ import annotations

import html

import markdown as md

from diary_manager.services.sanitize import sanitize_rendered_html

_THEMES = {
    "light": {"bg": "#ffffff", "fg": "#202020", "code": "#f5f5f5", "muted": "#888888"},
    "dark": {"bg": "#1e1e1e", "fg": "#dddddd", "code": "#2b2b2b", "muted": "#999999"},
}


class MarkdownRenderer:
    def __init__(self, *, theme: str = "light"):
        self.theme = theme

    def render_body(self, text: str) -> str:
        rendered = md.markdown(text, extensions=["fenced_code", "tables", "nl2br"])
        return sanitize_rendered_html(rendered)

    def render_page(self, text: str, *, title: str = "", stamp: str = "") -> str:
        c = _THEMES.get(self.theme, _THEMES["light"])
        heading = ""
        if title:
            heading = f"<h1>{html.escape(title)}</h1><p class='stamp'>{stamp}</p>"

        return f"""\
<html>
<head>
  <meta charset="utf-8"/>
  <style>
    body {{ font-family: sans-serif; padding: 16px; line-height: 1.5; background: {c["bg"]}; color: {c["fg"]}; }}
    code, pre {{ background: {c["code"]}; }}
    pre {{ padding: 12px; overflow-x: auto; }}
    .stamp {{ color: {c["muted"]}; font-size: 0.9em; }}
  </style>
</head>
<body>{heading}{self.render_body(text)}</body>
</html>
"""
