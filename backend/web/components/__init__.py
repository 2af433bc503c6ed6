# Rendering helpers shared by the web routes

from .markdown import render_markdown_safe

__all__ = ["render_markdown_safe"]
