from .html import render_html, render_legend, render_page
from .rich_table import print_pivot, render_rich

__all__ = [
    "render_html",
    "render_legend",
    "render_page",
    "print_pivot",
    "render_rich",
]
