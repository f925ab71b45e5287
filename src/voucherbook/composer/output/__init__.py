"""
Module: composer.output

Purpose:
    Visual output for composed pages.
"""

from .preview import PreviewConfig, render_page_preview, save_page_preview

__all__ = ["PreviewConfig", "render_page_preview", "save_page_preview"]
