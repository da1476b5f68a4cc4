"""
Email rendering, delivery and content optimisation
"""
from .templates import extract_variables, render, render_template, DEFAULT_TEMPLATES

__all__ = [
    "extract_variables",
    "render",
    "render_template",
    "DEFAULT_TEMPLATES",
]
