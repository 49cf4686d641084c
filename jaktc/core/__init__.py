"""
Core data shared by every phase: file ids, spans and diagnostics.
"""

from .diagnostics import Diagnostic, diagnostic_to_json, render_diagnostic
from .file_id import FileId
from .span import Span, line_and_column

__all__ = ["Diagnostic", "FileId", "Span", "diagnostic_to_json", "line_and_column", "render_diagnostic"]
