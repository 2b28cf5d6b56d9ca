"""Presentation layer: human-readable and JSON rendering of plans and results."""

from .human_formatter import format_plan, format_dispatch_result, format_plan_json

__all__ = ["format_plan", "format_dispatch_result", "format_plan_json"]
