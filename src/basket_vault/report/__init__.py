from __future__ import annotations

from .formatter import format_report_table
from .generator import AssetLine, SwapLine, VaultReport, generate_report

__all__ = [
    "AssetLine",
    "SwapLine",
    "VaultReport",
    "format_report_table",
    "generate_report",
]
