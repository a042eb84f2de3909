from __future__ import annotations

from .base import BaseSwapExecutor
from .mock_swap import MockSwapExecutor

__all__ = ["BaseSwapExecutor", "MockSwapExecutor"]
