from __future__ import annotations

from .base import BaseConfidentialRebalancer
from .codec import decode_input, decode_result, encode_input, encode_result
from .loopback import LoopbackConfidentialRebalancer

__all__ = [
    "BaseConfidentialRebalancer",
    "LoopbackConfidentialRebalancer",
    "decode_input",
    "decode_result",
    "encode_input",
    "encode_result",
]
