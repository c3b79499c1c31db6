"""생성형 팁 합성 모듈"""

from .parsers import format_generated_tip, parse_ndjson_line, parse_tips_payload
from .service import TipSynthesizer, build_fallback_tips

__all__ = [
    "TipSynthesizer",
    "build_fallback_tips",
    "parse_tips_payload",
    "parse_ndjson_line",
    "format_generated_tip",
]
