"""Extraction strategy implementations - adapters for the ExtractionStrategy port.

Contains the pattern strategy and the AI text and vision strategies.
"""

from .ai_text_strategy import AITextExtractionStrategy
from .ai_vision_strategy import AIVisionExtractionStrategy
from .pattern_strategy import PatternExtractionStrategy
from .selector_init import build_strategy_selector
from .strategy_selector import StrategySelector

__all__ = [
    "AITextExtractionStrategy",
    "AIVisionExtractionStrategy",
    "PatternExtractionStrategy",
    "StrategySelector",
    "build_strategy_selector",
]
