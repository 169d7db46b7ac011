from .strategy_port import ExtractionStrategy, StrategyOutcome

__all__ = ["ExtractionStrategy", "StrategyOutcome"]
