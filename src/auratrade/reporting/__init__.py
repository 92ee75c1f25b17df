from .performance import TradeLog, compute_performance, trade_pl

__all__ = ["TradeLog", "compute_performance", "trade_pl"]
