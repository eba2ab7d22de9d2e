from .loader import load_price_bars

__all__ = ["load_price_bars"]
