"""Price history statistics for one brand variant."""
from typing import Any, Dict

from shoplist.domain.MasterItem import BrandVariant


def variant_price_stats(variant: BrandVariant) -> Dict[str, Any]:
    """Summarise a variant's price history.

    Returns:
    {
      'count': int, 'min': float, 'max': float, 'average': float,
      'last': PriceRecord or None,
      'history': [PriceRecord, ...]   # newest first
    }
    All numbers are 0 when the history is empty.
    """
    history = sorted(reversed(variant.price_history), key=lambda r: r.date, reverse=True)
    if not history:
        return {'count': 0, 'min': 0.0, 'max': 0.0, 'average': 0.0, 'last': None, 'history': []}
    prices = [r.price for r in history]
    return {
        'count': len(prices),
        'min': min(prices),
        'max': max(prices),
        'average': sum(prices) / len(prices),
        'last': history[0],
        'history': history,
    }
