"""
Unknown-ingredient log: gaps in the knowledge base seen in live traffic.
"""
from .unknown_log import UnknownIngredientsLog, get_unknown_log, log_unknown_ingredient

__all__ = [
    "UnknownIngredientsLog",
    "get_unknown_log",
    "log_unknown_ingredient",
]
