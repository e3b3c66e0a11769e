"""
Utility helpers for the Price Quoter
"""

from .logger import QuoterLogger, get_logger

__all__ = ['QuoterLogger', 'get_logger']
