"""
Price verification against the external lookup service
"""

from .errors import ErrorKind, VerificationError
from .client import PriceVerifier, VerificationRequest

__all__ = ['ErrorKind', 'VerificationError', 'PriceVerifier', 'VerificationRequest']
