"""
Price Quoter
Regional beer price verification and quotation export for retail clerks
"""

__version__ = "1.0.0"
