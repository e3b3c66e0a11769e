"""
Reports module for the Price Quoter
Contains the quotation PDF renderer and its table layout helpers
"""

from .quotation_pdf import RenderedReport, render_quotation

__all__ = ['RenderedReport', 'render_quotation']
