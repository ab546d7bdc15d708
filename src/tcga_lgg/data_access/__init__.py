"""
GDC data access package initialization
"""

from .gdc_client import GDCClient, GDCRequestError, build_filters
