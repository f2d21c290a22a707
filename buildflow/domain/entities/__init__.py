"""
Domain Entities - Value objects and pagination primitives.
"""
from .address import Address
from .pagination import Page, PageRequest, DateFilter, PaginationHelper

__all__ = [
    'Address',
    'Page', 'PageRequest', 'DateFilter', 'PaginationHelper',
]
