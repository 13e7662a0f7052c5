"""
Metro Rent Finder - rental search along Bangalore metro corridors.

Aggregates paginated NoBroker search results for groups of metro stations,
then filters, sorts and wishlists them.
"""

__version__ = "0.1.0"
