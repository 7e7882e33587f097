"""
catalog-pipeline: normalizes heterogeneous data sources into a paginated Unified Data Catalog.
"""

__version__ = "0.1.0"
