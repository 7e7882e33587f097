"""
Command-line interface for catalog-pipeline.
"""
