"""
Core models, schema inference and errors.
"""
