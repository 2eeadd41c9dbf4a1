"""
Shared utilities: configuration, logging, error handling and path matching.
"""
