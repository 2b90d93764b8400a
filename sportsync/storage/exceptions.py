"""
Custom exceptions for the freshness storage layer.

These exceptions provide clear error categories for store operations:
- StoreError: Base exception for all store errors
- ConnectionError: Connection failures
- ConfigurationError: Missing or invalid configuration
- QueryError: Query execution failures
"""


class StoreError(Exception):
    """Base exception for all store errors."""
    pass


class ConnectionError(StoreError):
    """Failed to connect to the store."""
    pass


class ConfigurationError(StoreError):
    """Missing or invalid store configuration."""
    pass


class QueryError(StoreError):
    """Error executing a query."""
    pass
