"""
Shared utilities for the metering connector.

This package provides the MeteringError envelope and the decorators that
wrap operations and Lambda handlers, keeping error normalization in one
place.
"""
