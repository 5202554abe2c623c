"""
Service layer for the AWS Marketplace Metering connector.

Credential construction, client lifecycle, the worker pool that runs
network calls off the caller's thread, and the metering operations.
"""
