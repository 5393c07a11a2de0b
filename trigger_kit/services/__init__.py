"""Connector-independent services: change detection, credentials, search, dispatch."""
