"""Backends for the external collaborators: HTTP gateway and cache store."""
