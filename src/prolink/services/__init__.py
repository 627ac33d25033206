"""Service layer: connection lifecycle and reads, returning ServiceResult.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
