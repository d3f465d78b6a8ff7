"""Infrastructure layer: filesystem and import-path access.

This layer depends on stdlib only.
It must never import from services, commands, or output.
"""
