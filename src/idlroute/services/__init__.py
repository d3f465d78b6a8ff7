"""Service layer: audit, message composition, call execution and binding.

Services may import from domain and infrastructure layers.
They must never import from commands, output, or http.
"""
