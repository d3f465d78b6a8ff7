"""Optional FastAPI host adapter (requires the ``idlroute[http]`` extra).

The core never imports from here; only ``idlroute serve`` and host
applications do.
"""
