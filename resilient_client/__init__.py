"""Client-side resilience layer: authenticated gateway, job tracking, secret codec."""

__version__ = "0.1.0"
