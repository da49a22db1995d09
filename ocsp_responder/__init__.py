"""OCSP responder for a single certificate authority."""

__version__ = "1.0.0"
