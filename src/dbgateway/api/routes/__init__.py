from . import health, schema

__all__ = ["health", "schema"]
