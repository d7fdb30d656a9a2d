from . import audit, batch, health, variant

__all__ = ["audit", "batch", "health", "variant"]
