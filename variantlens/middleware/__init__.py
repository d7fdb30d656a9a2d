from .admin_middleware import require_admin_key

__all__ = ["require_admin_key"]
