from app.models.admin_session import AdminSessionRecord

__all__ = ["AdminSessionRecord"]
