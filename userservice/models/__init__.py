from .user import AverageAge, Message, User, UserCreate, UserRole, UserUpdate

__all__ = [
    "AverageAge",
    "Message",
    "User",
    "UserCreate",
    "UserRole",
    "UserUpdate",
]
