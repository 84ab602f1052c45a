"""
数据库模型
"""
from infrastructure.database.models.drug import Drug, DrugStatus
from infrastructure.database.models.user import User, UserStatus, Gender

__all__ = [
    "Drug",
    "DrugStatus",
    "User",
    "UserStatus",
    "Gender",
]
