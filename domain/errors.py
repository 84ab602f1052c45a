"""
领域异常定义

业务层只抛出这些异常，由 app/middleware/exception_handler.py 统一转换为 HTTP 响应。
"""
from typing import Optional


class DomainError(Exception):
    """领域异常基类"""

    status_code: int = 500
    error: str = "业务处理失败"

    def __init__(self, message: Optional[str] = None):
        """
        初始化领域异常

        Args:
            message: 错误描述，不传时使用类默认描述
        """
        self.message = message or self.error
        super().__init__(self.message)


class NotFoundError(DomainError):
    """本地与远程均未找到对应记录"""

    status_code = 404
    error = "记录不存在"


class ConflictError(DomainError):
    """唯一性约束冲突（条形码、批准文号、openid、手机号）"""

    status_code = 409
    error = "数据冲突"


class InvalidInputError(DomainError):
    """必填字段为空或参数非法"""

    status_code = 400
    error = "参数错误"


class RemoteUnavailableError(DomainError):
    """第三方接口不可用（网络错误、超时、HTTP错误状态、非JSON响应）"""

    status_code = 502
    error = "第三方服务不可用"


class UserDisabledError(DomainError):
    """已禁用用户尝试登录"""

    status_code = 403
    error = "用户已被禁用"


class PersistenceError(DomainError):
    """本地存储写入失败（数据超长、数值越界等非唯一性错误）"""

    status_code = 500
    error = "数据保存失败"
