"""
用户接口的请求和响应模型
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """微信登录请求模型"""
    code: str = Field(..., description="wx.login 获取的临时登录凭证", min_length=1)


class UserProfile(BaseModel):
    """用户资料模型"""
    nickname: Optional[str] = Field(default=None, description="昵称", max_length=100)
    avatar_url: Optional[str] = Field(default=None, description="头像URL", max_length=500)
    gender: Optional[int] = Field(default=None, description="性别：0-未知，1-男，2-女", ge=0, le=2)
    age: Optional[int] = Field(default=None, description="年龄", ge=0, le=150)
    phone: Optional[str] = Field(default=None, description="手机号", max_length=20)
    emergency_contact: Optional[str] = Field(default=None, description="紧急联系人", max_length=100)
    emergency_phone: Optional[str] = Field(default=None, description="紧急联系人电话", max_length=20)
    medical_history: Optional[str] = Field(default=None, description="病史信息")
    allergies: Optional[str] = Field(default=None, description="过敏史")


class UserUpdate(UserProfile):
    """更新用户资料请求模型"""
    pass


class UserStatusUpdate(BaseModel):
    """用户状态更新请求模型"""
    status: str = Field(..., description="状态：active-正常，disabled-禁用")


class UserResponse(UserProfile):
    """用户响应模型"""
    id: int = Field(..., description="用户ID")
    openid: str = Field(..., description="微信openid")
    unionid: Optional[str] = Field(default=None, description="微信unionid")
    status: str = Field(..., description="状态")
    last_login_at: Optional[datetime] = Field(default=None, description="最近登录时间")
    created_at: datetime = Field(..., description="创建时间")
    updated_at: datetime = Field(..., description="更新时间")

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """用户列表响应模型"""
    list: List[UserResponse] = Field(..., description="用户列表")
    total: int = Field(..., description="总数")
    page: int = Field(..., description="页码")
    size: int = Field(..., description="每页数量")


class UserStatisticsResponse(BaseModel):
    """用户统计响应模型"""
    total_users: int = Field(..., description="用户总数")
    today_new_users: int = Field(..., description="今日新增用户数")
    active_users: int = Field(..., description="活跃用户数（N天内登录过）")
    active_days: int = Field(..., description="活跃用户统计天数")
