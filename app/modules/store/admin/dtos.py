"""
管理后台数据传输对象
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from app.core.dtos import to_camel


class LoginRequestDto(BaseModel):
    """管理员登录请求"""
    username: str = Field(..., min_length=1, description="管理员用户名")
    password: str = Field(..., min_length=1, description="管理员密码")

    model_config = ConfigDict(json_schema_extra={"example": {"username": "admin", "password": "********"}})


class LoginResultDto(BaseModel):
    """登录结果"""
    access_token: str = Field(..., description="访问令牌")
    token_type: str = Field("bearer", description="令牌类型")
    username: str = Field(..., description="管理员用户名")
    expires_at: datetime = Field(..., description="令牌过期时间 (UTC)")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionInfoDto(BaseModel):
    """当前会话信息"""
    authenticated: bool = Field(True, description="是否已登录")
    username: str = Field(..., description="管理员用户名")
    expires_at: Optional[datetime] = Field(None, description="令牌过期时间 (UTC)")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResultDto(BaseModel):
    """图片上传结果"""
    urls: List[str] = Field(default_factory=list, description="上传后可公开访问的图片 URL，顺序与上传顺序一致")


class PresignRequestDto(BaseModel):
    """预签名直传请求"""
    file_name: str = Field(..., min_length=1, description="原始文件名，用于确定扩展名")
    content_type: str = Field(..., min_length=1, description="文件 MIME 类型")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PresignResultDto(BaseModel):
    """预签名直传结果"""
    upload_url: str = Field(..., description="PUT 上传地址")
    public_url: str = Field(..., description="上传完成后的公开访问地址")
    key: str = Field(..., description="对象 key")
    expires_in: int = Field(..., description="上传地址有效期 (秒)")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
