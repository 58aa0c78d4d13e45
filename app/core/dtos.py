# app/core/dtos.py
from typing import Generic, TypeVar, Optional
from pydantic import BaseModel, Field, ConfigDict

# 定义泛型类型变量
T = TypeVar('T')


def to_camel(field_name: str) -> str:
    """snake_case 字段名转换为 camelCase 别名"""
    return ''.join(x.capitalize() if i else x for i, x in enumerate(field_name.split('_')))


class ApiResponse(BaseModel, Generic[T]):
    """
    通用的 API 响应模型。
    使用 Pydantic 的泛型模型来支持泛型数据类型。
    """
    code: int = Field(200, description="状态码，例如 200 表示成功")
    message: str = Field("操作成功", description="响应消息")
    data: Optional[T] = Field(None, description="响应数据主体")

    model_config = ConfigDict(
        populate_by_name=True, # 允许通过别名或字段名填充
        json_schema_extra={ # 为 Swagger UI 提供示例
            "example": {
                "code": 200,
                "message": "操作成功",
                "data": None
            }
        }
    )

    @classmethod
    def success(cls, data: Optional[T] = None, message: str = "操作成功", code: int = 200) -> 'ApiResponse[T]':
        """创建表示成功的 ApiResponse 实例"""
        return cls(code=code, message=message, data=data)

    @classmethod
    def fail(cls, message: str, code: int = 400, data: Optional[T] = None) -> 'ApiResponse[T]':
        """创建表示失败的 ApiResponse 实例"""
        return cls(code=code, message=message, data=data)


class BaseIdRequestDto(BaseModel):
    """通用的按 ID 请求 DTO"""
    id: str = Field(..., min_length=1, description="资源 ID")

    model_config = ConfigDict(json_schema_extra={"example": {"id": "3f2c9a0e8d1b4c6f9e7a5b3d1c0f2e4a"}})


class BaseIdResponseDto(BaseModel):
    """通用的只返回 ID 的响应 DTO"""
    id: str = Field(..., description="资源 ID")
