"""
商品目录相关数据传输对象
"""
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from app.core.dtos import to_camel
from app.modules.store.catalog.enums import ALL_CATEGORIES, CatalogViewState


class ProductDto(BaseModel):
    """商品DTO"""
    id: str = Field(..., description="商品ID")
    name: str = Field(..., description="商品名称")
    description: str = Field("", description="商品描述")
    price: float = Field(..., description="商品价格", ge=0)
    category: str = Field(..., description="商品类目")
    image: str = Field(..., description="主图URL")
    images: List[str] = Field(default_factory=list, description="图片URL列表")
    created_at: int = Field(0, description="创建时间 (epoch 毫秒)")
    updated_at: int = Field(0, description="最后修改时间 (epoch 毫秒)")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProductCreateDto(BaseModel):
    """
    商品创建DTO。

    必填字段 (name, price, image, category) 在服务层校验，缺失时返回 400。
    """
    name: Optional[str] = Field(None, description="商品名称")
    description: Optional[str] = Field(None, description="商品描述")
    price: Optional[float] = Field(None, description="商品价格")
    category: Optional[str] = Field(None, description="商品类目")
    image: Optional[str] = Field(None, description="主图URL")
    images: Optional[List[str]] = Field(None, description="图片URL列表 (最多 6 张)")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductUpdateDto(BaseModel):
    """商品更新DTO，只更新提供的字段"""
    name: Optional[str] = Field(None, description="商品名称")
    description: Optional[str] = Field(None, description="商品描述")
    price: Optional[float] = Field(None, description="商品价格")
    category: Optional[str] = Field(None, description="商品类目")
    image: Optional[str] = Field(None, description="主图URL")
    images: Optional[List[str]] = Field(None, description="图片URL列表 (最多 6 张)")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilterCriteriaDto(BaseModel):
    """商品筛选条件"""
    search: str = Field("", description="搜索关键词，匹配名称或描述")
    category: str = Field(ALL_CATEGORIES, description="类目，'all' 表示不限")
    min_price: Optional[float] = Field(None, description="最低价格 (含)")
    max_price: Optional[float] = Field(None, description="最高价格 (含)")
    sort: str = Field("newest", description="排序方式: newest, price-asc, price-desc, name-asc, name-desc")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {"search": "gold", "category": "rings", "minPrice": 500, "maxPrice": 5000, "sort": "price-asc"}
        }
    )


class CatalogQueryResultDto(BaseModel):
    """商品筛选结果"""
    state: CatalogViewState = Field(..., description="列表展示状态")
    items: List[ProductDto] = Field(default_factory=list, description="筛选后的商品")
    total_count: int = Field(0, description="目录中商品总数")
    matched_count: int = Field(0, description="符合条件的商品数")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
