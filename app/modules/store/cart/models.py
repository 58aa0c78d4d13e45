"""
购物车条目
"""
from pydantic import BaseModel, Field, ConfigDict

from app.core.dtos import to_camel


class CartLine(BaseModel):
    """
    购物车中的一行。

    名称、价格和图片是加入购物车时的快照，商品之后被修改或删除不影响已有条目。
    持久化时使用 camelCase 键: productId, name, price, quantity, image。
    """
    product_id: str = Field(..., min_length=1, description="商品ID")
    name: str = Field(..., description="商品名称快照")
    price: float = Field(..., ge=0, description="单价快照")
    quantity: int = Field(..., ge=1, description="数量")
    image: str = Field("", description="图片快照")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)
