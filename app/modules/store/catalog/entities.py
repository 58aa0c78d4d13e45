"""
店面实体模型：商品
"""
from typing import List
from sqlalchemy import BigInteger, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.session import Base


class Product(Base):
    """
    商品实体模型。

    图片以有序列表 images 保存，主图由 primary_image_index 指向其中一项，
    因此主图始终属于图片列表。
    """
    __tablename__ = "store_product"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, name="Id", comment="主键ID")
    name: Mapped[str] = mapped_column(String(255), nullable=False, name="Name", comment="商品名称")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", name="Description", comment="商品描述")
    price: Mapped[float] = mapped_column(Numeric(precision=10, scale=2, asdecimal=False), nullable=False, name="Price", comment="商品价格")
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True, name="Category", comment="商品类目")
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list, name="Images", comment="图片URL列表 (1-6)")
    primary_image_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0, name="PrimaryImageIndex", comment="主图在图片列表中的位置")
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True, name="CreatedAt", comment="创建时间 (epoch 毫秒)")
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False, name="UpdatedAt", comment="最后修改时间 (epoch 毫秒)")

    @property
    def image(self) -> str:
        """主图 URL"""
        if not self.images:
            return ""
        index = self.primary_image_index if 0 <= self.primary_image_index < len(self.images) else 0
        return self.images[index]
