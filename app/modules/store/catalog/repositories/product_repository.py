"""
商品仓储实现
"""
from typing import List, Optional
import logging
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.store.catalog.entities import Product
from app.modules.store.catalog.repositories.iface.product_repository import IProductRepository


class ProductRepository(IProductRepository):
    """商品仓储实现"""

    def __init__(self, db: AsyncSession):
        """
        初始化商品仓储

        Args:
            db: 数据库会话
        """
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_by_id_async(self, id: str) -> Optional[Product]:
        query = select(Product).where(Product.id == id)
        result = await self.db.execute(query)
        product = result.scalars().first()
        if product is None:
            self.logger.debug(f"未找到商品: id={id}")
        return product

    async def get_all_async(self) -> List[Product]:
        query = select(Product).order_by(desc(Product.created_at), Product.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def add_async(self, product: Product) -> Product:
        try:
            self.db.add(product)
            await self.db.flush()
            await self.db.commit()
            await self.db.refresh(product)
            self.logger.info(f"商品已添加: id={product.id}, name={product.name}")
            return product
        except Exception as ex:
            self.logger.error(f"添加商品失败: {ex}", exc_info=True)
            await self.db.rollback()
            raise

    async def update_async(self, product: Product) -> Product:
        try:
            product = await self.db.merge(product)
            await self.db.flush()
            await self.db.commit()
            await self.db.refresh(product)
            self.logger.info(f"商品已更新: id={product.id}")
            return product
        except Exception as ex:
            self.logger.error(f"更新商品失败, ID: {product.id}, 错误: {ex}", exc_info=True)
            await self.db.rollback()
            raise

    async def delete_async(self, id: str) -> bool:
        try:
            product = await self.get_by_id_async(id)
            if product is None:
                return False
            await self.db.delete(product)
            await self.db.flush()
            await self.db.commit()
            self.logger.info(f"商品已删除: id={id}")
            return True
        except Exception as ex:
            self.logger.error(f"删除商品失败, ID: {id}, 错误: {ex}", exc_info=True)
            await self.db.rollback()
            raise
