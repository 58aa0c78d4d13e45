"""
商品仓储接口
"""
from typing import List, Optional
from app.modules.store.catalog.entities import Product


class IProductRepository:
    """商品仓储接口"""

    async def get_by_id_async(self, id: str) -> Optional[Product]:
        """
        根据ID获取商品

        Args:
            id: 商品ID

        Returns:
            商品实体，不存在时返回 None
        """
        raise NotImplementedError()

    async def get_all_async(self) -> List[Product]:
        """
        获取全部商品，按创建时间倒序

        Returns:
            商品列表
        """
        raise NotImplementedError()

    async def add_async(self, product: Product) -> Product:
        """
        添加商品

        Args:
            product: 商品实体

        Returns:
            已保存的商品实体
        """
        raise NotImplementedError()

    async def update_async(self, product: Product) -> Product:
        """
        更新商品

        Args:
            product: 商品实体

        Returns:
            已保存的商品实体
        """
        raise NotImplementedError()

    async def delete_async(self, id: str) -> bool:
        """
        删除商品

        Args:
            id: 商品ID

        Returns:
            商品存在并被删除时返回 True
        """
        raise NotImplementedError()
