"""
商品目录客户端：店面通过 /api/products 获取商品
"""
from typing import List

from app.modules.store.api_client import StoreApiClient
from app.modules.store.catalog.dtos import CatalogQueryResultDto, FilterCriteriaDto, ProductDto


class CatalogClient(StoreApiClient):
    """商品目录 HTTP 客户端"""

    async def list_products(self) -> List[ProductDto]:
        """全部商品，按创建时间倒序"""
        data = await self._request("GET", "/api/products")
        return [ProductDto.model_validate(item) for item in data or []]

    async def get_product(self, product_id: str) -> ProductDto:
        """单个商品，不存在时抛出 NotFoundException"""
        data = await self._request("GET", f"/api/products/{product_id}")
        return ProductDto.model_validate(data)

    async def query_products(self, criteria: FilterCriteriaDto) -> CatalogQueryResultDto:
        """在服务端执行筛选"""
        data = await self._request("POST", "/api/products/query", json=criteria.model_dump(by_alias=True))
        return CatalogQueryResultDto.model_validate(data)
