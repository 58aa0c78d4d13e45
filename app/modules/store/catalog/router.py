import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.session import get_db
from app.core.config.settings import settings
from app.core.dtos import ApiResponse

from app.modules.store.catalog.dtos import CatalogQueryResultDto, FilterCriteriaDto, ProductDto
from app.modules.store.catalog.services.product_service import ProductService

# 获取 Logger
logger = logging.getLogger(__name__)

# 创建商品目录 API Router (公开，无需登录)
router = APIRouter(
    prefix="/products",
    tags=["Catalog"]
)


# 依赖项工厂：获取 ProductService 实例 (管理端路由也复用)
def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    from app.modules.store.catalog.repositories.product_repository import ProductRepository
    return ProductService(product_repository=ProductRepository(db), settings=settings)


@router.get("", response_model=ApiResponse[List[ProductDto]], response_model_by_alias=True, summary="获取全部商品 (按创建时间倒序)")
async def list_products(
    product_service: ProductService = Depends(get_product_service),
):
    products = await product_service.get_products_async()
    return ApiResponse.success(data=products)


@router.post("/query", response_model=ApiResponse[CatalogQueryResultDto], response_model_by_alias=True, summary="按条件筛选商品")
async def query_products(
    criteria: FilterCriteriaDto,
    product_service: ProductService = Depends(get_product_service),
):
    result = await product_service.query_products_async(criteria)
    return ApiResponse.success(data=result)


@router.get("/{product_id}", response_model=ApiResponse[ProductDto], response_model_by_alias=True, summary="获取商品详情")
async def get_product(
    product_id: str,
    product_service: ProductService = Depends(get_product_service),
):
    product = await product_service.get_product_async(product_id)
    return ApiResponse.success(data=product)
