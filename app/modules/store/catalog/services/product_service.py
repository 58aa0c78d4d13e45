"""
商品服务实现
"""
from typing import List, Optional, Sequence, Tuple
import logging
import time
import uuid

from app.core.config.settings import Settings
from app.core.exceptions import NotFoundException, ValidationException
from app.modules.store.catalog.dtos import (
    CatalogQueryResultDto, FilterCriteriaDto, ProductCreateDto, ProductDto, ProductUpdateDto
)
from app.modules.store.catalog.entities import Product
from app.modules.store.catalog.repositories.iface.product_repository import IProductRepository
from app.modules.store.catalog.services.catalog_filter import filter_by_criteria, resolve_view_state


def now_ms() -> int:
    """当前时间 (epoch 毫秒)"""
    return int(time.time() * 1000)


def build_gallery(image: Optional[str], images: Optional[Sequence[str]], max_images: int = 6) -> Tuple[List[str], int]:
    """
    由主图和图片列表生成 (gallery, primary_image_index)。

    - 空白 URL 被丢弃，重复 URL 只保留第一次出现
    - 没有图片列表时使用 [image]
    - 主图不在列表中，或位于截断位置之后时，移到最前面；列表截断为 max_images 张
    - 未提供主图时使用列表第一张
    """
    gallery: List[str] = []
    for url in images or []:
        url = (url or "").strip()
        if url and url not in gallery:
            gallery.append(url)

    primary = (image or "").strip()
    if not primary:
        if not gallery:
            return [], 0
        primary = gallery[0]

    if primary not in gallery[:max_images]:
        if primary in gallery:
            gallery.remove(primary)
        gallery.insert(0, primary)
    gallery = gallery[:max_images]
    return gallery, gallery.index(primary)


class ProductService:
    """商品服务实现"""

    def __init__(self, product_repository: IProductRepository, settings: Settings):
        """
        初始化商品服务

        Args:
            product_repository: 商品仓储
            settings: 配置
        """
        self.product_repository = product_repository
        self.settings = settings
        self.logger = logging.getLogger(__name__)

    async def get_products_async(self) -> List[ProductDto]:
        """获取全部商品，按创建时间倒序"""
        products = await self.product_repository.get_all_async()
        return [self._map_to_dto(p) for p in products]

    async def get_product_async(self, id: str) -> ProductDto:
        product = await self.product_repository.get_by_id_async(id)
        if product is None:
            raise NotFoundException("商品", id)
        return self._map_to_dto(product)

    async def query_products_async(self, criteria: FilterCriteriaDto) -> CatalogQueryResultDto:
        """在服务端对全部商品执行筛选引擎"""
        products = await self.get_products_async()
        matched = filter_by_criteria(products, criteria)
        return CatalogQueryResultDto(
            state=resolve_view_state(products, matched),
            items=matched,
            total_count=len(products),
            matched_count=len(matched),
        )

    async def create_product_async(self, dto: ProductCreateDto) -> ProductDto:
        """
        创建商品

        Args:
            dto: 商品创建DTO

        Returns:
            新建的商品
        """
        missing = [field for field in ("name", "price", "image", "category") if self._is_blank(getattr(dto, field))]
        if missing:
            raise ValidationException(f"缺少必填字段: {', '.join(missing)}")

        self._validate_price(dto.price)
        self._validate_category(dto.category)
        gallery, primary_index = self._build_gallery(dto.image, dto.images)

        timestamp = now_ms()
        product = Product(
            id=uuid.uuid4().hex,
            name=dto.name.strip(),
            description=(dto.description or "").strip(),
            price=float(dto.price),
            category=dto.category,
            images=gallery,
            primary_image_index=primary_index,
            created_at=timestamp,
            updated_at=timestamp,
        )
        product = await self.product_repository.add_async(product)
        self.logger.info(f"管理员创建商品: id={product.id}, name={product.name}")
        return self._map_to_dto(product)

    async def update_product_async(self, id: str, dto: ProductUpdateDto) -> ProductDto:
        """部分更新商品，未提供的字段保持不变"""
        product = await self.product_repository.get_by_id_async(id)
        if product is None:
            raise NotFoundException("商品", id)

        changes = dto.model_dump(exclude_unset=True)
        if "name" in changes:
            if self._is_blank(dto.name):
                raise ValidationException("商品名称不能为空")
            product.name = dto.name.strip()
        if "description" in changes:
            product.description = (dto.description or "").strip()
        if "price" in changes:
            if dto.price is None:
                raise ValidationException("商品价格不能为空")
            self._validate_price(dto.price)
            product.price = float(dto.price)
        if "category" in changes:
            self._validate_category(dto.category)
            product.category = dto.category
        if "image" in changes or "images" in changes:
            image = dto.image if "image" in changes else product.image
            images = dto.images if "images" in changes else product.images
            if "images" in changes and "image" not in changes and product.image not in (images or []):
                # 新图库不含原主图时以新图库第一张为主图
                image = None
            product.images, product.primary_image_index = self._build_gallery(image, images)

        product.updated_at = now_ms()
        product = await self.product_repository.update_async(product)
        self.logger.info(f"管理员更新商品: id={id}, fields={sorted(changes)}")
        return self._map_to_dto(product)

    async def delete_product_async(self, id: str) -> bool:
        deleted = await self.product_repository.delete_async(id)
        if not deleted:
            raise NotFoundException("商品", id)
        self.logger.info(f"管理员删除商品: id={id}")
        return True

    def _build_gallery(self, image: Optional[str], images: Optional[Sequence[str]]) -> Tuple[List[str], int]:
        gallery, primary_index = build_gallery(image, images, self.settings.PRODUCT_MAX_IMAGES)
        if not gallery:
            raise ValidationException("商品至少需要一张图片")
        return gallery, primary_index

    def _validate_price(self, price: float) -> None:
        if price < 0:
            raise ValidationException("商品价格不能为负数")

    def _validate_category(self, category: Optional[str]) -> None:
        if category not in self.settings.PRODUCT_CATEGORIES:
            raise ValidationException(
                f"无效的商品类目: {category}，可选值: {', '.join(self.settings.PRODUCT_CATEGORIES)}"
            )

    @staticmethod
    def _is_blank(value) -> bool:
        return value is None or (isinstance(value, str) and not value.strip())

    def _map_to_dto(self, product: Product) -> ProductDto:
        return ProductDto(
            id=product.id,
            name=product.name,
            description=product.description or "",
            price=product.price,
            category=product.category,
            image=product.image,
            images=list(product.images or []),
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
