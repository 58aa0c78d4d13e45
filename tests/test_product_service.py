from typing import Dict, List, Optional

import pytest

from app.core.config.settings import settings
from app.core.exceptions import NotFoundException, ValidationException
from app.modules.store.catalog.dtos import FilterCriteriaDto, ProductCreateDto, ProductUpdateDto
from app.modules.store.catalog.entities import Product
from app.modules.store.catalog.enums import CatalogViewState
from app.modules.store.catalog.repositories.iface.product_repository import IProductRepository
from app.modules.store.catalog.services.product_service import ProductService, build_gallery


class InMemoryProductRepository(IProductRepository):
    def __init__(self):
        self.items: Dict[str, Product] = {}

    async def get_by_id_async(self, id: str) -> Optional[Product]:
        return self.items.get(id)

    async def get_all_async(self) -> List[Product]:
        return sorted(self.items.values(), key=lambda p: p.created_at, reverse=True)

    async def add_async(self, product: Product) -> Product:
        self.items[product.id] = product
        return product

    async def update_async(self, product: Product) -> Product:
        self.items[product.id] = product
        return product

    async def delete_async(self, id: str) -> bool:
        return self.items.pop(id, None) is not None


@pytest.fixture
def service():
    return ProductService(product_repository=InMemoryProductRepository(), settings=settings)


def _create_dto(**overrides):
    data = dict(name="Gold Ring", price=1500, image="https://cdn/a.jpg", category="rings", description="22k")
    data.update(overrides)
    return ProductCreateDto(**data)


class TestBuildGallery:
    def test_empty_gallery_becomes_primary_only(self):
        assert build_gallery("a.jpg", None) == (["a.jpg"], 0)

    def test_primary_missing_from_gallery_is_prepended(self):
        assert build_gallery("p.jpg", ["a.jpg", "b.jpg"]) == (["p.jpg", "a.jpg", "b.jpg"], 0)

    def test_primary_inside_gallery_keeps_position(self):
        assert build_gallery("b.jpg", ["a.jpg", "b.jpg"]) == (["a.jpg", "b.jpg"], 1)

    def test_gallery_is_capped_and_deduplicated(self):
        images = [f"{i}.jpg" for i in range(8)] + ["0.jpg"]
        gallery, index = build_gallery("p.jpg", images, max_images=6)
        assert gallery == ["p.jpg", "0.jpg", "1.jpg", "2.jpg", "3.jpg", "4.jpg"]
        assert index == 0

    def test_primary_beyond_cap_is_moved_to_front(self):
        images = [f"https://cdn/{i}.jpg" for i in range(8)]
        gallery, index = build_gallery("https://cdn/7.jpg", images, max_images=6)
        assert gallery == ["https://cdn/7.jpg"] + images[:5]
        assert index == 0

    def test_no_primary_uses_first_image(self):
        assert build_gallery(None, ["a.jpg", " "]) == (["a.jpg"], 0)


async def test_create_product_sets_ids_timestamps_and_gallery(service):
    product = await service.create_product_async(_create_dto(images=["https://cdn/b.jpg"]))
    assert len(product.id) == 32
    assert product.image == "https://cdn/a.jpg"
    assert product.images == ["https://cdn/a.jpg", "https://cdn/b.jpg"]
    assert product.created_at == product.updated_at > 0


@pytest.mark.parametrize("missing", ["name", "price", "image", "category"])
async def test_create_requires_fields(service, missing):
    with pytest.raises(ValidationException) as exc_info:
        await service.create_product_async(_create_dto(**{missing: None}))
    assert missing in exc_info.value.message
    assert exc_info.value.code == 400


async def test_create_rejects_negative_price_and_unknown_category(service):
    with pytest.raises(ValidationException):
        await service.create_product_async(_create_dto(price=-1))
    with pytest.raises(ValidationException):
        await service.create_product_async(_create_dto(category="watches"))


async def test_zero_price_is_allowed(service):
    product = await service.create_product_async(_create_dto(price=0))
    assert product.price == 0


async def test_get_missing_product_raises_not_found(service):
    with pytest.raises(NotFoundException) as exc_info:
        await service.get_product_async("nope")
    assert exc_info.value.code == 404


async def test_update_is_partial(service):
    created = await service.create_product_async(_create_dto())
    updated = await service.update_product_async(created.id, ProductUpdateDto(price=1999.5))
    assert updated.price == 1999.5
    assert updated.name == "Gold Ring"
    assert updated.image == "https://cdn/a.jpg"
    assert updated.updated_at >= created.updated_at


async def test_update_images_without_old_primary_promotes_first_image(service):
    created = await service.create_product_async(_create_dto())
    updated = await service.update_product_async(
        created.id, ProductUpdateDto(images=["https://cdn/x.jpg", "https://cdn/y.jpg"])
    )
    assert updated.image == "https://cdn/x.jpg"
    assert updated.images == ["https://cdn/x.jpg", "https://cdn/y.jpg"]


async def test_update_primary_image_only(service):
    created = await service.create_product_async(_create_dto(images=["https://cdn/a.jpg", "https://cdn/b.jpg"]))
    updated = await service.update_product_async(created.id, ProductUpdateDto(image="https://cdn/b.jpg"))
    assert updated.image == "https://cdn/b.jpg"
    assert updated.images == ["https://cdn/a.jpg", "https://cdn/b.jpg"]


async def test_update_rejects_blank_name(service):
    created = await service.create_product_async(_create_dto())
    with pytest.raises(ValidationException):
        await service.update_product_async(created.id, ProductUpdateDto(name="  "))


async def test_delete_missing_product_raises_not_found(service):
    with pytest.raises(NotFoundException):
        await service.delete_product_async("nope")


async def test_query_reports_states(service):
    empty = await service.query_products_async(FilterCriteriaDto())
    assert empty.state == CatalogViewState.EMPTY_CATALOG

    await service.create_product_async(_create_dto())
    no_match = await service.query_products_async(FilterCriteriaDto(search="necklace"))
    assert no_match.state == CatalogViewState.NO_MATCHES
    assert no_match.total_count == 1
    assert no_match.matched_count == 0

    hit = await service.query_products_async(FilterCriteriaDto(search="gold"))
    assert hit.state == CatalogViewState.RESULTS
    assert [p.name for p in hit.items] == ["Gold Ring"]
