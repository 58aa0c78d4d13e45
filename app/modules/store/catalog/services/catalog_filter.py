"""
商品筛选引擎

纯函数：输入商品集合和筛选条件，输出新的有序列表，不修改输入。
商品可以是实体、DTO 或普通 dict，只要能读到 name, description, price,
category, created_at (dict 也接受 camelCase 的 createdAt)。
"""
import locale
import logging
from typing import Any, Iterable, List, Optional, Sequence, TypeVar

from app.modules.store.catalog.enums import ALL_CATEGORIES, CatalogViewState, SortOption

logger = logging.getLogger(__name__)

P = TypeVar("P")

_FIELD_ALIASES = {
    "created_at": ("created_at", "createdAt"),
}


def _field(product: Any, name: str, default: Any = None) -> Any:
    keys = _FIELD_ALIASES.get(name, (name,))
    if isinstance(product, dict):
        for key in keys:
            if key in product:
                return product[key]
        return default
    for key in keys:
        if hasattr(product, key):
            return getattr(product, key)
    return default


def _price(product: Any) -> float:
    return float(_field(product, "price", 0) or 0)


def _name_key(product: Any):
    name = str(_field(product, "name", "") or "")
    folded = name.casefold()
    try:
        collated = locale.strxfrm(folded)
    except (ValueError, OSError):
        collated = folded
    return collated, name


def _matches_search(product: Any, query: str) -> bool:
    name = str(_field(product, "name", "") or "").lower()
    description = str(_field(product, "description", "") or "").lower()
    return query in name or query in description


def filter_products(
    products: Iterable[P],
    search: str = "",
    category: str = ALL_CATEGORIES,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    sort: Any = SortOption.NEWEST,
) -> List[P]:
    """
    按条件筛选并排序商品。

    Args:
        products: 商品集合
        search: 关键词，去除首尾空白后为空则不过滤；忽略大小写匹配名称或描述
        category: 'all' 表示不限，否则精确匹配
        min_price: 最低价格 (含)
        max_price: 最高价格 (含)
        sort: 排序方式，未知值按 newest 处理

    Returns:
        新的商品列表
    """
    result = list(products)

    query = (search or "").strip().lower()
    if query:
        result = [p for p in result if _matches_search(p, query)]

    if category and category != ALL_CATEGORIES:
        result = [p for p in result if _field(p, "category") == category]

    if min_price is not None:
        result = [p for p in result if _price(p) >= min_price]

    if max_price is not None:
        result = [p for p in result if _price(p) <= max_price]

    option = SortOption.parse(sort)
    if option == SortOption.PRICE_ASC:
        result.sort(key=_price)
    elif option == SortOption.PRICE_DESC:
        result.sort(key=_price, reverse=True)
    elif option == SortOption.NAME_ASC:
        result.sort(key=_name_key)
    elif option == SortOption.NAME_DESC:
        result.sort(key=_name_key, reverse=True)
    else:
        result.sort(key=lambda p: int(_field(p, "created_at", 0) or 0), reverse=True)

    return result


def filter_by_criteria(products: Iterable[P], criteria: Any) -> List[P]:
    """使用 FilterCriteriaDto (或同名属性的对象) 调用 filter_products"""
    return filter_products(
        products,
        search=criteria.search,
        category=criteria.category,
        min_price=criteria.min_price,
        max_price=criteria.max_price,
        sort=criteria.sort,
    )


def resolve_view_state(all_products: Sequence[Any], filtered: Sequence[Any]) -> CatalogViewState:
    """加载成功后的展示状态：目录为空 / 没有匹配 / 有结果"""
    if not all_products:
        return CatalogViewState.EMPTY_CATALOG
    if not filtered:
        return CatalogViewState.NO_MATCHES
    return CatalogViewState.RESULTS
