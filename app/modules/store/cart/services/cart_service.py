"""
购物车状态管理

购物车只保存在客户端：内存中维护条目，每次修改后把完整条目列表同步写入键值存储。
"""
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.core.config.settings import settings
from app.core.exceptions import ValidationException
from app.core.utils.json_utils import safe_deserialize, safe_serialize
from app.modules.store.cart.models import CartLine
from app.modules.store.cart.stores import KeyValueStore
from app.modules.store.checkout.services.message_composer import build_whatsapp_link

logger = logging.getLogger(__name__)


def _attr(product: Any, name: str, default: Any = None) -> Any:
    if isinstance(product, dict):
        return product.get(name, default)
    return getattr(product, name, default)


def snapshot_line(product: Any, quantity: int) -> CartLine:
    """由商品生成购物车条目快照，图片取图库第一张，没有图库时取主图"""
    images = _attr(product, "images") or []
    image = images[0] if images else (_attr(product, "image") or "")
    return CartLine(
        product_id=str(_attr(product, "id")),
        name=_attr(product, "name") or "",
        price=float(_attr(product, "price") or 0),
        quantity=quantity,
        image=image,
    )


class CartService:
    """
    购物车服务。

    Args:
        store: 键值存储 (MemoryKeyValueStore / JsonFileKeyValueStore 或同接口对象)
        storage_key: 存储键，默认使用配置项 CART_STORAGE_KEY
    """

    def __init__(self, store: KeyValueStore, storage_key: Optional[str] = None):
        self.store = store
        self.storage_key = storage_key or settings.CART_STORAGE_KEY
        self._lines: Dict[str, CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return [line.model_copy() for line in self._lines.values()]

    @property
    def item_count(self) -> int:
        """全部条目的数量之和"""
        return sum(line.quantity for line in self._lines.values())

    def get_line(self, product_id: str) -> Optional[CartLine]:
        line = self._lines.get(product_id)
        return line.model_copy() if line else None

    def total(self) -> float:
        """Σ 单价 × 数量"""
        return sum(line.price * line.quantity for line in self._lines.values())

    def add(self, product: Any, quantity: int = 1) -> CartLine:
        """
        加入购物车：已存在则累加数量，否则按当前商品信息生成快照。

        Raises:
            ValidationException: 数量小于 1
        """
        if quantity < 1:
            raise ValidationException("数量必须大于等于 1")

        product_id = str(_attr(product, "id"))
        existing = self._lines.get(product_id)
        if existing:
            existing.quantity += quantity
            line = existing
        else:
            line = snapshot_line(product, quantity)
            self._lines[line.product_id] = line
        self._persist()
        return line.model_copy()

    def remove(self, product_id: str) -> None:
        """整行删除"""
        self._lines.pop(product_id, None)
        self._persist()

    def adjust_quantity(self, product_id: str, delta: int) -> Optional[CartLine]:
        """
        调整数量，结果小于等于 0 时删除该行。

        Returns:
            调整后的条目；被删除或不存在时返回 None
        """
        line = self._lines.get(product_id)
        if line is not None:
            new_quantity = line.quantity + delta
            if new_quantity <= 0:
                del self._lines[product_id]
                line = None
            else:
                line.quantity = new_quantity
        self._persist()
        return line.model_copy() if line else None

    def clear(self) -> None:
        self._lines.clear()
        self._persist()

    def hydrate(self) -> List[CartLine]:
        """
        从存储恢复购物车，替换内存中的条目。

        数据缺失、不是 JSON 或不是数组时得到空购物车；无效条目被跳过，
        同一商品的多个条目合并数量。
        """
        self._lines = {}
        try:
            raw = self.store.get_item(self.storage_key)
        except Exception as e:
            logger.error(f"读取购物车数据失败: {e}")
            return self.lines
        if raw is None:
            return self.lines

        entries = safe_deserialize(raw)
        if not isinstance(entries, list):
            logger.warning(f"购物车数据不是数组，已忽略: type={type(entries).__name__}")
            return self.lines

        skipped = 0
        for entry in entries:
            try:
                line = CartLine.model_validate(entry)
            except ValidationError:
                skipped += 1
                continue
            existing = self._lines.get(line.product_id)
            if existing:
                existing.quantity += line.quantity
            else:
                self._lines[line.product_id] = line
        if skipped:
            logger.warning(f"购物车数据中有 {skipped} 个无效条目已被跳过。")
        return self.lines

    def checkout_link(self, phone_number: Optional[str] = None, base_url: Optional[str] = None) -> str:
        """整个购物车的 WhatsApp 下单链接"""
        return build_whatsapp_link(self._lines.values(), phone_number=phone_number, base_url=base_url)

    def buy_now_link(self, product: Any, quantity: int = 1, phone_number: Optional[str] = None,
                     base_url: Optional[str] = None) -> str:
        """单个商品直接下单，不修改购物车"""
        if quantity < 1:
            raise ValidationException("数量必须大于等于 1")
        line = snapshot_line(product, quantity)
        return build_whatsapp_link([line], phone_number=phone_number, base_url=base_url)

    def _persist(self) -> None:
        payload = safe_serialize([line.to_storage() for line in self._lines.values()], fallback="[]")
        try:
            self.store.set_item(self.storage_key, payload)
        except Exception as e:
            # 内存中的修改保留
            logger.error(f"保存购物车失败: {e}")
