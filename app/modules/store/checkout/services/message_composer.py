"""
WhatsApp 下单消息生成

消息格式:

    Hi! I am interested in
    <空行>
    • 商品名 - ₹价格
      https://shop.example.com/product/<id>
    <空行>
    Could you please provide more details?

只列出商品单价，不计算合计，也不包含数量。
"""
from typing import Any, Iterable, Optional
from urllib.parse import quote

from app.core.config.settings import settings

DEFAULT_GREETING = "Hi! I am interested in"
CLOSING_LINE = "Could you please provide more details?"
WHATSAPP_BASE_URL = "https://wa.me"

# 与浏览器 encodeURIComponent 保留的字符一致
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _get(item: Any, *names: str) -> Any:
    for name in names:
        if isinstance(item, dict):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def format_price(price: Any) -> str:
    """
    按数值原样输出，整数价格不带小数，不做舍入。
    例如 1500 -> '1500', 12.50 -> '12.5', 12.345 -> '12.345'
    """
    value = float(price or 0)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def compose_order_message(
    items: Iterable[Any],
    base_url: str = "",
    greeting: Optional[str] = None,
    currency: str = "₹",
) -> str:
    """
    生成下单消息正文。

    Args:
        items: 购物车条目 (CartLine、ProductDto 或 dict)，需要 name、price，可选 productId / product_id / id
        base_url: 站点地址，非空且条目有商品ID时附加商品详情链接
        greeting: 开头问候语，默认 "Hi! I am interested in"
        currency: 货币符号
    """
    base = (base_url or "").rstrip("/")
    message = f"{greeting or DEFAULT_GREETING}\n\n"
    for item in items:
        name = _get(item, "name") or ""
        price = format_price(_get(item, "price"))
        product_id = _get(item, "product_id", "productId", "id")
        line = f"• {name} - {currency}{price}"
        if base and product_id:
            line += f"\n  {base}/product/{product_id}"
        message += f"{line}\n"
    message += f"\n{CLOSING_LINE}"
    return message


def encode_uri_component(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def build_whatsapp_link(
    items: Iterable[Any],
    phone_number: Optional[str] = None,
    base_url: Optional[str] = None,
    greeting: Optional[str] = None,
    currency: Optional[str] = None,
) -> str:
    """
    生成 https://wa.me/<号码>?text=<消息> 深链，未传入的参数使用配置值。
    号码只保留数字。
    """
    phone = phone_number if phone_number is not None else settings.WHATSAPP_PHONE_NUMBER
    digits = "".join(ch for ch in phone if ch.isdigit())
    message = compose_order_message(
        items,
        base_url=base_url if base_url is not None else settings.STORE_BASE_URL,
        greeting=greeting or settings.WHATSAPP_MESSAGE,
        currency=currency or settings.CURRENCY_SYMBOL,
    )
    return f"{WHATSAPP_BASE_URL}/{digits}?text={encode_uri_component(message)}"
