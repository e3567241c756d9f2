"""Tools do carrinho e do catálogo da loja.

Busca/listagem/adição dependem da loja configurada (Capability.PLATFORM);
ajuste de quantidade só mexe no carrinho da sessão.
"""
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field
from ..runtime.toolkit import Capability, ToolContext, ToolSpec
from ...domain.errors import PlatformError
from ...domain.models import CartItem, Product, SessionStatus
from ...domain.money import format_amount

NO_PLATFORM = "No e-commerce platform is configured, so product lookups are not available."


class SearchSkuArgs(BaseModel):
    sku: str = Field(min_length=1, description="Product SKU to search for")


class AddProductArgs(BaseModel):
    product_id: str = Field(min_length=1, description="Product ID from the platform")
    quantity: int = Field(default=1, ge=1, description="Quantity to add")


class UpdateCartItemArgs(BaseModel):
    cart_item_id: str = Field(min_length=1, description="ID of the cart item to update")
    quantity: int = Field(ge=0, description="New quantity (0 removes the item)")


class ListProductsArgs(BaseModel):
    limit: int = Field(default=10, ge=1, le=50, description="Maximum number of products to return")
    search: Optional[str] = Field(default=None, description="Search term to filter products")


def describe_product(p: Product) -> str:
    lines = [
        f"{p.name} (SKU: {p.sku or '-'}, ID: {p.id})",
        f"Price: {format_amount(p.price, p.currency)}",
        f"Stock: {p.stock}",
    ]
    if p.category:
        lines.append(f"Category: {p.category}")
    if p.description:
        lines.append(p.description)
    return "\n".join(lines)


def _locked(ctx: ToolContext) -> Optional[str]:
    if ctx.session.status != SessionStatus.ACTIVE:
        return f"The cart can no longer be changed because this checkout is {ctx.session.status.value}."
    return None


def _new_item_id(ctx: ToolContext, product_id: str) -> str:
    if ctx.session.find_item(product_id) is None:
        return product_id
    n = 2
    while ctx.session.find_item(f"{product_id}-{n}") is not None:
        n += 1
    return f"{product_id}-{n}"


def tool_search_product_by_sku(ctx: ToolContext, args: SearchSkuArgs) -> str:
    product = ctx.platform.search_by_sku(args.sku)
    if product is None:
        return f"No product found with SKU {args.sku}."
    return f"Found product on {ctx.platform.platform_name}:\n{describe_product(product)}"


def tool_add_product_to_cart(ctx: ToolContext, args: AddProductArgs) -> str:
    locked = _locked(ctx)
    if locked:
        return locked
    try:
        product = ctx.platform.get_product(args.product_id)
    except PlatformError as e:
        if e.code != "HTTP_404":
            raise
        return f"Product {args.product_id} not found."
    if product.currency.upper() != ctx.session.currency:
        return (f"{product.name} is priced in {product.currency.upper()} but this checkout uses "
                f"{ctx.session.currency}; it was not added.")
    ctx.session.cart.append(CartItem(
        id=_new_item_id(ctx, product.id),
        name=product.name,
        description=product.description or None,
        price=product.price,
        quantity=args.quantity,
    ))
    total = ctx.registry.recalculate_total(ctx.session)
    return f"Added {args.quantity}x {product.name} to your cart. New total: {format_amount(total, ctx.session.currency)}"


def tool_update_cart_item(ctx: ToolContext, args: UpdateCartItemArgs) -> str:
    item = ctx.session.find_item(args.cart_item_id)
    if item is None:
        return f"Cart item {args.cart_item_id} not found."
    locked = _locked(ctx)
    if locked:
        return locked
    if args.quantity == 0:
        ctx.session.cart.remove(item)
        action = f"Removed {item.name} from your cart."
    else:
        item.quantity = args.quantity
        action = f"Updated {item.name} quantity to {args.quantity}."
    total = ctx.registry.recalculate_total(ctx.session)
    return f"{action} New total: {format_amount(total, ctx.session.currency)}"


def tool_list_products(ctx: ToolContext, args: ListProductsArgs) -> str:
    products = ctx.platform.list_products(limit=args.limit, search=args.search)
    if not products:
        return "No products found."
    lines = [f"Products on {ctx.platform.platform_name}:"]
    for i, p in enumerate(products, 1):
        lines.append(f"{i}. {p.name} (ID: {p.id}, SKU: {p.sku or '-'}) - {format_amount(p.price, p.currency)}")
    return "\n".join(lines)


TOOLS = [
    ToolSpec(
        name="search_product_by_sku",
        description="Search for a product by SKU on the connected e-commerce platform.",
        args_schema=SearchSkuArgs,
        func=tool_search_product_by_sku,
        requires=Capability.PLATFORM,
        unavailable_message=NO_PLATFORM,
    ),
    ToolSpec(
        name="add_product_to_cart",
        description="Add a product from the e-commerce platform to the cart.",
        args_schema=AddProductArgs,
        func=tool_add_product_to_cart,
        requires=Capability.PLATFORM,
        unavailable_message=NO_PLATFORM,
    ),
    ToolSpec(
        name="update_cart_item",
        description="Update the quantity of a cart item. Quantity 0 removes the item.",
        args_schema=UpdateCartItemArgs,
        func=tool_update_cart_item,
    ),
    ToolSpec(
        name="list_products",
        description="List products available on the e-commerce platform.",
        args_schema=ListProductsArgs,
        func=tool_list_products,
        requires=Capability.PLATFORM,
        unavailable_message=NO_PLATFORM,
    ),
]
