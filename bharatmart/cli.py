import asyncio

import click

from bharatmart import create_context
from bharatmart.errors import StorefrontError
from bharatmart.logging import new_session_id
from bharatmart.services.geocoding import StaticCoordinateProvider
from bharatmart.services.location import format_full_address, location_label
from bharatmart.utils.money import format_money


def _ctx(ctx):
    return ctx.find_root().obj


def _money(store, amount):
    settings = store.checkout.settings
    return f"{settings.currency_symbol}{format_money(amount, settings.locale)}"


@click.group()
@click.pass_context
def cli(ctx):
    """BharatMart storefront: cart, delivery location and WhatsApp checkout."""
    new_session_id()
    if ctx.obj is None:
        try:
            ctx.obj = create_context()
        except StorefrontError as e:
            raise click.ClickException(str(e))


# ------------------------------------------------------------------ cart

@cli.group()
def cart():
    """Manage the cart."""


@cart.command("add")
@click.argument("product_id")
@click.option("--title", required=True, help="Product title shown in the order")
@click.option("--price", required=True, type=float, help="Unit price")
@click.option("--qty", default=None, help="Quantity to add, default 1")
@click.option("--image", default=None, help="Thumbnail URL")
@click.option("--seller", "seller_id", default=None, help="Seller id")
@click.pass_context
def cart_add(ctx, product_id, title, price, qty, image, seller_id):
    """Add a product; adding it again increases the quantity."""
    store = _ctx(ctx)
    line = store.cart.add_item(
        {
            "product_id": product_id,
            "title": title,
            "price": price,
            "image": image,
            "seller_id": seller_id,
        },
        qty,
    )
    click.echo(f"{line.title} x{line.quantity} in cart")


@cart.command("update")
@click.argument("product_id")
@click.argument("qty")
@click.pass_context
def cart_update(ctx, product_id, qty):
    """Set the quantity of a product already in the cart."""
    store = _ctx(ctx)
    if store.cart.get(product_id) is None:
        raise click.ClickException(f"{product_id} is not in the cart")
    store.cart.update_quantity(product_id, qty)
    click.echo(f"{product_id} quantity set to {store.cart.get(product_id).quantity}")


@cart.command("remove")
@click.argument("product_id")
@click.pass_context
def cart_remove(ctx, product_id):
    _ctx(ctx).cart.remove_item(product_id)
    click.echo(f"Removed {product_id}")


@cart.command("clear")
@click.pass_context
def cart_clear(ctx):
    _ctx(ctx).cart.clear()
    click.echo("Cart cleared")


@cart.command("show")
@click.pass_context
def cart_show(ctx):
    """List cart lines and totals."""
    store = _ctx(ctx)
    items = store.cart.items
    if not items:
        click.echo("Your cart is empty")
        return
    for idx, item in enumerate(items, start=1):
        click.echo(
            f"{idx}. {item.title} ({item.product_id}) x{item.quantity} "
            f"@ {_money(store, item.price)} = {_money(store, item.subtotal)}"
        )
    click.echo(f"Total items: {store.cart.total_quantity}")
    click.echo(f"Total amount: {_money(store, store.cart.total_amount)}")


# -------------------------------------------------------------- location

@cli.group()
def location():
    """Manage the delivery location."""


@location.command("set")
@click.option("--house", "house_no", default=None)
@click.option("--floor", "floor_no", default=None)
@click.option("--block", "block_no", default=None)
@click.option("--building", "building_name", default=None)
@click.option("--area", default=None)
@click.option("--landmark", default=None)
@click.option("--city", default=None)
@click.option("--state", default=None)
@click.option("--pincode", default=None)
@click.option("--country", default=None)
@click.option("--instructions", "delivery_instructions", default=None)
@click.option("--default/--no-default", "is_default_address", default=False)
@click.option("--lat", type=float, default=None)
@click.option("--lng", type=float, default=None)
@click.pass_context
def location_set(ctx, **fields):
    """Save a typed address, replacing any previous one."""
    store = _ctx(ctx)
    record = store.locations.save(
        {**fields, "source": "manual", "updated_at": store.locations.now_ms()}
    )
    if not record.is_present:
        click.echo("Warning: give at least a pincode, house number or area", err=True)
    click.echo(f"Location: {location_label(record)}")


@location.command("show")
@click.pass_context
def location_show(ctx):
    record = _ctx(ctx).locations.load()
    click.echo(location_label(record))
    if record:
        click.echo(format_full_address(record))


@location.command("clear")
@click.pass_context
def location_clear(ctx):
    _ctx(ctx).locations.clear()
    click.echo("Location cleared")


@location.command("detect")
@click.option("--lat", type=float, default=None, help="Latitude reported by the device")
@click.option("--lng", type=float, default=None, help="Longitude reported by the device")
@click.option("--auto", is_flag=True, help="Only detect if never attempted before")
@click.pass_context
def location_detect(ctx, lat, lng, auto):
    """Detect the current position and look up its pincode."""
    store = _ctx(ctx)
    if auto:
        if store.locations.was_auto_prompted():
            click.echo("Location detection already attempted")
            return
        store.locations.mark_auto_prompted()
    provider = None
    if lat is not None and lng is not None:
        provider = StaticCoordinateProvider(lat, lng)
    try:
        record = asyncio.run(store.locations.detect_and_save(provider))
    except StorefrontError as e:
        raise click.ClickException(f"{e}. Enter your address with 'location set'.")
    click.echo(f"Location: {location_label(record)}")


# -------------------------------------------------------------- checkout

@cli.command()
@click.option("--user", "user_id", default=None, help="Buyer id for the order record")
@click.option("--preview", is_flag=True, help="Print the message without checking out")
@click.option("--open", "open_link", is_flag=True, help="Open the WhatsApp link")
@click.pass_context
def checkout(ctx, user_id, preview, open_link):
    """Send the cart to the store on WhatsApp."""
    store = _ctx(ctx)
    if not store.cart.items:
        raise click.ClickException("Your cart is empty")
    if preview:
        click.echo(store.checkout.preview())
        return
    result = store.checkout.checkout(user_id or store.config.BUYER_ID)
    if not result.order_submitted:
        click.echo("Order history not updated", err=True)
    click.echo(result.url)
    if open_link:
        click.launch(result.url)
