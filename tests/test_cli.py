import pytest
from click.testing import CliRunner

from bharatmart.cli import cli


@pytest.fixture
def run(context):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, list(args), obj=context)

    return invoke


def test_cart_add_show_update_remove(run, context):
    r = run("cart", "add", "p1", "--title", "Kettle", "--price", "499")
    assert r.exit_code == 0, r.output
    assert "Kettle x1 in cart" in r.output

    r = run("cart", "add", "p1", "--title", "Kettle", "--price", "499", "--qty", "2")
    assert "Kettle x3 in cart" in r.output

    r = run("cart", "show")
    assert "1. Kettle (p1) x3 @ ₹499 = ₹1,497" in r.output
    assert "Total items: 3" in r.output

    r = run("cart", "update", "p1", "0")
    assert r.exit_code == 0
    assert "p1 quantity set to 1" in r.output

    r = run("cart", "update", "nope", "4")
    assert r.exit_code == 1
    assert "nope is not in the cart" in r.output

    run("cart", "remove", "p1")
    assert context.cart.items == []
    assert "Your cart is empty" in run("cart", "show").output


def test_cart_clear(run, context):
    run("cart", "add", "p1", "--title", "Kettle", "--price", "499")
    run("cart", "add", "p2", "--title", "Tea", "--price", "120", "--seller", "s9")
    assert context.cart.get("p2").seller_id == "s9"
    assert run("cart", "clear").exit_code == 0
    assert context.cart.total_quantity == 0


def test_location_set_show_clear(run, context):
    r = run("location", "set", "--area", "MG Road", "--pincode", "423651", "--city", "Nashik", "--default")
    assert r.exit_code == 0
    assert "Location: MG Road 423651" in r.output

    saved = context.locations.load()
    assert saved.source == "manual"
    assert saved.is_default_address is True

    r = run("location", "show")
    assert "MG Road\nNashik (423651)" in r.output

    run("location", "clear")
    assert "Set location" in run("location", "show").output


def test_location_detect_with_coordinates(run, context, geocoder):
    r = run("location", "detect", "--lat", "19.99", "--lng", "73.78")
    assert r.exit_code == 0, r.output
    assert "Location: Nashik 423651" in r.output
    assert context.locations.load().source == "gps"


def test_location_detect_unsupported(run, context):
    r = run("location", "detect")
    assert r.exit_code == 1
    assert "Geolocation not supported" in r.output
    assert context.locations.load() is None


def test_location_auto_detect_only_once(run, context):
    r = run("location", "detect", "--auto")
    assert r.exit_code == 1
    assert context.locations.was_auto_prompted()

    r = run("location", "detect", "--auto", "--lat", "1", "--lng", "2")
    assert r.exit_code == 0
    assert "already attempted" in r.output
    assert context.locations.load() is None


def test_checkout_empty_cart_refused(run, order_writer):
    r = run("checkout")
    assert r.exit_code == 1
    assert "Your cart is empty" in r.output
    assert order_writer.payloads == []


def test_checkout_prints_link_and_records_order(run, order_writer):
    run("cart", "add", "p1", "--title", "Kettle", "--price", "499")
    r = run("checkout", "--user", "buyer-1")
    assert r.exit_code == 0, r.output
    assert "https://wa.me/9983944688?text=BharatMart%20-%20Cart%20Checkout" in r.output
    assert order_writer.payloads[0]["user_id"] == "buyer-1"


def test_checkout_preview(run, order_writer):
    run("cart", "add", "p1", "--title", "Kettle", "--price", "499", "--seller", "s1")
    r = run("checkout", "--preview")
    assert "1. Kettle | Qty: 1 | ₹499 | Subtotal: ₹499" in r.output
    assert "   SellerId: s1" in r.output
    assert order_writer.payloads == []
