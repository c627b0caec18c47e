from __future__ import annotations

from orderpad.alert_modal import AlertModal
from orderpad.constant import MSG_NO_TABLE, MSG_ORDER_PLACED
from orderpad.dashboard_screen import DashboardScreen
from orderpad.login_screen import LoginScreen
from orderpad.models import AuthSession
from orderpad.new_order_screen import NewOrderScreen
from orderpad.orderpad_app import OrderpadApp
from orderpad.settings_screen import SettingsScreen

CARDIFF_EMAIL = "cardiff@tasteofpeshawar.com"


async def _settle(app, pilot) -> None:
    for _ in range(2):
        await app.workers.wait_for_complete()
        await pilot.pause()


def _restore_cardiff_session(backend) -> None:
    backend.session = AuthSession(user_id="user-1", email=CARDIFF_EMAIL)
    backend.branch_sessions["user-1"] = "branch-cardiff"


async def test_boots_to_login_without_session(backend):
    app = OrderpadApp(backend=backend)
    async with app.run_test() as pilot:
        await _settle(app, pilot)

        assert isinstance(app.screen, LoginScreen)
        assert not app.store.loading


async def test_restored_session_opens_dashboard(backend):
    _restore_cardiff_session(backend)
    app = OrderpadApp(backend=backend)
    async with app.run_test() as pilot:
        await _settle(app, pilot)

        assert isinstance(app.screen, DashboardScreen)
        assert app.dashboard_feed.live
        assert app.orders_feed.live
        assert app.dashboard_feed.branch.id == "branch-cardiff"


async def test_failed_branch_lookup_falls_back_to_login(backend):
    backend.session = AuthSession(user_id="user-1", email=CARDIFF_EMAIL)
    backend.fail.add("find_branch_for_user")
    app = OrderpadApp(backend=backend)
    async with app.run_test() as pilot:
        await _settle(app, pilot)

        assert isinstance(app.screen, LoginScreen)
        assert app.store.error == "find_branch_for_user failed"


async def test_sign_in_and_out_cycles_release_screen_listeners(backend):
    backend.users[CARDIFF_EMAIL] = ("user-1", "branch-secret")
    app = OrderpadApp(backend=backend)
    async with app.run_test() as pilot:
        await _settle(app, pilot)

        counts = []
        for _ in range(3):
            login = app.screen
            assert isinstance(login, LoginScreen)
            login.email = CARDIFF_EMAIL
            login.password = "branch-secret"
            await login.submit()
            await _settle(app, pilot)
            assert isinstance(app.screen, DashboardScreen)

            await pilot.press("f4")
            await _settle(app, pilot)
            assert isinstance(app.screen, SettingsScreen)
            assert len(app.dashboard_feed._listeners) == 1

            await app.store.sign_out()
            await _settle(app, pilot)
            assert isinstance(app.screen, LoginScreen)
            counts.append(
                (len(app.dashboard_feed._listeners), len(app.orders_feed._listeners), len(app.store._listeners))
            )

        assert counts == [(0, 0, 1)] * 3
        assert not app.dashboard_feed.live


async def _open_new_order(app, pilot) -> NewOrderScreen:
    await _settle(app, pilot)
    await pilot.press("f2")
    await _settle(app, pilot)
    screen = app.screen
    assert isinstance(screen, NewOrderScreen)
    assert screen.menu is not None
    return screen


async def test_place_order_clears_cart_and_form(backend):
    _restore_cardiff_session(backend)
    app = OrderpadApp(backend=backend)
    async with app.run_test() as pilot:
        screen = await _open_new_order(app, pilot)
        screen.action_activate()
        screen.action_activate()
        screen.table_number = "7"
        screen.order_notes = "Window seat"

        await screen.action_place_order()
        await pilot.pause()
        await app.dashboard_feed.wait_idle()
        await app.orders_feed.wait_idle()

        assert screen.cart.is_empty
        assert screen.table_number == ""
        assert screen.order_notes == ""
        [order] = backend.orders.values()
        assert order["table_number"] == "7"
        assert order["notes"] == "Window seat"
        assert order["total_amount"] == 10.0
        assert isinstance(app.screen, AlertModal)
        assert app.screen.body_text == MSG_ORDER_PLACED
        assert [entry.order.table_number for entry in app.dashboard_feed.orders] == ["7"]


async def test_place_order_without_table_keeps_cart(backend):
    _restore_cardiff_session(backend)
    app = OrderpadApp(backend=backend)
    async with app.run_test() as pilot:
        screen = await _open_new_order(app, pilot)
        screen.action_activate()

        await screen.action_place_order()
        await pilot.pause()

        assert screen.cart.item_count == 1
        assert backend.orders == {}
        assert isinstance(app.screen, AlertModal)
        assert app.screen.body_text == MSG_NO_TABLE


async def test_rejected_login_stays_on_login_with_alert(backend):
    app = OrderpadApp(backend=backend)
    async with app.run_test() as pilot:
        await _settle(app, pilot)
        login = app.screen
        login.email = "nobody@example.com"
        login.password = "guess"

        await login.submit()
        await _settle(app, pilot)

        assert isinstance(app.screen, AlertModal)
        assert app.screen.title_text == "Login Failed"
        assert app.screen.body_text == "Invalid branch credentials"
        assert app.store.session is None
        assert not login.signing_in
