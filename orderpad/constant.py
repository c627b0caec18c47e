"""Editable static text and status configuration."""

from __future__ import annotations

APP_TITLE = "Taste of Peshawar"
APP_SUB_TITLE = "Branch Orders"

# Order status values as stored in the orders.status column.
STATUS_NEW = "New"
STATUS_PREPARING = "Preparing"
STATUS_READY = "Ready"

STATUS_FLOW: dict[str, str | None] = {
    STATUS_NEW: STATUS_PREPARING,
    STATUS_PREPARING: STATUS_READY,
    STATUS_READY: None,
}

STATUS_ACTION_LABELS: dict[str, str] = {
    STATUS_NEW: "Start Preparing",
    STATUS_PREPARING: "Mark Ready",
}

STATUS_BADGE_STYLES: dict[str, str] = {
    STATUS_NEW: "bold #ffffff on #ef4444",
    STATUS_PREPARING: "bold #1f1300 on #f59e0b",
    STATUS_READY: "bold #04241a on #10b981",
}
DEFAULT_BADGE_STYLE = "bold #ffffff on #6b7280"

STATUS_SECTION_TITLES: dict[str, str] = {
    STATUS_NEW: "New Orders",
    STATUS_PREPARING: "Preparing",
    STATUS_READY: "Ready",
}

MSG_FILL_ALL_FIELDS = "Please fill in all fields"
MSG_NO_BRANCH = "Branch information not available"
MSG_NO_TABLE = "Please enter a table number"
MSG_EMPTY_CART = "Please add items to your order"
MSG_ORDER_PLACED = "Order placed successfully!"
MSG_ORDER_FAILED = "Failed to place order. Please try again."
MSG_AUTH_FAILED = "Authentication failed"
MSG_SIGN_OUT_FAILED = "Failed to sign out"
