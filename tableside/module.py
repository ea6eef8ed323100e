"""
Tableside Module Configuration

QR table ordering for restaurants: customer menu, kitchen board, admin.
"""
from django.utils.translation import gettext_lazy as _

MODULE_ID = "tableside"
MODULE_NAME = _("Tableside Ordering")
MODULE_VERSION = "1.0.0"

PAYMENT_METHODS = [
    ("cash", _("Cash")),
    ("linepay", _("LINE Pay")),
    ("jkopay", _("JKOPAY")),
]

# Overridable through the TABLESIDE dict in Django settings (see conf.py).
SETTINGS = {
    # Public origin printed into QR codes; empty means the request's own origin
    "base_url": "",
    "default_seats": 4,
    "table_name_template": "Table {id}",
    "admin_session_minutes": 12 * 60,
    "menu_item_placeholder_image": "",
}
