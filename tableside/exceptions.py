"""
Tableside errors.

Every error a service can raise on purpose derives from TablesideError and
carries the HTTP status the JSON views answer with. None of them is fatal:
the attempted change simply did not happen.
"""

import functools
import logging

from django.db import DatabaseError
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)


class TablesideError(Exception):
    code = 'error'
    status_code = 500
    default_message = _('Something went wrong')
    retryable = False

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(str(self.message))


# =============================================================================
# Not found
# =============================================================================

class NotFound(TablesideError):
    code = 'not_found'
    status_code = 404
    default_message = _('Not found')


class OrderNotFound(NotFound):
    code = 'order_not_found'
    default_message = _('Order not found')


class ItemNotFound(NotFound):
    code = 'item_not_found'
    default_message = _('Order item not found')

    def __init__(self, item_id=None, message=None):
        self.item_id = item_id
        super().__init__(message)


class TableNotFound(NotFound):
    code = 'table_not_found'
    default_message = _('Table not found')


class CategoryNotFound(NotFound):
    code = 'category_not_found'
    default_message = _('Category not found')


class MenuItemNotFound(NotFound):
    code = 'menu_item_not_found'
    default_message = _('Menu item not found')


# =============================================================================
# Business rules
# =============================================================================

class ValidationConflict(TablesideError):
    code = 'validation_error'
    status_code = 400
    default_message = _('Invalid data')


class EmptyOrder(ValidationConflict):
    code = 'empty_order'
    default_message = _('At least one item is required')


class CategoryNotEmpty(ValidationConflict):
    code = 'category_not_empty'
    status_code = 409
    default_message = _('Category still has menu items and cannot be deleted')


class InvalidTransition(ValidationConflict):
    code = 'invalid_transition'

    def __init__(self, current_status, target_status, message=None):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            message or _('Cannot change status from %(current)s to %(target)s') % {
                'current': current_status, 'target': target_status,
            }
        )


class ConcurrentUpdate(TablesideError):
    """Someone else changed the row between our read and our write."""

    code = 'conflict'
    status_code = 409
    default_message = _('Order was changed by someone else, please reload and try again')
    retryable = True


# =============================================================================
# Infrastructure / auth
# =============================================================================

class BackendUnavailable(TablesideError):
    code = 'backend_unavailable'
    status_code = 503
    default_message = _('Service temporarily unavailable')


class AuthenticationFailed(TablesideError):
    code = 'authentication_failed'
    status_code = 401
    default_message = _('Invalid credentials')


class SessionExpired(AuthenticationFailed):
    code = 'session_expired'
    default_message = _('Session expired, please log in again')


def backend_errors(func):
    """Report database failures as BackendUnavailable."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.error("Backend call %s failed: %s", func.__qualname__, exc)
            raise BackendUnavailable() from exc

    return wrapper
