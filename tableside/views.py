"""
Tableside Views

JSON endpoints for the customer menu, the kitchen board and the admin
panel, plus the QR code image for each table.
"""

import json
from functools import wraps

from django.http import HttpResponse, JsonResponse
from django.utils.translation import gettext_lazy as _
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import auth, lifecycle
from .conf import get_setting
from .module import MODULE_VERSION
from .exceptions import TablesideError, ValidationConflict
from .forms import (
    AddItemForm,
    AdjustQuantityForm,
    CategoryForm,
    CheckoutForm,
    LoginForm,
    MenuItemForm,
    OrderStatusForm,
    PaymentStatusFilterForm,
    RevenueFilterForm,
    TableCountForm,
    TableForm,
)
from .services import MenuService, OrderService, TableService


def _payload(request):
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except json.JSONDecodeError:
            raise ValidationConflict(_('Invalid JSON'))
        if not isinstance(data, dict):
            raise ValidationConflict(_('Invalid JSON'))
        return data
    return request.POST


def _error_response(exc):
    return JsonResponse(
        {'success': False, 'error': exc.code, 'message': str(exc.message)},
        status=exc.status_code,
    )


def _form_error(form):
    return JsonResponse({
        'success': False,
        'error': 'validation_error',
        'message': str(_('Invalid data')),
        'errors': form.errors.get_json_data(),
    }, status=400)


def json_api(view_func):
    """Answer TablesideErrors raised by the view as JSON error responses."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except TablesideError as exc:
            return _error_response(exc)
    return csrf_exempt(wrapper)


def _order_result(result):
    if isinstance(result, lifecycle.Deletion):
        return JsonResponse({
            'success': True,
            'deleted': True,
            'order_id': result.order_id,
            'table_id': result.table_id,
        })
    return JsonResponse({'success': True, 'deleted': False, 'order': result.to_row()})


# =============================================================================
# Customer
# =============================================================================

@json_api
@require_GET
def init_data(request):
    data = MenuService.get_init_data()
    return JsonResponse({
        'success': True,
        'version': MODULE_VERSION,
        'categories': [c.to_row() for c in data['categories']],
        'menu_items': [m.to_row() for m in data['menu_items']],
        'tables': [t.to_row() for t in data['tables']],
    })


@json_api
@require_GET
def table_menu(request, table_id):
    """Landing point of a table's QR code."""
    table = TableService.get_table(table_id)
    data = MenuService.get_init_data()
    return JsonResponse({
        'success': True,
        'table': table.to_row(),
        'categories': [c.to_row() for c in data['categories']],
        'menu_items': [m.to_row() for m in data['menu_items']],
    })


@json_api
@require_POST
def submit_order(request, table_id):
    data = _payload(request)
    items = data.get('items') or []
    if not isinstance(items, list):
        raise ValidationConflict(_('Items must be a list'))

    order = OrderService.create_order(
        table_id, items, total_price=data.get('total_price') or 0,
    )
    return JsonResponse({'success': True, 'order': order.to_row()}, status=201)


# =============================================================================
# Kitchen
# =============================================================================

@json_api
@require_GET
def kitchen_board(request):
    board = OrderService.get_kitchen_board()
    return JsonResponse({
        'success': True,
        'columns': [
            {
                'status': status,
                'count': len(board[status]),
                'orders': [order.to_row() for order in board[status]],
            }
            for status in lifecycle.ORDER_STATUSES
        ],
    })


@json_api
@require_GET
def api_orders(request):
    form = PaymentStatusFilterForm(request.GET)
    if not form.is_valid():
        return _form_error(form)
    orders = OrderService.get_orders(
        table_id=form.cleaned_data.get('table_id'),
        payment_status=form.cleaned_data.get('payment_status') or None,
    )
    return JsonResponse({'success': True, 'orders': [o.to_row() for o in orders]})


@json_api
@require_GET
def api_get_order(request, order_id):
    order = OrderService.get_order(order_id)
    return JsonResponse({'success': True, 'order': order.to_row()})


@json_api
@require_POST
def update_status(request, order_id):
    form = OrderStatusForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    order = OrderService.update_order_status(order_id, form.cleaned_data['status'])
    return JsonResponse({'success': True, 'order': order.to_row()})


@json_api
@require_POST
def complete_item(request, order_id, item_id):
    order = OrderService.complete_order_item(order_id, item_id)
    return JsonResponse({'success': True, 'order': order.to_row()})


# =============================================================================
# Admin: session
# =============================================================================

@json_api
@require_POST
def admin_login(request):
    form = LoginForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    session = auth.login(request, form.cleaned_data['email'], form.cleaned_data['password'])
    return JsonResponse({'success': True, 'session': session.to_dict()})


@json_api
@require_POST
def admin_logout(request):
    auth.logout(request)
    return JsonResponse({'success': True})


@json_api
@require_GET
@auth.admin_required
def admin_session(request):
    return JsonResponse({'success': True, 'session': request.admin_session.to_dict()})


# =============================================================================
# Admin: tables, orders and checkout
# =============================================================================

@json_api
@require_GET
@auth.admin_required
def tables(request):
    return JsonResponse({'success': True, 'tables': TableService.get_table_summaries()})


@json_api
@require_POST
@auth.admin_required
def table_count(request):
    form = TableCountForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    updated = TableService.update_table_count(form.cleaned_data['count'])
    return JsonResponse({'success': True, 'tables': [t.to_row() for t in updated]})


@json_api
@require_POST
@auth.admin_required
def table_update(request, table_id):
    form = TableForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    table = TableService.update_table(
        table_id, name=form.cleaned_data.get('name'), seats=form.cleaned_data.get('seats'),
    )
    return JsonResponse({'success': True, 'table': table.to_row()})


@json_api
@require_POST
@auth.admin_required
def table_checkout(request, table_id):
    form = CheckoutForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    payment_method = form.cleaned_data['payment_method']
    result = OrderService.checkout(table_id, payment_method)
    return JsonResponse({
        'success': True,
        'message': str(_('Table %(table)s checked out with %(method)s') % {
            'table': table_id, 'method': payment_method,
        }),
        'table_status': result.table_status,
        'paid_order_ids': [order.id for order in result.paid_orders],
        'amount': result.amount,
    })


@json_api
@require_GET
@auth.admin_required
def table_qr(request, table_id):
    table = TableService.get_table(table_id)
    base_url = get_setting('base_url') or request.build_absolute_uri('/')
    response = HttpResponse(TableService.table_qr_png(table.id, base_url), content_type='image/png')
    response['Content-Disposition'] = f'attachment; filename="table-{table.id}-qrcode.png"'
    return response


@json_api
@require_POST
@auth.admin_required
def table_add_item(request, table_id):
    form = AddItemForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    order = OrderService.add_menu_item_to_table(table_id, form.cleaned_data['menu_item_id'])
    return JsonResponse({'success': True, 'order': order.to_row()})


@json_api
@require_POST
@auth.admin_required
def order_items_update(request, order_id):
    items = _payload(request).get('items')
    if not isinstance(items, list):
        raise ValidationConflict(_('Items must be a list'))
    return _order_result(OrderService.update_order_items(order_id, items))


@json_api
@require_POST
@auth.admin_required
def order_item_adjust(request, order_id, item_id):
    form = AdjustQuantityForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    return _order_result(OrderService.adjust_item_qty(order_id, item_id, form.cleaned_data['delta']))


# =============================================================================
# Admin: menu
# =============================================================================

@json_api
@require_http_methods(['GET', 'POST'])
@auth.admin_required
def categories(request):
    if request.method == 'POST':
        form = CategoryForm(_payload(request))
        if not form.is_valid():
            return _form_error(form)
        category = MenuService.add_category(form.cleaned_data['name'])
        return JsonResponse({'success': True, 'category': category.to_row()}, status=201)

    data = MenuService.get_init_data()
    return JsonResponse({'success': True, 'categories': [c.to_row() for c in data['categories']]})


@json_api
@require_POST
@auth.admin_required
def category_update(request, category_id):
    form = CategoryForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    category = MenuService.update_category(category_id, form.cleaned_data['name'])
    return JsonResponse({'success': True, 'category': category.to_row()})


@json_api
@require_POST
@auth.admin_required
def category_delete(request, category_id):
    MenuService.delete_category(category_id)
    return JsonResponse({'success': True})


@json_api
@require_POST
@auth.admin_required
def categories_reorder(request):
    ids = _payload(request).get('ids')
    if not isinstance(ids, list):
        raise ValidationConflict(_('ids must be a list'))
    ordered = MenuService.reorder_categories(ids)
    return JsonResponse({'success': True, 'categories': [c.to_row() for c in ordered]})


@json_api
@require_http_methods(['GET', 'POST'])
@auth.admin_required
def menu_items(request):
    if request.method == 'POST':
        form = MenuItemForm(_payload(request))
        if not form.is_valid():
            return _form_error(form)
        data = form.cleaned_data
        item = MenuService.add_menu_item(
            data['category'].pk, data['name'], data['price'],
            image=data.get('image') or get_setting('menu_item_placeholder_image'),
            description=data.get('description', ''),
        )
        return JsonResponse({'success': True, 'menu_item': item.to_row()}, status=201)

    data = MenuService.get_init_data()
    return JsonResponse({'success': True, 'menu_items': [m.to_row() for m in data['menu_items']]})


@json_api
@require_POST
@auth.admin_required
def menu_item_update(request, menu_item_id):
    form = MenuItemForm(_payload(request))
    if not form.is_valid():
        return _form_error(form)
    data = form.cleaned_data
    item = MenuService.update_menu_item(
        menu_item_id, data['category'].pk, data['name'], data['price'],
        image=data.get('image', ''), description=data.get('description', ''),
    )
    return JsonResponse({'success': True, 'menu_item': item.to_row()})


@json_api
@require_POST
@auth.admin_required
def menu_item_delete(request, menu_item_id):
    MenuService.delete_menu_item(menu_item_id)
    return JsonResponse({'success': True})


# =============================================================================
# Admin: revenue
# =============================================================================

@json_api
@require_GET
@auth.admin_required
def revenue(request):
    form = RevenueFilterForm(request.GET)
    if not form.is_valid():
        return _form_error(form)
    report = OrderService.get_revenue_report(
        year=form.cleaned_data.get('year'),
        month=form.cleaned_data.get('month'),
        day=form.cleaned_data.get('day'),
    )
    return JsonResponse({'success': True, **report.to_dict()})
