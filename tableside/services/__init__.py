from .menu_service import MenuService
from .order_service import OrderService
from .table_service import TableService

__all__ = ['MenuService', 'OrderService', 'TableService']
