"""
Menu Service

Categories and menu items managed from the admin panel.
"""

import logging
from typing import Any, Dict, List

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Max

from ..exceptions import (
    CategoryNotEmpty,
    CategoryNotFound,
    MenuItemNotFound,
    ValidationConflict,
    backend_errors,
)
from ..models import Category, MenuItem, Table

logger = logging.getLogger(__name__)


class MenuService:
    """Service for managing the menu."""

    @staticmethod
    @backend_errors
    def get_init_data() -> Dict[str, Any]:
        """Everything the customer page needs on first load."""
        return {
            'categories': list(Category.objects.order_by('order_index', 'name')),
            'menu_items': list(MenuItem.objects.order_by('created_at')),
            'tables': list(Table.objects.order_by('id')),
        }

    # ---- Lookups ----

    @staticmethod
    def get_category(category_id) -> Category:
        try:
            return Category.objects.get(pk=category_id)
        except (Category.DoesNotExist, DjangoValidationError):
            raise CategoryNotFound()

    @staticmethod
    def get_menu_item(menu_item_id) -> MenuItem:
        try:
            return MenuItem.objects.get(pk=menu_item_id)
        except (MenuItem.DoesNotExist, DjangoValidationError):
            raise MenuItemNotFound()

    # ---- Categories ----

    @staticmethod
    @backend_errors
    @transaction.atomic
    def add_category(name: str) -> Category:
        name = (name or '').strip()
        if not name:
            raise ValidationConflict('Category name is required')
        max_order = Category.objects.aggregate(max_order=Max('order_index'))['max_order'] or 0
        category = Category.objects.create(name=name, order_index=max_order + 1)
        logger.info("Category %s added at position %s", category.pk, category.order_index)
        return category

    @staticmethod
    @backend_errors
    def update_category(category_id, name: str) -> Category:
        name = (name or '').strip()
        if not name:
            raise ValidationConflict('Category name is required')
        category = MenuService.get_category(category_id)
        category.name = name
        category.save(update_fields=['name', 'updated_at'])
        category.refresh_from_db()
        return category

    @staticmethod
    @backend_errors
    @transaction.atomic
    def delete_category(category_id) -> None:
        category = MenuService.get_category(category_id)
        if category.menu_items.exists():
            raise CategoryNotEmpty()
        category.delete()
        logger.info("Category %s deleted", category_id)

    @staticmethod
    @backend_errors
    @transaction.atomic
    def reorder_categories(category_ids: List) -> List[Category]:
        """Set order_index to each id's 1-based position in ``category_ids``."""
        try:
            categories = {str(c.pk): c for c in Category.objects.filter(pk__in=category_ids)}
        except DjangoValidationError:
            raise CategoryNotFound()
        for position, category_id in enumerate(category_ids, start=1):
            category = categories.get(str(category_id))
            if category is None:
                raise CategoryNotFound()
            if category.order_index != position:
                category.order_index = position
                category.save(update_fields=['order_index', 'updated_at'])
        return list(Category.objects.order_by('order_index', 'name'))

    # ---- Menu items ----

    @staticmethod
    @backend_errors
    def add_menu_item(
        category_id, name: str, price: int, image: str = '', description: str = '',
    ) -> MenuItem:
        category = MenuService.get_category(category_id)
        item = MenuItem.objects.create(
            category=category,
            name=name.strip(),
            price=price,
            image=image or '',
            description=description or '',
        )
        logger.info("Menu item %s added to %s", item.pk, category.name)
        return item

    @staticmethod
    @backend_errors
    def update_menu_item(
        menu_item_id, category_id, name: str, price: int, image: str = '', description: str = '',
    ) -> MenuItem:
        item = MenuService.get_menu_item(menu_item_id)
        item.category = MenuService.get_category(category_id)
        item.name = name.strip()
        item.price = price
        item.image = image or ''
        item.description = description or ''
        item.save()
        return item

    @staticmethod
    @backend_errors
    def delete_menu_item(menu_item_id) -> None:
        # Orders keep their own copy of name and price.
        MenuService.get_menu_item(menu_item_id).delete()
        logger.info("Menu item %s deleted", menu_item_id)
