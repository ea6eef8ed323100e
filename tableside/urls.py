"""Tableside URL Configuration"""

from django.urls import path
from . import views

app_name = 'tableside'

urlpatterns = [
    # Customer
    path('api/init/', views.init_data, name='init_data'),
    path('table/<int:table_id>/', views.table_menu, name='table_menu'),
    path('table/<int:table_id>/orders/', views.submit_order, name='submit_order'),

    # Kitchen
    path('kitchen/', views.kitchen_board, name='kitchen_board'),
    path('api/orders/', views.api_orders, name='api_orders'),
    path('api/orders/<uuid:order_id>/', views.api_get_order, name='api_get_order'),
    path('api/orders/<uuid:order_id>/status/', views.update_status, name='update_status'),
    path('api/orders/<uuid:order_id>/items/<str:item_id>/complete/', views.complete_item, name='complete_item'),

    # Admin session
    path('manage/login/', views.admin_login, name='admin_login'),
    path('manage/logout/', views.admin_logout, name='admin_logout'),
    path('manage/session/', views.admin_session, name='admin_session'),

    # Admin tables and checkout
    path('manage/tables/', views.tables, name='tables'),
    path('manage/tables/count/', views.table_count, name='table_count'),
    path('manage/tables/<int:table_id>/', views.table_update, name='table_update'),
    path('manage/tables/<int:table_id>/checkout/', views.table_checkout, name='table_checkout'),
    path('manage/tables/<int:table_id>/qrcode/', views.table_qr, name='table_qr'),
    path('manage/tables/<int:table_id>/add-item/', views.table_add_item, name='table_add_item'),

    # Admin order edits
    path('manage/orders/<uuid:order_id>/items/', views.order_items_update, name='order_items_update'),
    path('manage/orders/<uuid:order_id>/items/<str:item_id>/adjust/', views.order_item_adjust, name='order_item_adjust'),

    # Admin menu
    path('manage/categories/', views.categories, name='categories'),
    path('manage/categories/reorder/', views.categories_reorder, name='categories_reorder'),
    path('manage/categories/<uuid:category_id>/', views.category_update, name='category_update'),
    path('manage/categories/<uuid:category_id>/delete/', views.category_delete, name='category_delete'),
    path('manage/menu-items/', views.menu_items, name='menu_items'),
    path('manage/menu-items/<uuid:menu_item_id>/', views.menu_item_update, name='menu_item_update'),
    path('manage/menu-items/<uuid:menu_item_id>/delete/', views.menu_item_delete, name='menu_item_delete'),

    # Revenue
    path('manage/revenue/', views.revenue, name='revenue'),
]
