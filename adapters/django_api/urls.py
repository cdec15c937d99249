"""
Storefront Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("cart/preview", views.cart_preview_view),
    path("orders", views.orders_view),
    path("orders/<str:order_id>", views.order_detail_view),
    path("orders/<str:order_id>/cancel", views.order_cancel_view),
    path("admin/orders/<str:order_id>/status", views.admin_order_status_view),
    path("admin/orders/<str:order_id>/items", views.admin_order_items_view),
    path(
        "admin/orders/<str:order_id>/verify-payment",
        views.admin_verify_payment_view,
    ),
    path("admin/stock", views.admin_stock_view),
    path("admin/stock/alerts", views.admin_stock_alerts_view),
    path("admin/stock/adjust", views.admin_stock_adjust_view),
]
