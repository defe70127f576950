from django.urls import path

from marketplace import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/locations", views.locations_view, name="locations"),
    path("api/v1/air-cargo/countries", views.air_cargo_countries_view, name="air-cargo-countries"),
    path("api/v1/quotes/ground", views.ground_quote_view, name="ground-quote"),
    path("api/v1/quotes/air", views.air_quote_view, name="air-quote"),
    path("api/v1/pricing/order-total", views.order_total_view, name="order-total"),
    path("api/v1/cart", views.cart_view, name="cart"),
    path("api/v1/cart/items", views.cart_items_view, name="cart-items"),
    path("api/v1/cart/items/<str:pet_id>", views.cart_item_view, name="cart-item"),
    path(
        "api/v1/cart/items/<str:pet_id>/add-ons",
        views.cart_item_add_ons_view,
        name="cart-item-add-ons",
    ),
    path(
        "api/v1/cart/items/<str:pet_id>/shipping",
        views.cart_item_shipping_view,
        name="cart-item-shipping",
    ),
    path("api/v1/checkout", views.checkout_view, name="checkout"),
    path("api/v1/orders/<uuid:reference>/proofs", views.proof_submit_view, name="proof-submit"),
    path(
        "api/v1/orders/<uuid:reference>/proofs/<int:proof_id>/review",
        views.proof_review_view,
        name="proof-review",
    ),
    path(
        "api/v1/orders/<uuid:reference>/payment/confirm",
        views.payment_confirm_view,
        name="payment-confirm",
    ),
    path("api/v1/donations", views.donations_view, name="donations"),
    path("api/v1/foster-applications", views.foster_applications_view, name="foster-applications"),
]
