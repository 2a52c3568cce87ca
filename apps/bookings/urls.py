"""
URL routing for bookings.

Collection actions: ``quote/``, ``from-payment/``. Per-booking actions:
``{id}/extension-quote/``, ``{id}/extend/``, ``{id}/cancel/``, ``{id}/return/``.
"""

from rest_framework.routers import SimpleRouter  # type: ignore

from .views import BookingViewSet

router = SimpleRouter()
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = router.urls
