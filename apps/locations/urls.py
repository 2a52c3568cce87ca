"""URL routing for rental sites."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import BoxViewSet, LocationViewSet

router = DefaultRouter()
# Registered before the empty prefix so "boxes/" is not read as a location id.
router.register(r'boxes', BoxViewSet, basename='box')
router.register(r'', LocationViewSet, basename='location')

urlpatterns = [path('', include(router.urls))]
