"""Return request URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.returns.views import ReturnRequestViewSet

router = DefaultRouter(trailing_slash=True)
router.register("returns", ReturnRequestViewSet, basename="return-request")

urlpatterns = router.urls
