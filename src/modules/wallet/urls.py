"""Wallet URL configuration."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.wallet.views import WalletViewSet

router = SimpleRouter(trailing_slash=True)
router.register("wallet", WalletViewSet, basename="wallet")

urlpatterns = router.urls
