from django.apps import AppConfig


class WalletConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.wallet"
    label = "wallet"

    def ready(self) -> None:
        from modules.wallet.events import WalletAdjusted, WalletCredited
        from modules.wallet.handlers import (
            wallet_adjusted_handler,
            wallet_credited_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(WalletCredited, wallet_credited_handler)
        event_bus.subscribe(WalletAdjusted, wallet_adjusted_handler)
