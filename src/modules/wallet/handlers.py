"""Wallet event handlers.

Notification delivery lives outside this service; the handlers only
record the intent so it shows up in the structured logs.
"""

from __future__ import annotations

import structlog

from modules.wallet.events import WalletAdjusted, WalletCredited
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class WalletCreditedHandler(IEventHandler[WalletCredited]):
    def handle(self, event: WalletCredited) -> None:
        logger.info(
            "wallet.notify_refund_credited",
            wallet_id=str(event.aggregate_id),
            customer_id=event.payload.get("customer_id"),
            amount=event.payload.get("amount"),
        )


class WalletAdjustedHandler(IEventHandler[WalletAdjusted]):
    def handle(self, event: WalletAdjusted) -> None:
        logger.info(
            "wallet.notify_adjusted",
            wallet_id=str(event.aggregate_id),
            customer_id=event.payload.get("customer_id"),
            amount=event.payload.get("amount"),
        )


wallet_credited_handler = WalletCreditedHandler()
wallet_adjusted_handler = WalletAdjustedHandler()
