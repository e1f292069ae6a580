# Overview: Checkout orchestration: record the sale, then adjust stock.

"""
Checkout flow

    build_transaction  ->  apply_stock_decrements  ->  transaction_to_dict

The two write phases are separate commits:
once build_transaction returns, the sale is recorded and the caller gets a
success response even if some stock decrements fail.
"""

from __future__ import annotations

import logging
from typing import Any

from .inventory_adjuster import AdjustmentReport, apply_stock_decrements
from .transaction_builder import build_transaction
from .transaction_store import transaction_to_dict

logger = logging.getLogger(__name__)


def checkout(tenant_id: int, payload: Any) -> tuple[dict, AdjustmentReport]:
    """
    Returns (receipt-ready transaction dict, stock adjustment report).

    Raises ValidationError / NotFoundError / ConflictError before anything
    is persisted; stock problems never raise.
    """
    tx = build_transaction(tenant_id, payload)
    report = apply_stock_decrements(tx)
    if not report.complete:
        logger.warning("Transaction %s recorded with incomplete stock adjustment", report.transaction_id)
    return transaction_to_dict(tx), report
