from __future__ import annotations

from typing import Any

from repairhub.realtime.publish import publish_entity_update


def publish_repair_update(
    repair_id: int | str,
    status: str,
    note: str = "",
    **extra: Any,
) -> int:
    """Tell everyone watching a repair ticket that its status moved."""

    return publish_entity_update(
        "repair",
        repair_id,
        {"status": status, "note": note, **extra},
    )


def publish_order_update(
    order_id: int | str,
    status: str,
    message: str = "",
    **extra: Any,
) -> int:
    return publish_entity_update(
        "order",
        order_id,
        {"status": status, "message": message, **extra},
    )
