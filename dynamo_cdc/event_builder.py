"""
Construction of the canonical ``dynamo.item.changed`` event.
"""

from dynamo_cdc.models import (
    DiffResult,
    ItemChangedEvent,
    PayloadRoute,
    StreamRecord,
)


def build_item_changed_event(
    record: StreamRecord, diff: DiffResult, route: PayloadRoute
) -> ItemChangedEvent:
    """
    Combine the record keys, the diff and the payload route into an event.

    Offloaded events carry only the URL; inline events carry the full new
    image (or the old image for REMOVE).
    """
    if route.is_offloaded:
        return ItemChangedEvent(
            operation=record.operation,
            pk=record.keys.pk,
            sk=record.keys.sk,
            attributes_changed=list(diff.attributes_changed),
            before=diff.before,
            after=diff.after,
            images_url=route.images_url,
        )

    return ItemChangedEvent(
        operation=record.operation,
        pk=record.keys.pk,
        sk=record.keys.sk,
        attributes_changed=list(diff.attributes_changed),
        before=diff.before,
        after=diff.after,
        new_image=route.new_image,
        old_image=route.old_image,
    )


__all__ = ["build_item_changed_event"]
