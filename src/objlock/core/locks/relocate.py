"""Two-phase object relocation for stores without atomic rename.

Phase one makes a durable copy at the destination. Phase two removes the
source only after the copy exists. A crash between the phases leaves the
source in place, so whatever the source represents stays in effect.
"""

from __future__ import annotations

import logging

from objlock.core.exceptions import ObjectStoreError, RelocationError
from objlock.stores.base import ObjectIdentity, ObjectStore


def move_object(
    store: ObjectStore,
    source: ObjectIdentity,
    dest_key: str,
    *,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> ObjectIdentity:
    """Move exactly the ``source`` object instance to ``dest_key``.

    Returns the identity of the object at ``dest_key``.

    Raises:
        RelocationError: The source was missing, replaced, or could not be
            removed after copying. Any copy made is deleted best-effort first.
        ObjectStoreError: Infrastructure failure; the source is still in place
            if the failure happened during the copy.
    """
    log = logger or logging.getLogger(__name__)
    if dest_key == source.key:
        raise RelocationError(source.key, dest_key, "destination equals source")

    copied = store.copy(source, dest_key)
    if copied is None:
        raise RelocationError(source.key, dest_key, f"{source} is missing or was replaced")

    if store.delete(source):
        return copied

    try:
        if not store.delete(copied):
            log.warning("Copy %s vanished before cleanup", copied)
    except ObjectStoreError as e:
        log.warning("Failed to remove copy %s after unsuccessful move: %s", copied, e)

    raise RelocationError(source.key, dest_key, f"{source} was not deleted")
