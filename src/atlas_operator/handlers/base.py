"""kopf wiring shared by every state-machine driven kind."""

from __future__ import annotations

import logging
from typing import Any, Callable

import kopf

from ..constants import API_GROUP_VERSION
from ..resolvers.references import ProjectDualReference
from ..state.reconciler import StateReconciler
from ..utils.errors import sanitize_exception
from .shared import get_config


def run_reconcile(
    reconciler: StateReconciler,
    namespace: str,
    name: str,
    logger: logging.Logger | logging.LoggerAdapter,
) -> None:
    """Reconcile an object and translate the outcome for kopf.

    Errors and explicit requeues are handed back to kopf as temporary
    errors so the object is reconciled again after the requested delay.
    The periodic resync of objects without a local project is left to the
    sync timer.

    Raises:
        kopf.TemporaryError: If the reconcile failed or asked to be requeued
    """
    result = reconciler.reconcile(namespace, name, logger)
    if result.error is not None:
        delay = result.requeue_after or reconciler.config.default_retry
        raise kopf.TemporaryError(sanitize_exception(result.error), delay=delay)
    if result.requeue_after is not None and not result.resync:
        raise kopf.TemporaryError(f"Requeued after {result.requeue_after:g}s", delay=result.requeue_after)


def _is_independent(spec: dict[str, Any], **_: Any) -> bool:
    return ProjectDualReference.from_spec(spec).is_independent


def register_state_reconciler(
    kind: str,
    get_reconciler: Callable[[], StateReconciler],
    registry: kopf.OperatorRegistry | None = None,
) -> None:
    """Register kopf handlers reconciling objects of ``kind``.

    The reconciler is built on first use so that importing handlers does
    not require cluster access.

    Create, update and resume events reconcile the object. The delete
    handler holds kopf's own finalizer, which is what makes kopf dispatch
    deletions at all; the reconciler releases ``mongodb.com/finalizer``
    itself once Atlas cleanup is done. Objects referencing an Atlas
    project by ID have no local project to watch and are re-verified on a
    timer.
    """
    config = get_config()

    @kopf.on.create(API_GROUP_VERSION, kind, id=f"{kind}-create", registry=registry)
    @kopf.on.update(API_GROUP_VERSION, kind, id=f"{kind}-update", registry=registry)
    @kopf.on.resume(API_GROUP_VERSION, kind, id=f"{kind}-resume", registry=registry)
    def handle(name: str, namespace: str, logger: logging.Logger, **_: Any) -> None:
        run_reconcile(get_reconciler(), namespace, name, logger)

    @kopf.on.delete(API_GROUP_VERSION, kind, id=f"{kind}-delete", registry=registry)
    def handle_delete(name: str, namespace: str, logger: logging.Logger, **_: Any) -> None:
        run_reconcile(get_reconciler(), namespace, name, logger)

    @kopf.timer(
        API_GROUP_VERSION,
        kind,
        id=f"{kind}-sync",
        interval=config.independent_sync_period,
        initial_delay=config.independent_sync_period,
        when=_is_independent,
        registry=registry,
    )
    def handle_sync(name: str, namespace: str, logger: logging.Logger, **_: Any) -> None:
        run_reconcile(get_reconciler(), namespace, name, logger)
