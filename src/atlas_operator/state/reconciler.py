"""Generic state-machine reconciler shared by every resource kind."""

from __future__ import annotations

import copy
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable

from .. import metrics
from ..config import OperatorConfig
from ..constants import (
    ANNOTATION_EXTERNAL_PREFIX,
    COND_STATE,
    REASON_GOV_UNSUPPORTED,
    REASON_RESOURCE_VERSION_INVALID,
)
from ..logging import CONTROLLER_NAME, log_resource_event
from ..resolvers.references import ProjectDualReference
from ..services.kube.store import ObjectStore
from ..tracing import trace_span
from ..utils.conditions import (
    set_ready_condition,
    set_ready_error_condition,
    set_resource_version_condition,
    update_condition,
)
from ..utils.errors import ObjectNotFoundError, OperatorError, sanitize_exception
from ..utils.events import (
    emit_finalizer_removed,
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_resource_version_invalid,
    emit_unsupported,
)
from ..utils.finalizers import get_finalizers, has_finalizer, is_being_deleted, with_finalizer, without_finalizer
from .gates import ObjectPolicy, check_resource_version
from .handler import StateHandler
from .reapply import next_reapply, reapply_timestamp
from .states import (
    SETTLED_STATES,
    LifecycleState,
    ReconcileResult,
    Result,
    get_state,
    observed_generation,
    ready_for_state,
)

Logger = logging.Logger | logging.LoggerAdapter

# States a new object starts in; leaving one flows straight into convergence
ENTRY_STATES = frozenset({LifecycleState.INITIAL, LifecycleState.IMPORT_REQUESTED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_import_requested(body: dict[str, Any]) -> bool:
    """Whether the object names an existing Atlas resource to adopt."""
    annotations = body.get("metadata", {}).get("annotations") or {}
    return any(key.startswith(ANNOTATION_EXTERNAL_PREFIX) for key in annotations)


class StateReconciler:
    """Drives one resource kind through its lifecycle states.

    Each call to :meth:`reconcile` fetches the object, runs the skip,
    resource version and environment gates, dispatches to the handler
    bound to the current state, then persists the outcome in status and
    decides when the object should be looked at again.

    With ``reapply`` enabled, settled objects annotated with a reapply
    period are requeued once per period and stamped with the reapply time.
    """

    def __init__(
        self,
        handler: StateHandler,
        store: ObjectStore,
        config: OperatorConfig,
        reapply: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.handler = handler
        self.store = store
        self.config = config
        self.reapply = reapply
        self.clock = clock
        self.kind = handler.kind

    def reconcile(self, namespace: str, name: str, logger: Logger | None = None) -> ReconcileResult:
        """Run one convergence attempt for ``namespace/name``."""
        log = logger or logging.getLogger(__name__)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            with trace_span("reconcile", kind=self.kind, attributes={"resource.name": f"{namespace}/{name}"}):
                result = self._reconcile(namespace, name, log)
        finally:
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(time.time() - start_time)

        if result.error is None:
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
        else:
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            metrics.error_total.labels(kind=self.kind, error_type=type(result.error).__name__).inc()
        return result

    def _reconcile(self, namespace: str, name: str, log: Logger) -> ReconcileResult:
        try:
            body = self.store.get(namespace, name)
        except ObjectNotFoundError:
            # Already gone, nothing to clean up
            return ReconcileResult()
        except Exception as e:
            return ReconcileResult(error=e)

        policy = ObjectPolicy.from_body(body)

        try:
            if policy.skip:
                return self._skip(body, log)

            version_error = check_resource_version(policy, self.config.operator_version)
            if version_error is not None:
                return self._reject_version(body, version_error, log)

            if self.config.is_gov and not self.handler.supported_in_gov:
                return self._reject_unsupported(body, log)

            conditions = copy.deepcopy((body.get("status") or {}).get("conditions") or [])
            recorded = get_state(conditions)
        except Exception as e:
            return ReconcileResult(error=e)

        self._log(log, body, "reconcile", "ReconcileStarted", f"Reconciling in state {recorded.value}")
        if recorded == LifecycleState.INITIAL and not is_being_deleted(body):
            emit_reconcile_started(body)

        current_state = self._dispatch_state(recorded, body)
        try:
            result = self._dispatch(current_state, body, log)
            reapply = self._next_reapply(body, current_state, result)
        except Exception as e:
            return self._apply_failure(body, policy, current_state, e, log)

        try:
            outcome = self._apply_result(body, policy, recorded, result, reapply, log)
        except Exception as e:
            self._log(log, body, "error", "StatusUpdateFailed", sanitize_exception(e), level=logging.ERROR)
            return ReconcileResult(error=e)

        if (
            current_state in ENTRY_STATES
            and result.requeue_after is None
            and result.next_state not in ENTRY_STATES | {LifecycleState.DELETED}
        ):
            # A fresh object goes through convergence once without waiting for an event
            return self._reconcile(namespace, name, log)
        return outcome

    def _dispatch_state(self, recorded: LifecycleState, body: dict[str, Any]) -> LifecycleState:
        state = recorded
        if state == LifecycleState.INITIAL and is_import_requested(body):
            state = LifecycleState.IMPORT_REQUESTED
        if is_being_deleted(body) and state != LifecycleState.DELETING:
            state = LifecycleState.DELETION_REQUESTED
        return state

    def _dispatch(self, current_state: LifecycleState, body: dict[str, Any], log: Logger) -> Result:
        handlers: dict[LifecycleState, Callable[[dict[str, Any], Logger], Result]] = {
            LifecycleState.INITIAL: self.handler.handle_initial,
            LifecycleState.IMPORT_REQUESTED: self.handler.handle_import_requested,
            LifecycleState.IMPORTED: self.handler.handle_imported,
            LifecycleState.CREATING: self.handler.handle_creating,
            LifecycleState.CREATED: self.handler.handle_created,
            LifecycleState.UPDATING: self.handler.handle_updating,
            LifecycleState.UPDATED: self.handler.handle_updated,
            LifecycleState.DELETION_REQUESTED: self.handler.handle_deletion_requested,
            LifecycleState.DELETING: self.handler.handle_deleting,
        }
        if current_state not in handlers:
            raise OperatorError(f"unsupported state {current_state.value!r} for a live object")
        return handlers[current_state](body, log)

    def _next_reapply(
        self, body: dict[str, Any], current_state: LifecycleState, result: Result
    ) -> tuple[float, bool] | None:
        if not self.reapply or current_state in ENTRY_STATES:
            return None
        if result.next_state not in SETTLED_STATES or result.requeue_after is not None:
            return None
        return next_reapply(body, self.clock())

    def _apply_result(
        self,
        body: dict[str, Any],
        policy: ObjectPolicy,
        recorded: LifecycleState,
        result: Result,
        reapply: tuple[float, bool] | None,
        log: Logger,
    ) -> ReconcileResult:
        next_state = result.next_state
        metrics.state_transitions_total.labels(
            kind=self.kind, from_state=recorded.value, to_state=next_state.value
        ).inc()

        if next_state == LifecycleState.DELETED:
            self._release(body, log)
            return ReconcileResult()

        status = copy.deepcopy(body.get("status") or {})
        conditions = status.get("conditions") or []
        generation = observed_generation(body.get("metadata", {}).get("generation"), conditions, next_state)

        conditions = update_condition(conditions, COND_STATE, "True", next_state.value, result.state_msg, generation)
        ready, reason, message = ready_for_state(next_state)
        conditions = set_ready_condition(conditions, ready, reason, message, generation)
        if policy.resource_version is not None:
            conditions = set_resource_version_condition(conditions, True, "Resource version is valid", generation)

        if result.apply_status is not None:
            result.apply_status(status)
        status["conditions"] = conditions
        status["observedGeneration"] = generation

        if not is_being_deleted(body) and not has_finalizer(body):
            body = self.store.set_finalizers(body, with_finalizer(get_finalizers(body)))
            metrics.finalizer_operations_total.labels(kind=self.kind, operation="set").inc()

        if status != body.get("status"):
            body = self.store.patch_status(body, status)
        reapply_after = None
        if reapply is not None:
            reapply_after, due = reapply
            if due:
                self.store.patch_annotations(body, reapply_timestamp(self.clock()))
        self._log(log, body, "reconcile", "ReconcileSucceeded", f"Reconciled, state {next_state.value}")

        return self._requeue(body, result, reapply_after)

    def _apply_failure(
        self,
        body: dict[str, Any],
        policy: ObjectPolicy,
        current_state: LifecycleState,
        error: Exception,
        log: Logger,
    ) -> ReconcileResult:
        message = sanitize_exception(error)
        self._log(
            log, body, "error", "ReconcileFailed", message, level=logging.ERROR, error_type=type(error).__name__
        )

        status = copy.deepcopy(body.get("status") or {})
        conditions = status.get("conditions") or []
        generation = observed_generation(body.get("metadata", {}).get("generation"), conditions, current_state)
        conditions = update_condition(conditions, COND_STATE, "False", current_state.value, message, generation)
        conditions = set_ready_error_condition(conditions, message, generation)
        if policy.resource_version is not None:
            conditions = set_resource_version_condition(conditions, True, "Resource version is valid", generation)
        status["conditions"] = conditions
        status["observedGeneration"] = generation

        try:
            self.store.patch_status(body, status)
        except Exception as write_error:
            self._log(
                log, body, "error", "StatusUpdateFailed", sanitize_exception(write_error), level=logging.WARNING
            )
        emit_reconcile_failed(body, f"Reconciliation failed: {message}")

        return ReconcileResult(requeue_after=self.config.default_retry, error=error)

    def _skip(self, body: dict[str, Any], log: Logger) -> ReconcileResult:
        self._log(log, body, "skip", "ReconciliationSkipped", "Skipping reconciliation by annotation")
        if is_being_deleted(body) and has_finalizer(body):
            self._release(body, log)
        return ReconcileResult()

    def _reject_version(self, body: dict[str, Any], message: str, log: Logger) -> ReconcileResult:
        self._log(log, body, "validation", REASON_RESOURCE_VERSION_INVALID, message, level=logging.WARNING)
        generation = body.get("metadata", {}).get("generation")
        status = copy.deepcopy(body.get("status") or {})
        conditions = status.get("conditions") or []
        conditions = set_resource_version_condition(conditions, False, message, generation)
        conditions = set_ready_condition(conditions, False, REASON_RESOURCE_VERSION_INVALID, message, generation)
        status["conditions"] = conditions
        self.store.patch_status(body, status)
        emit_resource_version_invalid(body, message)
        return ReconcileResult(requeue_after=self.config.default_retry)

    def _reject_unsupported(self, body: dict[str, Any], log: Logger) -> ReconcileResult:
        message = f"the {self.kind} is not supported by Atlas for government"
        self._log(log, body, "validation", REASON_GOV_UNSUPPORTED, message, level=logging.WARNING)
        generation = body.get("metadata", {}).get("generation")
        status = copy.deepcopy(body.get("status") or {})
        conditions = status.get("conditions") or []
        conditions = set_ready_condition(conditions, False, REASON_GOV_UNSUPPORTED, message, generation)
        status["conditions"] = conditions
        self.store.patch_status(body, status)
        emit_unsupported(body, message)
        return ReconcileResult()

    def _release(self, body: dict[str, Any], log: Logger) -> None:
        if not has_finalizer(body):
            return
        self.store.set_finalizers(body, without_finalizer(get_finalizers(body)))
        metrics.finalizer_operations_total.labels(kind=self.kind, operation="unset").inc()
        self._log(log, body, "deletion", "FinalizerRemoved", "Finalizer removed")
        emit_finalizer_removed(body)

    def _requeue(self, body: dict[str, Any], result: Result, reapply_after: float | None) -> ReconcileResult:
        if result.requeue_after is not None:
            return ReconcileResult(requeue_after=result.requeue_after)
        if reapply_after is not None:
            return ReconcileResult(requeue_after=reapply_after)
        if is_being_deleted(body):
            # The finalizer is still held, so deletion has to be retried
            return ReconcileResult(requeue_after=self.config.default_retry)
        if ProjectDualReference.from_spec(body.get("spec")).is_independent:
            return ReconcileResult(requeue_after=self.config.independent_sync_period, resync=True)
        return ReconcileResult()

    def _log(
        self,
        log: Logger,
        body: dict[str, Any],
        event: str,
        reason: str,
        message: str,
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        meta = body.get("metadata", {})
        log_resource_event(
            log,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=meta.get("name", "unknown"),
            namespace=meta.get("namespace", "default"),
            uid=meta.get("uid", "unknown"),
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )
