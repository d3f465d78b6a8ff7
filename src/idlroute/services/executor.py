"""ActionExecutor: runs a call's actions until one records an outcome.

Actions run strictly in order on the calling thread.  The first action
that records an outcome stops the run; later actions stay queued and are
never invoked.
"""

from __future__ import annotations

from collections.abc import Iterable

from idlroute.errors import HandlerFailedError, HandlerIncompleteError, IdlrouteError
from idlroute.services.context import Action, CallContext, ExecutionState, Outcome
from idlroute.services.telemetry import trace_span


class ActionExecutor:
    def run(self, call: CallContext, actions: Iterable[Action] | None = None) -> Outcome:
        """Queue *actions* on *call* and drain the queue.

        Raises:
            HandlerIncompleteError: The queue ran dry without an outcome.
            HandlerFailedError: An action raised an exception outside the
                idlroute taxonomy.  The original is chained as ``__cause__``.
            CallError: Raised by an action (e.g. OutcomeConflictError),
                propagated unchanged.
        """
        for action in actions or ():
            call.add_action(action)

        call.execution = ExecutionState.RUNNING
        while (outcome := call.outcome()) is None:
            action = call.next_action()
            if action is None:
                call.execution = ExecutionState.INCOMPLETE
                call.logger.warning("call.incomplete")
                raise HandlerIncompleteError(call.handler, call.method.name)

            name = action_name(action)
            with trace_span(f"action:{name}") as span:
                try:
                    action(call)
                except IdlrouteError:
                    call.execution = _settled(call)
                    raise
                except Exception as exc:
                    call.execution = _settled(call)
                    call.logger.exception("action.failed", action=name)
                    raise HandlerFailedError(call.handler, call.method.name, name) from exc
                if span is not None:
                    span.annotate("finished", call.is_finished())

        call.execution = ExecutionState.FINISHED
        call.logger.debug("call.finished", outcome=str(outcome.kind))
        return outcome


def action_name(action: Action) -> str:
    func = getattr(action, "__func__", action)
    return getattr(func, "__qualname__", None) or repr(action)


def _settled(call: CallContext) -> ExecutionState:
    return ExecutionState.FINISHED if call.is_finished() else ExecutionState.INCOMPLETE
