"""
Synchronous named-event dispatch for persistence lifecycle hooks.

The persistence mapper fires 'docmapper.<event>: <EntityClass>' around every
write: 'saving'/'saved', 'inserting'/'inserted', 'updating'/'updated' and
'deleting'/'deleted'. "Before" events are fired with halt=True: a handler
returning exactly False vetoes the operation.
"""
import enum
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    CONTINUE = "continue"
    ABORT = "abort"
    CONTINUE_WITH_VALUE = "continue_with_value"


@dataclass(frozen=True)
class EventResult:
    outcome: Outcome
    value: Any = None

    @property
    def aborted(self) -> bool:
        return self.outcome is Outcome.ABORT


def event_name(event: str, entity) -> str:
    return f"docmapper.{event}: {type(entity).__name__}"


class EventDispatcher:
    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    def listen(self, name: str, handler: Callable) -> None:
        self._handlers[name].append(handler)

    """Listen to event for entity_class only, e.g. on('saving', User, handler)."""
    def on(self, event: str, entity_class: type, handler: Callable) -> None:
        self.listen(f"docmapper.{event}: {entity_class.__name__}", handler)

    def forget(self, name: str) -> None:
        self._handlers.pop(name, None)

    """
    Call every handler listening to name with entity, in registration order.

    With halt=True the first handler returning something other than None
    stops the dispatch: False aborts, any other value continues with it.
    Without halt responses are ignored and the result is always CONTINUE.
    """
    def fire(self, name: str, entity, halt: bool = False) -> EventResult:
        for handler in list(self._handlers.get(name, ())):
            response = handler(entity)

            if not halt or response is None:
                continue

            if response is False:
                logger.debug("Event %r vetoed by %r", name, handler)
                return EventResult(Outcome.ABORT)

            return EventResult(Outcome.CONTINUE_WITH_VALUE, response)

        return EventResult(Outcome.CONTINUE)
