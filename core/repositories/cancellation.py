import threading
from contextvars import ContextVar
from typing import Optional

# событие отмены текущего вызова хранилища; выставляется в call_store по таймауту
current_cancel_event: ContextVar[Optional[threading.Event]] = ContextVar("current_cancel_event", default=None)


def call_cancelled() -> bool:
    event = current_cancel_event.get()
    return event is not None and event.is_set()
