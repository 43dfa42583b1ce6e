from .event_log import Event, EventLog
from .lowlevel import NotificationEmitter, RequestContext, Server
from .registry import SessionRegistry
from .router import RequestRouter
from .streaming import SentenceSegmenter, StreamingDispatcher
from .transport import SessionTransport, TransportState

__all__ = [
    "Event",
    "EventLog",
    "NotificationEmitter",
    "RequestContext",
    "RequestRouter",
    "SentenceSegmenter",
    "Server",
    "SessionRegistry",
    "SessionTransport",
    "StreamingDispatcher",
    "TransportState",
]
