# Role: Minimal server-sent-events line parser. Turns decoded text lines (e.g. Response.iter_lines) into
# ServerSentEvent objects using the EventSource field rules.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    event: str = DEFAULT_EVENT
    data: str = ""
    id: Optional[str] = None
    retry: Optional[int] = None


def iter_events(lines: Iterable[str]) -> Iterator[ServerSentEvent]:
    event_name: Optional[str] = None
    data: List[str] = []
    event_id: Optional[str] = None
    retry: Optional[int] = None

    for raw in lines:
        line = raw.rstrip("\r")

        if not line:
            # Blank line dispatches. Named events (e.g. "close") dispatch even with no data.
            if data or event_name:
                yield ServerSentEvent(
                    event=event_name or DEFAULT_EVENT,
                    data="\n".join(data),
                    id=event_id,
                    retry=retry,
                )
            event_name, data, retry = None, [], None
            continue

        if line.startswith(":"):
            continue

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            event_name = value
        elif field == "data":
            data.append(value)
        elif field == "id":
            event_id = value or None
        elif field == "retry" and value.isdigit():
            retry = int(value)
