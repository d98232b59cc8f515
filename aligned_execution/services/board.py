"""
Program board ordering - moving deliverables between streams and reordering
streams. Works on already-loaded objects; the caller commits.
"""
from typing import Iterable, List, Optional


def next_position(siblings: Iterable) -> int:
    positions = [s.position or 0 for s in siblings]
    return max(positions) + 1 if positions else 0


def _ordered(items: Iterable) -> List:
    return sorted(items, key=lambda i: (i.position or 0, i.id or 0))


def move_deliverable(items: Iterable, item, stream_id: Optional[int], index: Optional[int] = None) -> List:
    """Move ``item`` into ``stream_id`` at ``index`` (end of the stream when None).

    ``items`` are all deliverables of the project. Positions of the source and
    target streams are renumbered from 0. Returns the deliverables touched.
    """
    items = list(items)
    source_stream_id = item.stream_id

    target = [i for i in _ordered(items) if i.stream_id == stream_id and i is not item]
    if index is None or index > len(target):
        index = len(target)
    target.insert(max(0, index), item)
    item.stream_id = stream_id

    touched = []
    for position, member in enumerate(target):
        member.position = position
        touched.append(member)

    if source_stream_id != stream_id:
        source = [i for i in _ordered(items) if i.stream_id == source_stream_id and i is not item]
        for position, member in enumerate(source):
            member.position = position
            touched.append(member)

    return touched


def reorder_streams(streams: Iterable, ordered_ids: List[int]) -> List:
    """Put the listed streams first, in the given order; the rest keep their order"""
    streams = _ordered(streams)
    by_id = {s.id: s for s in streams}

    unknown = [sid for sid in ordered_ids if sid not in by_id]
    if unknown:
        raise ValueError(f"Unknown stream ids: {unknown}")

    seen = set()
    head = []
    for sid in ordered_ids:
        if sid not in seen:
            seen.add(sid)
            head.append(by_id[sid])
    result = head + [s for s in streams if s.id not in seen]

    for position, stream in enumerate(result):
        stream.position = position
    return result


def detach_dependency(items: Iterable, removed_id: int) -> List:
    """Drop a deleted deliverable from every dependency list"""
    touched = []
    for item in items:
        deps = item.dependencies or []
        if removed_id in deps:
            item.dependencies = [d for d in deps if d != removed_id]
            touched.append(item)
    return touched
