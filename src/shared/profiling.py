"""Stage timing and heap-delta logging for the generation pipeline.

``stage(label, timings)`` wraps one pipeline step::

    with stage("M2 mesh", timings):
        mesh = build_avatar_mesh(skeleton)
    # INFO  [stage] M2 mesh: 41.2 ms, +380 KB

Elapsed seconds are stored in *timings* under *label*.  Heap growth is
measured with stdlib ``tracemalloc``; only the outermost stage starts and
stops tracing so stages may nest.
"""
from __future__ import annotations

import contextlib
import logging
import time
import tracemalloc
from typing import Dict, Generator, Optional

log = logging.getLogger(__name__)


@contextlib.contextmanager
def stage(label: str, timings: Optional[Dict[str, float]] = None,
          top_n: int = 5) -> Generator[None, None, None]:
    already_tracing = tracemalloc.is_tracing()
    if not already_tracing:
        tracemalloc.start(10)
    before = tracemalloc.take_snapshot()
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        after = tracemalloc.take_snapshot()
        diff = sum(s.size_diff for s in after.compare_to(before, "filename"))
        if timings is not None:
            timings[label] = elapsed
        log.info("[stage] %s: %.1f ms, %s%d KB", label, elapsed * 1000.0,
                 "+" if diff >= 0 else "", diff // 1024)
        for stat in after.compare_to(before, "lineno")[:top_n]:
            if stat.size_diff:
                site = str(stat.traceback[0]) if stat.traceback else "<unknown>"
                log.debug("[stage]   %+8.1f KB  %s", stat.size_diff / 1024, site)
        if not already_tracing:
            tracemalloc.stop()
