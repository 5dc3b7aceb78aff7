"""
Runtime tracing for hlrdraw renders.

A render is a handful of stages (outline curves, intersection solving,
visibility splitting, SVG export), each run as a span: a start line, nested
events, and an end line with elapsed time. Output is plain text on stderr,
optionally mirrored to a file and accompanied by JSON records.

Every thread keeps its own span stack, so lines logged from the worker pool
are indented by the depth of the span that thread opened, not by whatever
the main thread happens to be inside.
"""

import dataclasses
import functools
import hashlib
import inspect
import json
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime

LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}


class TracerConfig:
    """Where trace lines go and which levels pass."""

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.file_path = None
        self.json_output = False
        self._file_handle = None

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
        """Apply settings, reopening the trace file when one is requested."""
        self.close()
        self.enabled = bool(enabled)
        self.level = str(level).upper()
        self.file_path = file_path
        self.json_output = bool(json_output)
        if self.enabled and file_path:
            self._file_handle = open(file_path, "w", encoding="utf-8")

    def allows(self, level):
        return self.enabled and LEVELS.get(level, 2) <= LEVELS.get(self.level, 2)

    def close(self):
        """Close the trace file if one is open."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


class Tracer:
    """Spans and events, indented one level per open span on the calling thread."""

    def __init__(self):
        self.config = TracerConfig()
        self._local = threading.local()
        self._lock = threading.Lock()

    @property
    def _span_stack(self):
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    @property
    def _depth(self):
        return len(self._span_stack)

    def _emit(self, level, module, func, message, meta=None):
        if not self.config.allows(level):
            return

        now = datetime.now()
        stamp = now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
        depth = self._depth
        location = f"{module}:{func}" if module and func else (module or func)
        text = f"{message} {_format_meta(meta or {})}".strip()
        lines = [f"{stamp} {level:<5} {'  ' * depth}{location}  {text}"]
        if self.config.json_output:
            lines.append(json.dumps({
                "timestamp": stamp,
                "level": level,
                "depth": depth,
                "module": module,
                "function": func,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }))

        with self._lock:
            handle = self.config._file_handle
            for line in lines:
                print(line, file=sys.stderr)
                if handle:
                    handle.write(line + "\n")
            if handle:
                handle.flush()

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Trace a block as a named span.

        Failures are logged at ERROR with the elapsed time and re-raised.
        """
        if not self.config.enabled:
            yield
            return

        self._emit("INFO", module, name, "start", meta)
        stack = self._span_stack
        stack.append((name, module))
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            stack.pop()
            self._emit("ERROR", module, name,
                       f"failed dt={_elapsed_ms(start)}ms error={type(e).__name__}: {str(e)[:100]}")
            raise
        stack.pop()
        self._emit("INFO", module, name, f"end ok dt={_elapsed_ms(start)}ms")

    def event(self, message, level="INFO", **meta):
        """Log a one-off line attributed to the innermost open span."""
        if not self.config.allows(level):
            return
        func, module = self._span_stack[-1] if self._span_stack else ("", "")
        self._emit(level, module, func, message, meta)


def _elapsed_ms(start):
    return f"{(time.perf_counter() - start) * 1000:.0f}"


def _format_meta(meta):
    return " ".join(f"{k}={summarize(v)}" for k, v in meta.items())


def _digest(data):
    return hashlib.md5(data).hexdigest()[:8]


def _point(p):
    return "(" + ",".join(f"{float(c):.3g}" for c in p) + ")"


def summarize(obj, max_len=200):
    """
    One-line description of obj for trace output, at most max_len chars.

    Arrays show dtype, shape and a content hash; curves show their end
    points; primitives show their id; configs show their first fields.
    """
    try:
        text = _describe(obj)
    except Exception:
        text = f"<{type(obj).__name__}>"
    if len(text) > max_len:
        return text[:max_len - 3] + "..."
    return text


def _describe(obj):
    if obj is None:
        return "None"

    name = type(obj).__name__

    import numpy as np
    if isinstance(obj, np.ndarray):
        shape = "x".join(str(s) for s in obj.shape)
        h = _digest(obj.tobytes()) if 0 < obj.size < 1000 else _digest(str(obj.shape).encode())
        flag = ""
        if obj.dtype.kind == "f" and not np.all(np.isfinite(obj)):
            flag = ",nonfinite"
        return f"ndarray({obj.dtype},{shape},h={h}{flag})"

    from pydantic import BaseModel
    if isinstance(obj, BaseModel):
        return _describe_model(obj, name)

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        shown = [f"{f.name}={getattr(obj, f.name)!r}" for f in dataclasses.fields(obj)[:3]]
        return f"{name}({','.join(shown)})"

    if isinstance(obj, bool):
        return str(obj)

    if isinstance(obj, str):
        if len(obj) > 50:
            return f"str(len={len(obj)},h={_digest(obj.encode())})"
        return repr(obj)

    if isinstance(obj, (list, tuple)):
        if not obj:
            return f"{name}(len=0)"
        return f"{name}(len={len(obj)},first={type(obj[0]).__name__})"

    if isinstance(obj, dict):
        keys = ",".join(str(k) for k in list(obj)[:5])
        return f"dict(len={len(obj)},keys=[{keys}])"

    if isinstance(obj, float):
        return f"{obj:.6g}"

    if isinstance(obj, int):
        return str(obj)

    return f"<{name}>"


def _describe_model(obj, name):
    ident = getattr(obj, "id", None)
    if isinstance(ident, str):
        return f"{name}(id={ident!r})"
    if hasattr(obj, "p0") and hasattr(obj, "p3"):
        return f"{name}({_point(obj.p0)}->{_point(obj.p3)})"
    if hasattr(obj, "bez"):
        tag = f"visible={obj.visible}" if hasattr(obj, "visible") else f"ignore={list(obj.ignore_ids)}"
        return f"{name}({tag})"
    fields = list(type(obj).model_fields)[:4]
    return f"{name}(fields={fields})"


def trace(label=None, arg_names=None):
    """
    Run the decorated function inside a span named label (or the function name).

    Arguments listed in arg_names, passed by position or keyword, are
    summarized onto the start line.
    """
    def decorator(func):
        module = (func.__module__ or "").rsplit(".", 1)[-1]
        span_name = label or func.__name__
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)
            bound = signature.bind_partial(*args, **kwargs).arguments
            meta = {k: bound[k] for k in (arg_names or ()) if k in bound}
            with _tracer.span(span_name, module=module, **meta):
                return func(*args, **kwargs)

        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    """The process-wide tracer."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the process-wide tracer."""
    _tracer.config.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )
