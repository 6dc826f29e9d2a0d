#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# pyre-strict


import os
import sys
import typing


trace: typing.Optional[typing.Dict[str, int]] = None
trace_fp: typing.Optional[typing.TextIO] = None

ALL = "__ALL__"
TAG = "INSTANT"


def parse_trace_string(trace: typing.Optional[str]) -> typing.Dict[str, int]:
    """
    The trace string is of the form KEY1:VALUE1,KEY2:VALUE2,...

    We convert it into a dict here. A bare number applies to every key.
    """
    if not trace:
        return {}
    rv = {}
    for t in trace.split(","):
        try:
            module, level = t.split(":")
            rv[module] = int(level)
        except ValueError:
            try:
                rv[ALL] = int(t)
            except ValueError:
                pass
    return rv


def get_trace() -> typing.Dict[str, int]:
    global trace
    local_trace = trace
    if local_trace is not None:
        return local_trace
    if "TRACE" in os.environ:
        local_trace = parse_trace_string(os.environ["TRACE"])
    else:
        local_trace = {}
    trace = local_trace
    return local_trace


def reset_trace() -> None:
    """Forget the cached TRACE settings so they are re-read on next use."""
    global trace
    trace = None


def get_log_level() -> int:
    trace = get_trace()
    return max(trace.get(TAG, 0), trace.get(ALL, 0))


def get_trace_file() -> typing.TextIO:
    global trace_fp
    local_trace_fp = trace_fp
    if local_trace_fp is not None:
        return local_trace_fp

    trace_file = os.environ.get("TRACEFILE")
    if trace_file:
        sys.stderr.write("Trace output will go to %s\n" % trace_file)
        local_trace_fp = open(trace_file, "w")  # noqa: P201
    else:
        local_trace_fp = sys.stderr
    trace_fp = local_trace_fp
    return local_trace_fp


def log(*stuff: typing.Any) -> None:
    if get_log_level() > 0:
        print(*stuff, file=get_trace_file())
