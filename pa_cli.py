# pa_cli.py
from __future__ import annotations

import os
import re
import subprocess
from typing import Dict, Sequence, Set


def _env() -> Dict[str, str]:
    # Tool output is parsed; keep it in English.
    env = dict(os.environ)
    env["LC_ALL"] = "C"
    return env


def _run(cmd: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(list(cmd), capture_output=True, text=True, env=_env())


def pactl_subscribe() -> subprocess.Popen[str]:
    try:
        return subprocess.Popen(
            ["pactl", "subscribe"],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            env=_env(),
        )
    except OSError as e:
        raise RuntimeError(f"pactl subscribe could not be started: {e}") from e


_INDEX_RE = re.compile(r"^\s*(\d+)")
_FLAGS_RE = re.compile(r"^\s*flags:(.*)$", re.MULTILINE)


def parse_start_corked(output: str) -> Set[int]:
    out: Set[int] = set()
    for block in output.split("index:")[1:]:
        m = _INDEX_RE.match(block)
        if not m:
            continue
        f = _FLAGS_RE.search(block)
        if f and "START_CORKED" in f.group(1).split():
            out.add(int(m.group(1)))
    return out


def pacmd_start_corked_sink_inputs() -> Set[int]:
    """
    Sink inputs created with START_CORKED, i.e. players that were paused and resumed.
    The native protocol does not expose stream flags, so this one reads pacmd.
    """
    try:
        p = _run(["pacmd", "list-sink-inputs"])
    except OSError as e:
        raise RuntimeError(f"pacmd list-sink-inputs could not be run: {e}") from e
    if p.returncode != 0:
        msg = (p.stderr or p.stdout).strip()
        raise RuntimeError(f"pacmd list-sink-inputs failed: {msg}")
    return parse_start_corked(p.stdout)

