"""Static package metadata surfaced by the CLI ``info`` command."""

from __future__ import annotations

import sys
from typing import Callable

name = "lib_log_loghub"
title = "Python logging handler shipping records to Aliyun Log Service (Loghub)"
version = "0.1.0"
author = "lib_log_loghub contributors"
shell_command = "lib_log_loghub"


def print_info(writer: Callable[[str], object] | None = None) -> None:
    """Write the metadata banner through ``writer`` (stdout by default).

    Examples
    --------
    >>> print_info()  # doctest: +ELLIPSIS
    Info for lib_log_loghub:
    ...
    """

    fields = [
        ("name", name),
        ("title", title),
        ("version", version),
        ("author", author),
        ("shell_command", shell_command),
    ]
    pad = max(len(label) for label, _ in fields)
    lines = [f"Info for {name}:", ""]
    lines.extend(f"    {label.ljust(pad)} = {value}" for label, value in fields)
    (writer or sys.stdout.write)("\n".join(lines) + "\n")
