"""Package-level helpers shared by the CLI and the public surface."""

from __future__ import annotations


def summary_info() -> str:
    """Return the metadata banner used by the CLI entry point.

    Captures the output of :func:`lib_log_loghub.__init__conf__.print_info`
    and returns it as a single string.

    Examples
    --------
    >>> banner = summary_info()
    >>> "version" in banner
    True
    """
    from . import __init__conf__

    lines: list[str] = []

    def _capture(text: str) -> None:
        lines.append(text)

    __init__conf__.print_info(writer=_capture)
    return "".join(lines)


__all__ = ["summary_info"]
