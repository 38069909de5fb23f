from __future__ import annotations

import os
from pathlib import Path

_QUOTE_CHARS = {'"', "'", "`", "“", "”", "‘", "’"}


def sanitize_env_value(value: str) -> str:
    """Strip wrapping quotes and a trailing semicolon from an env value.

    Values pasted into .env files from docs or shell snippets often arrive as
    ``"sk-ant-..."`` or ``sk-ant-...;``.
    """
    v = value.strip()
    while len(v) >= 2 and v[0] in _QUOTE_CHARS and v[-1] in _QUOTE_CHARS:
        v = v[1:-1].strip()
    if v.endswith(";"):
        v = v[:-1].strip()
    return v


def sanitize_ssl_keylogfile() -> None:
    """Unset SSLKEYLOGFILE when it points to an unusable path.

    Some environments set this globally for TLS debugging. If the path is
    inaccessible, underlying HTTP clients can crash while creating SSL context.
    """
    keylog_path = os.getenv("SSLKEYLOGFILE", "").strip()
    if not keylog_path:
        return

    try:
        path = Path(keylog_path)
        parent = path.parent
        if parent and not parent.exists():
            os.environ.pop("SSLKEYLOGFILE", None)
            return

        with open(path, "a", encoding="utf-8"):
            pass
    except OSError:
        os.environ.pop("SSLKEYLOGFILE", None)
