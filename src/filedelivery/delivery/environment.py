"""
=============================================================================
SENDFILE ENVIRONMENT
=============================================================================

When the application runs behind a front-end server that can send files
itself, the cheapest delivery is to not read the file at all:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       DELEGATED DELIVERY                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Client ──GET──► nginx ──proxy──► app                              │
    │                                     │                               │
    │                     ◄── headers ────┘  X-Accel-Redirect:            │
    │                                          /protected/report.pdf     │
    │   Client ◄── file bytes ── nginx  (kernel sendfile, ranges, etc.)   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Two styles exist:

    X_ACCEL_REDIRECT   nginx. The value is an *internal* location plus
                       the file's basename. The location must be marked
                       `internal;` in nginx so clients can't request it.
    X_SENDFILE         Apache mod_xsendfile, LiteSpeed, lighttpd. The
                       value is the absolute filesystem path.

The internal location prefix is configuration, not code: it defaults to
"/protected/" and can be set per responder or per registered folder.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
import os
from typing import Optional, Tuple


DEFAULT_INTERNAL_PATH = "/protected/"


class SendfileMode(Enum):
    """Which delegation header, if any, the front-end understands."""

    NONE = "none"
    X_SENDFILE = "x-sendfile"
    X_ACCEL_REDIRECT = "x-accel-redirect"


_MODE_ALIASES = {
    "": SendfileMode.NONE,
    "off": SendfileMode.NONE,
    "none": SendfileMode.NONE,
    "false": SendfileMode.NONE,
    "x-sendfile": SendfileMode.X_SENDFILE,
    "xsendfile": SendfileMode.X_SENDFILE,
    "apache": SendfileMode.X_SENDFILE,
    "litespeed": SendfileMode.X_SENDFILE,
    "lighttpd": SendfileMode.X_SENDFILE,
    "x-accel-redirect": SendfileMode.X_ACCEL_REDIRECT,
    "x-accel": SendfileMode.X_ACCEL_REDIRECT,
    "nginx": SendfileMode.X_ACCEL_REDIRECT,
}


@dataclass(frozen=True)
class SendfileEnvironment:
    """
    Answers "can the front-end send this file for me, and how?"

        env = SendfileEnvironment(SendfileMode.X_ACCEL_REDIRECT, "/internal/")
        env.header_for("/srv/files/a.pdf")
        # ("X-Accel-Redirect", "/internal/a.pdf")
    """

    mode: SendfileMode = SendfileMode.NONE
    internal_path: str = DEFAULT_INTERNAL_PATH

    @property
    def available(self) -> bool:
        return self.mode is not SendfileMode.NONE

    def header_for(self, file_path: str, internal_path: Optional[str] = None) -> Tuple[str, str]:
        """
        The delegation header for a file.

        Args:
            file_path: Path of the file being delivered.
            internal_path: Overrides the configured internal prefix for
                           this one file (X-Accel-Redirect only).

        Raises:
            RuntimeError: If delegation is not available.
        """
        if self.mode is SendfileMode.X_ACCEL_REDIRECT:
            prefix = internal_path or self.internal_path
            if not prefix.endswith("/"):
                prefix += "/"
            return "X-Accel-Redirect", prefix + os.path.basename(file_path)

        if self.mode is SendfileMode.X_SENDFILE:
            return "X-Sendfile", os.path.abspath(file_path)

        raise RuntimeError("Sendfile delegation is not available")

    @classmethod
    def parse(cls, value: Optional[str], internal_path: str = DEFAULT_INTERNAL_PATH) -> "SendfileEnvironment":
        """
        Build an environment from a config/CLI string.

        Accepts "off", "none", "x-sendfile", "apache", "litespeed",
        "x-accel-redirect", "nginx" (case-insensitive).

        Raises:
            ValueError: On an unknown value.
        """
        key = (value or "").strip().lower()
        if key not in _MODE_ALIASES:
            raise ValueError(f"Unknown sendfile mode: {value!r}")
        return cls(mode=_MODE_ALIASES[key], internal_path=internal_path)

    @classmethod
    def detect(
        cls,
        server_software: Optional[str],
        xsendfile_module: bool = False,
        internal_path: str = DEFAULT_INTERNAL_PATH,
    ) -> "SendfileEnvironment":
        """
        Guess the mode from a SERVER_SOFTWARE-style string.

        nginx always supports X-Accel-Redirect. Apache-family servers only
        honour X-Sendfile when the module is loaded, which the caller has
        to tell us.
        """
        software = (server_software or "").lower()

        if "nginx" in software:
            return cls(SendfileMode.X_ACCEL_REDIRECT, internal_path)

        if xsendfile_module and any(
            name in software for name in ("apache", "litespeed", "lighttpd")
        ):
            return cls(SendfileMode.X_SENDFILE, internal_path)

        return cls(SendfileMode.NONE, internal_path)
