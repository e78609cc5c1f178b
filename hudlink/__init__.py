"""hudlink package: keeps a sensor link to the paired phone alive."""

from __future__ import annotations

__all__ = ["main"]


def main() -> int:
    """Run the hudlink command line host."""

    from .app import main as _app_main

    return _app_main()
