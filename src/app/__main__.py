"""`python -m src.app` entrypoint.

Kept for convenient local development runs from the repository root.
For installed usage, prefer the `openrgb-fade` console script.
"""

from __future__ import annotations

from .entrypoint import run


if __name__ == "__main__":
    run()
