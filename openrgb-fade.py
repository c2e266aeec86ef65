#!/usr/bin/env python3
"""
openrgb-fade launcher
Reactive typing fade for keyboards driven by an OpenRGB SDK server
"""

from src.app.entrypoint import run


if __name__ == '__main__':
    run()
