"""
Entry point for running the connections_ocr module as a package.

Usage:
    python -m connections_ocr --image path/to/screenshot.png
"""

from .tile_extractor import main

if __name__ == '__main__':
    main()
