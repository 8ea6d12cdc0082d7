#!/usr/bin/env python3
"""
Convenience script to extract the tiles from one Connections screenshot.

Usage:
    python process_image.py --image IMG_1029.PNG
    python process_image.py --image path/to/shot.png --preset in-app --output my_output/
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from connections_ocr.tile_extractor import main

if __name__ == '__main__':
    main()
