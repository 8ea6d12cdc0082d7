#!/usr/bin/env python3
"""
Extract tiles from every screenshot in the current directory.
"""

import sys
import os
import glob

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from connections_ocr import ExtractionError, TileExtractor


def main():
    """Process all .png/.jpg screenshots in the current directory."""
    image_files = sorted(glob.glob("*.png") + glob.glob("*.PNG") + glob.glob("*.jpg"))

    if not image_files:
        print("No screenshots found in current directory!")
        return

    print(f"Found {len(image_files)} images to process")
    print("=" * 60)

    extractor = TileExtractor(verbose=False)

    results = {
        'complete': [],
        'degraded': [],
        'error': []
    }

    for i, image_path in enumerate(image_files, 1):
        print(f"\n[{i}/{len(image_files)}] Processing {image_path}...")

        try:
            result = extractor.extract_tiles(image_path)
            print(f"  {result.real_count}/16 tiles: {', '.join(result.tiles)}")
            if result.is_degraded:
                results['degraded'].append(image_path)
            else:
                results['complete'].append(image_path)
        except ExtractionError as e:
            print(f"Error processing {image_path}: {e}")
            results['error'].append(image_path)

    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"✅ Complete:  {len(results['complete'])}/{len(image_files)}")
    print(f"⚠️  Degraded:  {len(results['degraded'])}/{len(image_files)}")
    print(f"❌ Errors:    {len(results['error'])}/{len(image_files)}")

    if results['degraded']:
        print(f"\nPadded with placeholders: {', '.join(results['degraded'])}")


if __name__ == '__main__':
    main()
