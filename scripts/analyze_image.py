#!/usr/bin/env python3
"""
Command-line analysis of a single bowl photo.

Thin wrapper around AnalysisPipeline for command-line testing.
Saves annotated steps to an output folder when requested.
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from services.pipeline.pipeline import AnalysisPipeline
from services.utils.debug import DebugContext
from utils.image_loader import get_image_info, load_image

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description='Analyze a toilet bowl photo for blood')
    parser.add_argument('image_path', help='Path or URL of the photo')
    parser.add_argument('--flash', action='store_true', help='Photo was taken with the flash on')
    parser.add_argument('--save-results', action='store_true', help='Save step images and log.json')
    parser.add_argument('--output-dir', type=str, default='experiments', help='Output directory for results')
    parser.add_argument('--json', action='store_true', help='Print the raw result as JSON')

    args = parser.parse_args()

    print(f"\n{'='*70}")
    print("HealthScan Analysis")
    print(f"{'='*70}")
    print(f"Image: {args.image_path}")
    print(f"Flash: {args.flash}")
    print(f"{'='*70}\n")

    print("[1/3] Loading image...")
    try:
        image = load_image(args.image_path)
    except ValueError as e:
        print(f"✗ Failed to load image: {e}")
        sys.exit(1)
    info = get_image_info(image)
    print(f"✓ Image loaded: {info['width']}x{info['height']} pixels, {info['channels']} channels")

    debug = None
    if args.save_results:
        # Timestamped run name so previous results are not overwritten
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        debug = DebugContext(
            enabled=True,
            output_dir=args.output_dir,
            image_name=f"{Path(args.image_path).stem}_{timestamp}"
        )

    print("\n[2/3] Running pipeline...")
    pipeline = AnalysisPipeline()
    result = pipeline.process_image(
        image=image,
        flash_is_on=args.flash,
        image_name=Path(args.image_path).name,
        debug=debug
    )

    print("\n[3/3] Results:")
    print(f"{'='*70}")

    if not result.get('success'):
        print("✗ FAILED")
        print(f"  Error: {result.get('error', 'Unknown error')}")
        print(f"  Error code: {result.get('error_code', 'UNKNOWN')}")
        sys.exit(1)

    data = result['data']
    if args.json:
        print(json.dumps(data, indent=2))
        sys.exit(0)

    summary = data['summary']
    print(f"✓ {summary['headline']}")
    print(f"  {summary['description']}")
    print(f"  Sample type: {data['sample_type']}")
    print(f"  Blood samples: {data['blood_pixel_count']} / {data['in_region_sample_count']} "
          f"(ratio {data['blood_ratio']:.4f})")
    wb = data['white_balance']
    print(f"  White balance: r={wb['r']:.3f} g={wb['g']:.3f} b={wb['b']:.3f} "
          f"({wb['sample_count']} samples)")

    for i, finding in enumerate(data['findings']):
        print(f"\n  Finding {i+1}: {finding['label']} [{finding['severity']}]")
        print(f"    Region: ({finding['x']}, {finding['y']}) {finding['width']}x{finding['height']}")
        print(f"    Pixels: {finding['pixel_count']}, marker: {finding['shape']} / {finding['hatch']}")

    print(f"\n  {summary['advisory']}")
    print(f"  Processing time: {data['processing_time_ms']} ms")

    if data.get('debug_log'):
        print(f"\n✓ Results saved to: {data['debug_log']}")

    sys.exit(0)


if __name__ == '__main__':
    main()
