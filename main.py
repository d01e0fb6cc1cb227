#!/usr/bin/env python3
"""
Menu Scan - turn a menu photo into structured dish records.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

# Add project root to path for direct execution
sys.path.insert(0, str(Path(__file__).parent))

from menuscan.ocr.sources import JsonWordSource
from menuscan.pipeline import MenuPipeline, PipelineConfig
from menuscan.visualization.overlay import OverlayRenderer


def main():
    parser = argparse.ArgumentParser(
        description="Extract dish records from a menu image"
    )
    parser.add_argument(
        "image",
        type=Path,
        nargs="?",
        help="Path to menu image (recognized with EasyOCR unless --words is given)"
    )
    parser.add_argument(
        "-w", "--words",
        type=Path,
        help="Saved Word Source JSON to analyze instead of running OCR"
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output JSON file path"
    )
    parser.add_argument(
        "-a", "--annotate",
        type=Path,
        help="Save highlighted image to this path (needs the image)"
    )
    parser.add_argument(
        "--no-remote",
        action="store_true",
        help="Skip the remote classifier, use the local heuristic only"
    )
    parser.add_argument(
        "--gpu",
        action="store_true",
        help="Use GPU for OCR"
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print the pipeline trace summary to stderr"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.image is None and args.words is None:
        parser.error("give an image or --words")
    for path in (args.image, args.words):
        if path is not None and not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            sys.exit(1)

    config = PipelineConfig.from_env(use_remote=not args.no_remote)
    pipeline = MenuPipeline(config)

    try:
        if args.words:
            result = pipeline.analyze_image(None, JsonWordSource(args.words))
        else:
            from menuscan.ocr.engine import EasyOCRWordSource
            result = pipeline.analyze_image(args.image, EasyOCRWordSource(use_gpu=args.gpu))
    except ValidationError as e:
        print(f"Error: Invalid word source data:\n{e}", file=sys.stderr)
        sys.exit(1)

    output = result.to_output_json()

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)
        print(f"Saved to: {args.output}", file=sys.stderr)

    if args.annotate:
        if args.image is None:
            print("Warning: --annotate needs the image, skipped", file=sys.stderr)
        else:
            args.annotate.parent.mkdir(parents=True, exist_ok=True)
            OverlayRenderer().save(str(args.image), result, str(args.annotate))
            print(f"Annotated image: {args.annotate}", file=sys.stderr)

    if args.trace and pipeline.last_trace:
        print(pipeline.last_trace.get_summary(), file=sys.stderr)

    if not result.items:
        print("No text found" if not result.words else "No dishes found", file=sys.stderr)

    print(json.dumps(output["items"], indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
