#!/usr/bin/env python3
"""
tracking_to_keyframes.py - Facial tracking to MMD keyframe pipeline

This script converts a recorded tracking file (head pose, eye landmarks and
action unit reports per frame) into head, center, eye and morph keyframes,
written as a streaming JSON keyframe file.

Usage:
    python tracking_to_keyframes.py [options]

Example:
    python tracking_to_keyframes.py --input tracking.json --output keyframes.json
    python tracking_to_keyframes.py --input tracking.json --output keyframes.json --no-refine
"""

import argparse
import logging
import sys
from pathlib import Path
from tqdm import tqdm

# Import our package
sys.path.append(str(Path(__file__).parent.parent))
from face_vmd_gen import (
    ActionUnitExtractor,
    ExpressionMapper,
    JSONTrackingSource,
    KeyframeExporter,
    MorphRefiner,
    Pipeline,
    RotationComposer,
)
from face_vmd_gen.core.constants import ACTION_UNIT_MAXVAL, BLINK_THRESHOLD, GAZE_DAMPING


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert recorded facial tracking to MMD keyframes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full conversion with expression refinement
  python tracking_to_keyframes.py --input tracking.json --output keyframes.json

  # Raw rule-table morphs, no eye bones
  python tracking_to_keyframes.py --input tracking.json --output keyframes.json --no-refine --no-gaze
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Recorded tracking JSON file"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        required=True,
        help="Output keyframe JSON file"
    )

    # Processing parameters
    parser.add_argument(
        "--gaze-damping",
        type=float,
        default=GAZE_DAMPING,
        help="Fraction of gaze deflection applied to the eye bones (0.0-1.0)"
    )

    parser.add_argument(
        "--blink-threshold",
        type=float,
        default=BLINK_THRESHOLD,
        help="Blink action unit level that forces fully closed eyes"
    )

    parser.add_argument(
        "--max-intensity",
        type=float,
        default=ACTION_UNIT_MAXVAL,
        help="Action unit intensity scale maximum"
    )

    parser.add_argument(
        "--no-gaze",
        action="store_true",
        help="Do not emit eye bone keyframes"
    )

    parser.add_argument(
        "--no-refine",
        action="store_true",
        help="Skip expression conflict refinement"
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress bars"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug information"
    )

    return parser.parse_args()


def main() -> None:
    """Main execution function - streaming conversion."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        process_tracking(args, show_progress=not args.no_progress)
    except Exception as e:
        print(f"Error: {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    print("Pipeline completed successfully!")


def process_tracking(args: argparse.Namespace, show_progress: bool) -> None:
    """Stream tracking frames through the pipeline into the keyframe file."""
    with JSONTrackingSource(args.input) as tracker:
        pipeline = Pipeline.from_tracker(
            tracker,
            estimate_gaze=not args.no_gaze,
            extractor=ActionUnitExtractor(max_intensity=args.max_intensity),
            composer=RotationComposer(gaze_damping=args.gaze_damping),
            mapper=ExpressionMapper(blink_threshold=args.blink_threshold),
        )
        refiner = None if args.no_refine else MorphRefiner()
        print("Initialized pipeline")
        print(f"  Tracking: {tracker.fps} fps, {tracker.frame_count} frames, "
              f"eye models: {', '.join(tracker.eye_model_names) or 'none'}")

        progress_bar = None
        if show_progress:
            if tracker.frame_count is not None:
                progress_bar = tqdm(total=tracker.frame_count, desc="Processing frames", unit="frames")
            else:
                progress_bar = tqdm(desc="Processing", unit=" frames")

        def counted_frames():
            for frame in tracker.read_frames():
                if progress_bar is not None:
                    progress_bar.update(1)
                yield frame

        outputs = pipeline.process(counted_frames())
        if refiner is not None:
            outputs = refiner.refine_stream(outputs)

        try:
            written = KeyframeExporter.export(outputs, args.output, tracker.fps)
        finally:
            if progress_bar is not None:
                progress_bar.close()

    print(f"Keyframes saved to: {args.output}")
    print(f"Processing complete: {written} frames with keyframes")


if __name__ == "__main__":
    main()
