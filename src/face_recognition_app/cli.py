#!/usr/bin/env python3
"""Command line interface for the face recognition app.

Usage:
    python -m face_recognition_app run
    python -m face_recognition_app register --name "Alice" --image alice.jpg
    python -m face_recognition_app recognize --image group.jpg
    python -m face_recognition_app list
    python -m face_recognition_app check --image frame.jpg

Examples:
    # Open the live viewfinder
    python -m face_recognition_app run

    # Register a face from a photo into a custom storage directory
    python -m face_recognition_app --storage-dir ./faces register -n Bob -i bob.png

    # Label every face in a photo and save an annotated copy
    python -m face_recognition_app recognize -i group.jpg -o labelled.jpg
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import cv2

from .brightness import BrightnessMonitor
from .constants import AppConfig, load_app_config
from .detection import BaseFaceDetector, DlibFaceDetector
from .exceptions import FaceAppError
from .matcher import FaceMatcher
from .registration import RegistrationService
from .registry import FaceRegistry, JsonFileStorage

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def build_config(args) -> AppConfig:
    """Load config and apply command line overrides."""
    config = load_app_config(Path(args.config) if args.config else None)
    if args.storage_dir:
        config.storage.directory = args.storage_dir
    if args.models_dir:
        config.detector.models_dir = args.models_dir
    return config


def build_detector(config: AppConfig) -> BaseFaceDetector:
    """Create the face detector for CLI commands."""
    return DlibFaceDetector(config=config.detector)


def load_registry(config: AppConfig) -> FaceRegistry:
    """Load the persisted registry."""
    storage = JsonFileStorage(Path(config.storage.directory), config.storage.key)
    return FaceRegistry.load(storage, config.matching.embedding_dim)


def _read_image(path: str):
    image = cv2.imread(path)
    if image is None:
        logger.error(f"Could not load image: {path}")
    return image


def cmd_run(args, config: AppConfig) -> int:
    """Open the live viewfinder."""
    from .viewfinder import run_viewfinder

    return run_viewfinder(config)


def cmd_register(args, config: AppConfig) -> int:
    """Register the face in an image file."""
    image = _read_image(args.image)
    if image is None:
        return 1

    registry = load_registry(config)
    service = RegistrationService(registry, build_detector(config))
    try:
        identity = service.register(args.name, image)
    except FaceAppError as e:
        logger.error(e.user_message)
        return 1

    print(f"{identity.label} registered successfully! ({len(registry)} identities)")
    return 0


def cmd_recognize(args, config: AppConfig) -> int:
    """Label every face in an image file."""
    image = _read_image(args.image)
    if image is None:
        return 1

    registry = load_registry(config)
    threshold = args.threshold if args.threshold is not None else config.matching.distance_threshold
    try:
        matcher = FaceMatcher(registry.snapshot(), threshold)
        faces = build_detector(config).detect_all(image)
    except FaceAppError as e:
        logger.error(e.user_message)
        return 1

    labels = matcher.label_faces(faces)
    print(f"Found {len(labels)} face(s)")
    for i, item in enumerate(labels):
        x, y, w, h = item.face.bbox
        print(f"  [{i + 1}] {item.text} pos=({x},{y}) size={w}x{h}")

    if args.output:
        from .viewfinder import draw_face_labels

        cv2.imwrite(args.output, draw_face_labels(image, labels))
        logger.info(f"Saved result to {args.output}")
    return 0


def cmd_list(args, config: AppConfig) -> int:
    """List registered identities."""
    registry = load_registry(config)
    if registry.is_empty:
        print("No identities registered")
        return 0

    print(f"Registered identities ({len(registry)}):")
    for identity in registry:
        print(f"  {identity.label}: {identity.sample_count} descriptor(s)")
    return 0


def cmd_check(args, config: AppConfig) -> int:
    """Report the brightness of an image file."""
    image = _read_image(args.image)
    if image is None:
        return 1

    monitor = BrightnessMonitor(config.brightness)
    luma = monitor.check(image)
    print(f"Average luma: {luma:.1f} ({monitor.state.value})")
    if monitor.warning:
        print(monitor.warning)
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="face-recognition-app",
        description="Webcam face registration and recognition",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  face-recognition-app run
  face-recognition-app register --name "Alice" --image alice.jpg
  face-recognition-app recognize --image group.jpg --output out.jpg
  face-recognition-app list
        """,
    )
    parser.add_argument("--config", "-c", default=None, help="Path to configuration file")
    parser.add_argument("--storage-dir", default=None, help="Directory of the descriptor store")
    parser.add_argument("--models-dir", default=None, help="Directory of the dlib model files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Open the live viewfinder")

    register_parser = subparsers.add_parser("register", help="Register a face from an image")
    register_parser.add_argument("--name", "-n", required=True, help="Person's name")
    register_parser.add_argument("--image", "-i", required=True, help="Image containing the face")

    recognize_parser = subparsers.add_parser("recognize", help="Recognize faces in an image")
    recognize_parser.add_argument("--image", "-i", required=True, help="Input image path")
    recognize_parser.add_argument("--output", "-o", help="Save an annotated copy here")
    recognize_parser.add_argument("--threshold", "-t", type=float, default=None,
                                  help="Distance threshold (default: from config, 0.6)")

    subparsers.add_parser("list", help="List registered identities")

    check_parser = subparsers.add_parser("check", help="Check image brightness")
    check_parser.add_argument("--image", "-i", required=True, help="Input image path")

    return parser


COMMANDS = {
    "run": cmd_run,
    "register": cmd_register,
    "recognize": cmd_recognize,
    "list": cmd_list,
    "check": cmd_check,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    if args.command is None:
        parser.print_help()
        return 0

    config = build_config(args)
    return COMMANDS[args.command](args, config)
