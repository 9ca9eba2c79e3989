#!/usr/bin/env python3
"""
GolfSim Ball Tracker
Main entry point for the application.

Usage:
    python main.py [options]

Examples:
    # Run with webcam, game mode, simulator at 192.168.1.20
    python main.py --source 0 --mode game --server-host 192.168.1.20

    # Run with video file
    python main.py --source swing.mp4 --mode game

    # Testing mode (process all frames, no drops)
    python main.py --source swing.mp4 --testing

    # Headless mode (no display)
    python main.py --source 0 --no-display
"""

import argparse
import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from golfsim.app.BallTrackerApp import BallTrackerApp
from golfsim.config.settings import AppConfig
from golfsim.config.tracking_config import TrackingConfig
from golfsim.constants import MODE_PREVIEW, TRACKING_MODES
from golfsim.utils.AppLogging import logger, reconfigure_console_level


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="GolfSim Ball Tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --source 0 --mode game --server-host 192.168.1.20
  python main.py --source swing.mp4 --testing --no-display
        """
    )

    # Input source
    parser.add_argument(
        '--source', '-s',
        default=None,
        help='Video source: file path, camera index (0), or RTSP URL'
    )

    # Mode options
    parser.add_argument(
        '--mode', '-m',
        choices=TRACKING_MODES,
        default=MODE_PREVIEW,
        help='Initial tracking mode (default: preview)'
    )

    parser.add_argument(
        '--testing', '-t',
        action='store_true',
        help='Testing mode: process all frames (no frame drops)'
    )

    parser.add_argument(
        '--no-display',
        action='store_true',
        help='Disable visualization window (headless mode)'
    )

    # Simulator server
    parser.add_argument(
        '--server-host',
        type=str,
        help='Simulator server IP/host (thresholds + uploads)'
    )

    parser.add_argument(
        '--server-port',
        type=int,
        help='Simulator server port (default: 7878)'
    )

    # Detection
    parser.add_argument(
        '--stride',
        type=int,
        help='Analyze every Nth frame (default: 5)'
    )

    parser.add_argument(
        '--recording-dir',
        type=str,
        help='Directory for recorded clips'
    )

    # Limits
    parser.add_argument(
        '--max-frames',
        type=int,
        default=None,
        help='Maximum frames to process (for testing)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug-level console logging'
    )

    return parser.parse_args()


def main():
    """Main entry point."""
    args = parse_args()

    if args.verbose:
        reconfigure_console_level(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("GolfSim Ball Tracker")
    logger.info("=" * 60)

    # Create configuration
    app_config = AppConfig()
    tracking_config = TrackingConfig()

    # Apply command line overrides
    if args.source is not None:
        app_config.video_source = int(args.source) if args.source.isdigit() else args.source
    if args.server_host:
        app_config.server_host = args.server_host
    if args.server_port:
        app_config.server_port = args.server_port
    if args.recording_dir:
        app_config.recording_dir = args.recording_dir
    if args.stride:
        tracking_config.frame_stride = max(1, args.stride)

    app_config.log_configuration()
    logger.info(f"Mode: {args.mode}")
    logger.info(f"Testing mode: {args.testing}")
    logger.info(f"Display: {not args.no_display}")
    logger.info(f"Stride: {tracking_config.frame_stride}, dwell: {tracking_config.dwell_seconds}s")

    # Create and run application
    app = BallTrackerApp(
        app_config=app_config,
        tracking_config=tracking_config,
        initial_mode=args.mode,
        enable_display=not args.no_display,
        testing_mode=args.testing
    )

    try:
        app.run(max_frames=args.max_frames)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
