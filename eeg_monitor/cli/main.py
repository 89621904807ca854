"""
Main CLI entry point for EEG Monitor

This module provides the command-line interface: listing LSL streams and
running the real-time pipeline with UDP event output.
"""

import argparse
import logging
import signal
import sys
import time
from threading import Event

from ..core.config import *
from ..core.errors import StreamError
from ..pipeline.scheduler import Pipeline
from ..communication.event_sender import NullSink, UDPEventSender
from ..utils.channel_finder import print_stream_table


def run_realtime_processing(pipeline: Pipeline, duration: float = 0.0) -> None:
    """
    Run the pipeline until interrupted or duration elapses

    Prints a status line periodically; the pipeline itself runs on its own thread.
    """
    shutdown_event = Event()

    def signal_handler(signum, frame):
        logging.info("Shutdown signal received")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    pipeline.start_processing()
    start_time = time.monotonic()
    try:
        logging.info("Real-time processing started. Press Ctrl+C to stop.")
        while not shutdown_event.wait(STATUS_INTERVAL_SEC):
            elapsed = time.monotonic() - start_time
            lengths = pipeline.buffers.lengths()
            mode = "LSL" if pipeline.is_real_connection else "synthetic"
            print(f"t={elapsed:7.1f}s | Source: {mode:>9} | Channels: {pipeline.channel_count:2d} | "
                  f"Window: {min(lengths) if lengths else 0:3d}/{pipeline.config.buffer_size} | "
                  f"Underruns: {pipeline.underruns}")
            if duration and elapsed >= duration:
                break
    finally:
        pipeline.stop()
        logging.info("Real-time processing stopped")


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        description="EEG Monitor - Real-time LSL EEG filtering and band power analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List available LSL streams
  python -m eeg_monitor --list

  # Process a real stream
  python -m eeg_monitor --run --stream UnicornRecorder

  # Test with synthetic data for 30 seconds
  python -m eeg_monitor --run --duration 30
        """
    )

    # Mode selection (mutually exclusive)
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument("--list", action="store_true",
                            help="List advertised LSL streams and exit")
    mode_group.add_argument("--run", action="store_true",
                            help="Run real-time processing")

    # Data source options
    parser.add_argument("--stream",
                        help="LSL stream name, source id or vendor (default: synthetic data)")
    parser.add_argument("--resolve-timeout", type=float, default=RESOLVE_TIMEOUT_SEC,
                        help=f"Stream discovery timeout in seconds (default: {RESOLVE_TIMEOUT_SEC})")
    parser.add_argument("--synthesize-on-underrun", action="store_true",
                        help="Fill ticks without a real sample with synthetic data")
    parser.add_argument("--duration", type=float, default=0.0,
                        help="Stop after this many seconds (default: run until interrupted)")

    # Processing parameters
    parser.add_argument("--fs", type=float, default=FS_EXPECTED,
                        help=f"Analysis sampling frequency (default: {FS_EXPECTED})")
    parser.add_argument("--buffer-size", type=int, default=BUFFER_SIZE,
                        help=f"Analysis window length in samples (default: {BUFFER_SIZE})")
    parser.add_argument("--band-interval", type=float, default=BAND_INTERVAL_SEC,
                        help=f"Band power interval in seconds (default: {BAND_INTERVAL_SEC})")
    parser.add_argument("--emit-every", type=int, default=EMIT_EVERY,
                        help=f"Emit raw/filtered samples every Nth tick (default: {EMIT_EVERY})")

    # Communication options
    parser.add_argument("--udp-host", default=UDP_HOST,
                        help=f"Event receiver UDP host (default: {UDP_HOST})")
    parser.add_argument("--udp-port", type=int, default=UDP_PORT,
                        help=f"Event receiver UDP port (default: {UDP_PORT})")

    # Logging
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose logging")

    return parser


def main():
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    print("="*60)
    print("EEG Monitor - Real-time EEG Processing")
    print("="*60)

    pipeline = None
    try:
        config = PipelineConfig(
            sample_rate=args.fs,
            buffer_size=args.buffer_size,
            band_interval=args.band_interval,
            emit_every=args.emit_every,
            synthesize_on_underrun=args.synthesize_on_underrun,
            resolve_timeout=args.resolve_timeout,
        )

        if args.list:
            pipeline = Pipeline(sink=NullSink(), config=config)
            print_stream_table(pipeline.list_streams())
            return 0

        pipeline = Pipeline(sink=UDPEventSender(args.udp_host, args.udp_port), config=config)
        if args.stream:
            descriptor = pipeline.connect(args.stream)
            print(f"Connected: {descriptor.metadata}")
            print(f"Channels: {', '.join(descriptor.channel_names)}")
        else:
            logging.info("No stream requested - using synthetic EEG data")

        run_realtime_processing(pipeline, args.duration)
        return 0

    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1
    except StreamError as e:
        logging.error(f"Failed to connect to EEG stream: {e}")
        return 1
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 0
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        return 1
    finally:
        if pipeline is not None:
            pipeline.disconnect()
            pipeline.close()


if __name__ == "__main__":
    sys.exit(main())
