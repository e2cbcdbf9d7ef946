#!/usr/bin/env python3
"""
Live Stream Probe
=================

Standalone script to exercise the session engine against a real
camera server.

This script:
    1. Connects to a running camera server
    2. Runs for a configurable duration
    3. Logs session stats every N seconds
    4. Reports a final summary

Prerequisites:
    - A camera server must be running at the configured URL
    - Install the package: pip install -e .

Usage:
    python scripts/probe_stream.py --duration 120
    python scripts/probe_stream.py --url ws://localhost:3001
"""

import argparse
import asyncio
import logging
import os
import sys
import time

from camera_viewer.session import SessionManager


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


async def run_probe(
    url: str,
    duration: int,
    report_interval: int,
    reconnect_delay: float,
) -> dict:
    """
    Run the probe.

    Args:
        url: WebSocket URL of the camera server
        duration: Probe duration in seconds
        report_interval: Seconds between progress reports
        reconnect_delay: Delay before automatic reconnects

    Returns:
        Final metrics dict
    """
    logger.info("=" * 60)
    logger.info("Stream Probe")
    logger.info("=" * 60)
    logger.info(f"Stream URL: {url}")
    logger.info(f"Duration: {duration} seconds")
    logger.info(f"Report interval: {report_interval} seconds")
    logger.info("=" * 60)

    manager = SessionManager(url=url, reconnect_delay=reconnect_delay)
    manager.start()
    manager.connect()

    start_time = time.time()
    last_report_time = start_time

    try:
        while True:
            elapsed = time.time() - start_time
            if elapsed >= duration:
                logger.info(f"Probe duration ({duration}s) reached")
                break

            if time.time() - last_report_time >= report_interval:
                stats = manager.stats
                logger.info("-" * 40)
                logger.info(f"Progress Report (elapsed: {elapsed:.0f}s)")
                logger.info(f"  Status: {manager.status.label}")
                logger.info(f"  Camera: {manager.camera_id or '-'}")
                logger.info(f"  Frames received: {stats.frame_count}")
                logger.info(f"  Current FPS: {stats.frame_rate}")
                logger.info(f"  Latency: {stats.latency_ms}")
                logger.info(f"  Resolution / quality: {stats.resolution} / {stats.quality}")
                logger.info(f"  Parse errors: {manager.metrics.parse_errors}")
                last_report_time = time.time()

            await asyncio.sleep(0.5)

    except asyncio.CancelledError:
        logger.info("Probe interrupted by user")
    finally:
        await manager.close()

    total_time = time.time() - start_time
    stats = manager.stats
    metrics = manager.metrics
    avg_fps = stats.frame_count / total_time if total_time > 0 else 0

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Frames received: {stats.frame_count}")
    logger.info(f"Average FPS: {avg_fps:.1f}")
    logger.info(f"Bytes received: {stats.bytes_received}")
    logger.info(f"Connect attempts: {metrics.connect_attempts}")
    logger.info(f"Reconnects scheduled: {metrics.reconnects_scheduled}")
    logger.info(f"Parse errors: {metrics.parse_errors}")
    logger.info("=" * 60)

    if stats.frame_count > 0:
        logger.info("PROBE PASSED - Frames received successfully")
    else:
        logger.error("PROBE FAILED - No frames received")

    return {
        "duration": total_time,
        "frames_received": stats.frame_count,
        "avg_fps": avg_fps,
        **metrics.to_dict(),
    }


def main():
    parser = argparse.ArgumentParser(
        description="Probe a live camera server with the session engine"
    )
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("CAMVIEW_STREAM_URL", "ws://localhost:3001"),
        help="WebSocket URL of the camera server",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=120,
        help="Probe duration in seconds (default: 120)",
    )
    parser.add_argument(
        "--report-interval",
        type=int,
        default=10,
        help="Seconds between progress reports (default: 10)",
    )
    parser.add_argument(
        "--reconnect-delay",
        type=float,
        default=5.0,
        help="Seconds before automatic reconnect (default: 5)",
    )

    args = parser.parse_args()

    result = asyncio.run(run_probe(
        url=args.url,
        duration=args.duration,
        report_interval=args.report_interval,
        reconnect_delay=args.reconnect_delay,
    ))

    sys.exit(0 if result["frames_received"] > 0 else 1)


if __name__ == "__main__":
    main()
