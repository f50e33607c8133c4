"""
Main Entry Point: aedoom AI Agent
Feeds frames from a video, a camera or a synthetic scene to the agent
"""
import argparse
import logging
import signal
import sys
from typing import Optional

from aedoom_ai.config import Config
from aedoom_ai.core.agent import AedoomAgent
from aedoom_ai.input.action_sink import KeyEvent, KeyEventTranslator
from aedoom_ai.monitoring.performance_monitor import PerformanceMonitor
from aedoom_ai.perception.frame_source import StaticFrameSource, VideoFrameSource, split_scene
from aedoom_ai.utils.pretty_logger import setup_pretty_logging
from aedoom_ai.utils.time_utils import Timer, format_duration

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reward-free curiosity agent over video frames")
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--video', metavar='PATH', help="Video file to read frames from")
    source.add_argument('--camera', metavar='INDEX', type=int, help="Camera device index")
    source.add_argument('--synthetic', action='store_true',
                        help="Two-intensity test scene (default when no source is given)")
    parser.add_argument('--size', metavar='WxH', default='320x240',
                        help="Synthetic scene size (default: 320x240)")
    parser.add_argument('--frames', type=int, default=None, help="Stop after this many frames")
    parser.add_argument('--headless', action='store_true', help="Sample more cells per frame")
    parser.add_argument('--seed', type=int, default=None, help="Frame generator seed")
    parser.add_argument('--workers', type=int, default=None, help="Worker threads (default: CPU count)")
    parser.add_argument('--debounce', action='store_true', help="Skip repeated identical actions")
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help="Console log level")
    parser.add_argument('--log-file', action='store_true', help="Also write a log file under LOG_PATH")
    parser.add_argument('--report', metavar='PATH', default=None, help="Write the performance report here")
    return parser.parse_args(argv)

def build_config(args: argparse.Namespace) -> Config:
    """Environment overrides first, command line on top"""
    overrides = {'HEADLESS': args.headless}
    if args.seed is not None:
        overrides['SEED'] = args.seed
    if args.workers is not None:
        overrides['NUM_WORKERS'] = args.workers
    if args.debounce:
        overrides['DEBOUNCE_REPEATS'] = True
    return Config.from_env().replace(**overrides)

def build_source(args: argparse.Namespace):
    if args.video:
        return VideoFrameSource(args.video)
    if args.camera is not None:
        return VideoFrameSource(args.camera)
    width, height = (int(v) for v in args.size.lower().split('x'))
    return StaticFrameSource(split_scene(width, height), count=args.frames)

def console_level(args: argparse.Namespace, cfg: Optional[Config] = None) -> int:
    """DETAILED_LOGGING forces DEBUG on the console"""
    if cfg is not None and cfg.DETAILED_LOGGING:
        return logging.DEBUG
    return getattr(logging, args.log_level)

def main(argv=None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    try:
        cfg = build_config(args)
    except ValueError as e:
        setup_pretty_logging(level=console_level(args), log_to_file=False)
        logging.getLogger(__name__).error(f"Invalid configuration: {e}")
        return 2

    setup_pretty_logging(level=console_level(args, cfg), log_path=cfg.LOG_PATH,
                         log_to_file=args.log_file)
    logger = logging.getLogger(__name__)

    print("\n" + "=" * 80)
    print(" " * 25 + "👾  AEDOOM AI AGENT  👾")
    print(" " * 20 + "Reward-free curiosity from raw frames")
    print("=" * 80 + "\n")

    def log_key(event: KeyEvent):
        logger.debug(f"{'press' if event.pressed else 'release'} {event.key} ({event.action.name})")

    sink = KeyEventTranslator(on_event=log_key, config=cfg)
    monitor = PerformanceMonitor()
    agent = AedoomAgent(config=cfg, sink=sink, performance_monitor=monitor)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum} - stopping")
        agent.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    source = build_source(args)
    try:
        with Timer("run", logger) as timer:
            processed = agent.run(source, max_frames=args.frames)
    except IOError as e:
        logger.error(f"Frame source failed: {e}")
        return 1

    logger.info(f"Processed {processed} frames in {format_duration(timer.elapsed())}")
    print(monitor.generate_report(args.report))
    return 0

if __name__ == "__main__":
    sys.exit(main())
