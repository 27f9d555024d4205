"""
HUD Reader — entry point.

Reads golf shot data off a simulator HUD and keeps a persistent shot
history.

Usage:
    python -m hudreader.main --image shot.png           # OCR a screenshot
    python -m hudreader.main --camera 0                 # OCR one camera frame
    python -m hudreader.main --image shot.png --ask-model
    python -m hudreader.main --text answer.txt          # Parse a saved model answer
    python -m hudreader.main --camera 0 --reps --duration 60
    python -m hudreader.main --stats
    python -m hudreader.main --export ~/Desktop
    python -m hudreader.main --export                   # ~/.hudreader/exports
    python -m hudreader.main --clear
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from PyQt6.QtCore import QCoreApplication, QTimer


def setup_logging(verbose: bool = False):
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


FIELD_LABELS = (
    ("ball_speed", "Ball Speed", "mph"),
    ("club_head_speed", "Club Speed", "mph"),
    ("smash_factor", "Smash Factor", ""),
    ("launch_angle", "Launch Angle", "°"),
    ("carry_distance", "Carry", "yds"),
    ("total_distance", "Total", "yds"),
    ("spin_rate", "Spin Rate", "rpm"),
)


def print_shot(record):
    print(f"\n{'='*60}")
    print(f"  Shot at {record.timestamp.astimezone():%H:%M:%S}")
    print(f"{'='*60}")
    print(f"  Club:          {record.club_type}")
    for name, label, unit in FIELD_LABELS:
        value = getattr(record, name)
        if value is not None:
            print(f"  {label + ':':<15}{value:g} {unit}".rstrip())
    print(f"{'='*60}")


def print_stats(stats):
    if stats is None:
        print("No shots recorded yet.")
        return
    print(f"\nShots: {stats.total_shots}")
    for name, label, unit in FIELD_LABELS:
        if name in stats.averages:
            line = f"  Avg {label + ':':<15}{stats.averages[name]:.1f} {unit}"
            if name in stats.stdevs:
                line += f"  (±{stats.stdevs[name]:.1f})"
            print(line.rstrip())


def print_rep(entry):
    print(f"  Rep logged: {entry.quality.value} (form {entry.form_score:g}) - {entry.feedback}")


def export_dir(value: str) -> Path:
    """Directory for --export: the given path, or the configured default."""
    from hudreader.utils.config import Config

    if value:
        return Path(value).expanduser()
    return Config.get_export_dir()


def build_tracker(config):
    """Create the store, OCR engine, and tracker from the config."""
    from hudreader.classifier import rules_from_config
    from hudreader.database.db import SQLiteStore
    from hudreader.models.session import SessionStore
    from hudreader.ocr_engine import OCREngine, TesseractEngine
    from hudreader.tracker import GolfDataTracker

    tesseract_cmd = config.get("tesseract_cmd", "")
    ocr = OCREngine(lambda: TesseractEngine(tesseract_cmd=tesseract_cmd))
    store = SessionStore(
        SQLiteStore(),
        storage_key=config.get("storage_key"),
        current_shot_seconds=config.get("current_shot_seconds"),
        busy_source=ocr,
    )
    return GolfDataTracker(
        store,
        ocr,
        rules=rules_from_config(config.get("range_rules")),
        club_type=config.get("default_club"),
        preprocess_options={
            "width_fraction": config.get("region_width_fraction"),
            "height_fraction": config.get("region_height_fraction"),
            "scale": config.get("region_scale"),
            "high": config.get("white_threshold"),
            "low": config.get("black_threshold"),
        },
    )


def count_reps(app, stream, source, frame, config, duration: float) -> int:
    """Ask the model to spot drill repetitions.

    Analyzes `frame` once; with a camera and a positive `duration`, keeps
    polling new frames for that many seconds. Returns the rep count.
    """
    from hudreader.frame_source import VideoCaptureSource
    from hudreader.models.rep_session import RepSession
    from hudreader.rep_tracker import REP_PROMPT, REPETITION_TOOLS, RepTracker
    from hudreader.utils.config import Config
    from hudreader.vision_model import VisionModelClient

    client = VisionModelClient(
        stream, api_key=Config.get_api_key() or None, model=config.get("model"),
    )

    def ask(next_frame):
        client.analyze_frame(next_frame, prompt=REP_PROMPT, tools=REPETITION_TOOLS)

    live = isinstance(source, VideoCaptureSource) and duration > 0
    session = RepSession(drill=config.get("default_drill"))
    session.rep_recorded.connect(print_rep)
    tracker = RepTracker(
        session,
        confidence_threshold=config.get("rep_confidence_threshold"),
        poll=(lambda: ask(source.read_frame())) if live else None,
        poll_seconds=config.get("rep_poll_seconds"),
    )
    tracker.attach(stream)
    try:
        try:
            ask(frame)
        except Exception as e:
            logging.error(f"Model request failed: {e}")
        if live:
            QTimer.singleShot(int(duration * 1000), app.quit)
            app.exec()
        total = session.total_reps
        print(f"Reps this session ({session.current_drill}): {total}")
    finally:
        tracker.close()
    return total


def run(args) -> int:
    """Run one CLI command against the persisted history."""
    from hudreader.frame_source import ImageFileSource, VideoCaptureSource
    from hudreader.live_stream import LiveContentStream, ModelContent
    from hudreader.utils.config import Config

    # Timers and signals need a Qt application object
    app = QCoreApplication(sys.argv)
    config = Config()
    tracker = build_tracker(config)
    stream = LiveContentStream()
    tracker.attach(stream)
    tracker.store.shot_added.connect(print_shot)

    try:
        if args.clear:
            tracker.store.clear()
            print("Shot history cleared.")

        if args.text:
            text = Path(args.text).read_text()
            stream.publish(ModelContent.from_text(text))

        if args.image or args.camera is not None:
            source = (
                ImageFileSource(args.image) if args.image
                else VideoCaptureSource(args.camera)
            )
            frame = source.read_frame()
            record = asyncio.run(tracker.extract_frame(frame))
            if record is None:
                print("No shot data recognized.")

            if args.ask_model and frame is not None:
                from hudreader.vision_model import VisionModelClient
                client = VisionModelClient(
                    stream,
                    api_key=Config.get_api_key() or None,
                    model=config.get("model"),
                    use_tools=args.tools,
                )
                try:
                    client.analyze_frame(frame)
                except Exception as e:
                    logging.error(f"Model request failed: {e}")

            if args.reps and frame is not None:
                count_reps(app, stream, source, frame, config, args.duration)

            if isinstance(source, VideoCaptureSource):
                source.release()

        if args.stats:
            print_stats(tracker.store.stats())

        if args.export is not None:
            path = tracker.store.export(export_dir(args.export))
            print(f"Exported to {path}")
    finally:
        tracker.close()

    return 0


def main():
    parser = argparse.ArgumentParser(
        description="HUD Reader — golf simulator shot data extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Frame selection
    frame_group = parser.add_mutually_exclusive_group()
    frame_group.add_argument(
        "--image", type=str,
        help="Screenshot of the simulator to run OCR on",
    )
    frame_group.add_argument(
        "--camera", type=int,
        help="Capture one frame from this camera index and run OCR on it",
    )

    # Model
    parser.add_argument(
        "--ask-model", action="store_true",
        help="Also send the frame to the vision model (needs an API key)",
    )
    parser.add_argument(
        "--tools", action="store_true",
        help="Offer the extract_shot_data tool to the model",
    )
    parser.add_argument(
        "--reps", action="store_true",
        help="Count drill repetitions with the model (needs an API key)",
    )
    parser.add_argument(
        "--duration", type=float, default=0.0, metavar="SECONDS",
        help="With --reps and --camera, keep polling for this many seconds",
    )
    parser.add_argument(
        "--text", type=str,
        help="File containing a model answer with a GOLF_DATA: block",
    )

    # History
    parser.add_argument(
        "--stats", action="store_true",
        help="Print session statistics",
    )
    parser.add_argument(
        "--export", type=str, metavar="DIR", nargs="?", const="",
        help="Export the shot history as JSON into DIR "
             "(default: ~/.hudreader/exports)",
    )
    parser.add_argument(
        "--clear", action="store_true",
        help="Delete the shot history",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
