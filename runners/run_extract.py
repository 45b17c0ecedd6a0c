from pathlib import Path
import argparse
import json
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend import config
from extraction.chunk_extractor import (
    ChunkExtractor,
    InvalidDestinationError,
    InvalidRangeError,
)
from extraction.memory_probe import ProcessMemoryProbe
from extraction.models import DestinationMode
from sinks.disk_sink import DiskSink, InvalidFilenameError
from wav.container import FormatError, RangeError, WavContainer


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cut a time range out of a PCM WAV file")
    parser.add_argument("--input", required=True, help="Path to the source WAV file")
    parser.add_argument("--start", type=int, required=True, help="Start time in milliseconds")
    parser.add_argument("--end", type=int, required=True, help="End time in milliseconds")
    parser.add_argument("--output", default=None, help="Output filename (default: <input>-<start>-<end>.wav)")
    parser.add_argument("--output-dir", default=None, help="Directory for the written chunk")
    parser.add_argument(
        "--destination",
        default="disk",
        choices=["disk", "disk_and_return"],
        help="Where the chunk goes",
    )
    parser.add_argument(
        "--memory-limit-mb",
        type=int,
        default=config.MEMORY_LIMIT_MB,
        help="Memory budget used by the pre-flight check",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        extractor = ChunkExtractor(
            container=WavContainer(args.input),
            memory_probe=ProcessMemoryProbe(limit_mb=args.memory_limit_mb),
            disk_sink=DiskSink(output_dir=args.output_dir),
        )
        result = extractor.extract(
            args.start,
            args.end,
            destination=DestinationMode[args.destination.upper()],
            filename=args.output,
        )
        print(
            json.dumps(
                {
                    "ok": True,
                    "filename": result.filename,
                    "written_path": result.written_path,
                    "payload_size": result.payload_size,
                    "output_size": result.output_size,
                },
                indent=2,
            )
        )
        return 0
    except (
        FormatError,
        RangeError,
        InvalidRangeError,
        InvalidDestinationError,
        InvalidFilenameError,
    ) as exc:
        print(json.dumps({"ok": False, "error": str(exc)}, indent=2))
        return 1
    except Exception as exc:
        print(json.dumps({"ok": False, "error": str(exc)}, indent=2))
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
