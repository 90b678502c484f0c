#!/usr/bin/env python3
"""Convert a JSON list of meetings to an .ics file with weekly recurrences."""
import json
import logging
import sys
from pathlib import Path

from meeting_sources import meetings_from_payload
from meetings_to_ics_impl import meetings_to_calendar


def meetings_json_to_ics(json_path: Path, ics_out: Path) -> int:
    meetings = meetings_from_payload(json.loads(json_path.read_text(encoding="utf-8")))
    ics_out.write_bytes(meetings_to_calendar(meetings).encode("utf-8"))
    return len(meetings)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    if len(argv) < 2:
        print("Usage: python meetings_to_ics.py <input.json> <output.ics>")
        return 1
    try:
        count = meetings_json_to_ics(Path(argv[0]), Path(argv[1]))
    except (OSError, ValueError):
        logging.exception("Conversion failed")
        return 1
    logging.info("Wrote %d meeting(s) to %s", count, argv[1])
    return 0


if __name__ == "__main__":
    sys.exit(main())
