#!/usr/bin/env python3
"""Reads or writes ID3v2 frames in mp3 files."""

import logging
import sys
from typing import List, Tuple

import configargparse
from mutagen import MutagenError
from mutagen.id3 import COMM, ID3, TXXX, Frames, ID3NoHeaderError, TextFrame
from mutagen.id3 import Frame as ID3Frame

logger = logging.getLogger("TrackFiles.id3")

# Key parts that tell apart several instances of the same frame
FRAME_KEYS = {
    "TXXX": ("DESC",),
    "WXXX": ("DESC",),
    "COMM": ("DESC", "LANG"),
    "USLT": ("DESC", "LANG"),
}
WRITABLE = {"TXXX", "COMM"}


class ID3ToolError(Exception):
    pass


def list_frames() -> List[str]:
    """Return `<id>\t<description>` for every text frame mutagen knows how to write."""
    lines = []
    for frame_id in sorted(Frames):
        frame_cls = Frames[frame_id]
        if issubclass(frame_cls, TextFrame) or frame_id in WRITABLE:
            doc = (frame_cls.__doc__ or "").strip().splitlines()
            lines.append(f"{frame_id}\t{doc[0] if doc else ''}")
    return lines


def split_key(spec: str) -> Tuple[str, List[str]]:
    """Split `FRAME[:DESC[:LANG]]` into the frame id and its key parts."""
    frame_id, *parts = spec.split(":")
    frame_id = frame_id.upper()
    if frame_id not in Frames:
        raise ID3ToolError(f"Unknown frame '{frame_id}'")
    expected = FRAME_KEYS.get(frame_id, ())
    if len(parts) > len(expected):
        raise ID3ToolError(f"Frame {frame_id} takes at most {len(expected)} key part(s) ({', '.join(expected) or 'none'})")
    return frame_id, parts


def _frame_text(frame: ID3Frame) -> str:
    if hasattr(frame, "text"):
        return "/".join(str(t) for t in frame.text)
    if hasattr(frame, "url"):
        return frame.url
    return frame.pprint()


def get_values(tags: ID3, spec: str) -> List[str]:
    frame_id, parts = split_key(spec)
    values = []
    for frame in tags.getall(frame_id):
        if parts and getattr(frame, "desc", None) != parts[0]:
            continue
        # 'first' matches any language
        if len(parts) > 1 and parts[1] != "first" and getattr(frame, "lang", None) != parts[1]:
            continue
        values.append(_frame_text(frame))
        if len(parts) > 1 and parts[1] == "first":
            break
    return values


def set_value(tags: ID3, assignment: str) -> None:
    spec, sep, text = assignment.partition("=")
    if not sep:
        raise ID3ToolError(f"Expected FRAME=TEXT, got '{assignment}'")
    frame_id, parts = split_key(spec)

    if frame_id == "TXXX":
        desc = parts[0] if parts else ""
        tags.delall(f"TXXX:{desc}")
        tags.add(TXXX(encoding=3, desc=desc, text=[text]))
    elif frame_id == "COMM":
        desc = parts[0] if parts else ""
        lang = parts[1] if len(parts) > 1 else "eng"
        tags.delall(f"COMM:{desc}:{lang}")
        tags.add(COMM(encoding=3, lang=lang, desc=desc, text=[text]))
    elif issubclass(Frames[frame_id], TextFrame):
        tags.setall(frame_id, [Frames[frame_id](encoding=3, text=[text])])
    else:
        raise ID3ToolError(f"Frame {frame_id} is read-only")


def process_file(path: str, gets: List[str], sets: List[str], delimiter: str) -> None:
    try:
        tags = ID3(path)
    except ID3NoHeaderError:
        if gets or not sets:
            raise ID3ToolError(f"No ID3 tag found in '{path}'")
        tags = ID3()

    if not gets and not sets:
        for frame in tags.values():
            print(f"{frame.HashKey}: {_frame_text(frame)}")
        return

    # Reads happen before writes
    values = []
    for spec in gets:
        values.extend(get_values(tags, spec))
    if gets:
        print(delimiter.join(values))

    for assignment in sets:
        set_value(tags, assignment)
    if sets:
        version = 4 if tags.version >= (2, 4, 0) else 3
        tags.save(path, v2_version=version)
        logger.info(f"Saved {len(sets)} frame(s) to '{path}'")


def parse_args(argv: List[str] | None = None) -> configargparse.Namespace:
    parser = configargparse.ArgumentParser(description=__doc__)
    parser.add_argument("-L", "--list-frames", action="store_true", help="List all writable frames")
    parser.add_argument("-d", "--delimiter", type=str, default="\n", help="Separate multiple printed values with SEP")
    parser.add_argument("-0", "--null-delimited", action="store_true", help="Separate multiple printed values with the null byte")
    parser.add_argument("--get", action="append", default=[], metavar="FRAME[:DESC[:LANG]]", help="Print the value of FRAME")
    parser.add_argument("--set", action="append", default=[], metavar="FRAME[:DESC[:LANG]]=TEXT", help="Set the value of FRAME")
    parser.add_argument("files", nargs="*", help="mp3 files to read or write")
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    if args.list_frames:
        print("\n".join(list_frames()))
        return 0

    delimiter = "\0" if args.null_delimited else args.delimiter
    exit_code = 0
    for path in args.files:
        try:
            process_file(path, args.get, args.set, delimiter)
        except (ID3ToolError, MutagenError, OSError) as e:
            logger.error(f"{path}: {e}")
            exit_code = 1
    return exit_code


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    sys.exit(main())
