import argparse
import json
import sys

from typing import List, Optional

from tcstring.errors import DecodeError
from tcstring.model import ConsentRecord
from tcstring import decode


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Decoder for IAB TCF v1.1/v2 consent strings"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    dec = subparsers.add_parser(
        "decode", aliases=["d"], help="Decode consent strings to JSON"
    )
    dec.add_argument(
        "tc_string",
        nargs="*",
        help="Consent strings to decode",
    )
    dec.add_argument(
        "-i",
        "--input",
        default=None,
        help="File with one consent string per line",
    )
    dec.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )
    dec.add_argument(
        "-c",
        "--compact",
        action="store_true",
        help="Print one JSON object per line",
    )

    return parser


def _iter_strings(strings: List[str], input_path: Optional[str]) -> List[str]:
    """Collect consent strings from the command line and an optional file.

    Blank lines and surrounding whitespace in the file are ignored.

    :param strings: Strings given as positional arguments.
    :type strings: List[str]
    :param input_path: Path to a newline-separated file, or ``None``.
    :type input_path: Optional[str]
    :returns: Consent strings in the order given.
    :rtype: List[str]
    :raises FileNotFoundError: If ``input_path`` does not exist.
    """
    result = list(strings)
    if input_path is not None:
        with open(input_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    result.append(line)
    return result


def _format_record(record: ConsentRecord, indent: int, compact: bool) -> str:
    """Render a decoded record as JSON.

    :param record: Decoded consent record.
    :type record: ConsentRecord
    :param indent: Indentation for pretty output.
    :type indent: int
    :param compact: Emit the record on a single line.
    :type compact: bool
    :returns: JSON text.
    :rtype: str
    """
    if compact:
        return json.dumps(record.to_dict(), separators=(",", ":"))
    return json.dumps(record.to_dict(), indent=indent)


def decode_strings(strings: List[str], indent: int = 2, compact: bool = False) -> int:
    """Decode every string and print the result or a diagnostic.

    :param strings: Consent strings to decode.
    :type strings: List[str]
    :param indent: Indentation for pretty output.
    :type indent: int
    :param compact: Emit each record on a single line.
    :type compact: bool
    :returns: ``0`` if every string decoded, ``1`` otherwise.
    :rtype: int
    """
    status = 0
    for tc_string in strings:
        try:
            record = decode(tc_string)
        except DecodeError as e:
            print(f"[!] {tc_string}: {e}")
            status = 1
            continue
        print(_format_record(record, indent, compact))
    return status


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments to parse instead of ``sys.argv``.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.cmd in ["decode", "d"]:
        try:
            strings = _iter_strings(args.tc_string, args.input)
        except FileNotFoundError:
            print(f"[!] Input file not found: {args.input}")
            return 1
        if not strings:
            parser.error("no consent strings given")
        return decode_strings(strings, args.indent, args.compact)
    return 0


if __name__ == "__main__":
    sys.exit(main())
