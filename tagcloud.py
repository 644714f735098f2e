"""CLI entrypoint for generating the tag cloud HTML file."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from tagcloud_core import (
    DEFAULT_ENCODING,
    TagCloudConfig,
    TagCloudError,
    generate_tag_cloud,
    validate_word_count,
    write_stylesheet,
    write_tag_cloud,
)

logger = logging.getLogger(__name__)

INPUT_PROMPT = "Enter input file path: "
OUTPUT_PROMPT = "Enter output file path: "
WORDS_PROMPT = "Enter number of words to include in the tag cloud: "


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate an HTML tag cloud of the most frequent words in a text file.",
        epilog="Any value not given on the command line is prompted for on stdin.",
    )
    parser.add_argument("input_path", nargs="?", default=None, help="Path to the input text file.")
    parser.add_argument("output_path", nargs="?", default=None, help="Destination HTML file path.")
    parser.add_argument("-n", "--words", default=None, help="Number of words to include in the tag cloud.")
    parser.add_argument(
        "--encoding",
        default=DEFAULT_ENCODING,
        help="Text encoding of the input file (default: %(default)s).",
    )
    parser.add_argument(
        "--write-css",
        action="store_true",
        help="Also write tagcloud.css next to the output file.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def prompt(message: str) -> str:
    try:
        return input(message).strip()
    except EOFError:
        return ""


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_path = args.input_path if args.input_path is not None else prompt(INPUT_PROMPT)
    output_path = args.output_path if args.output_path is not None else prompt(OUTPUT_PROMPT)
    raw_words = args.words if args.words is not None else prompt(WORDS_PROMPT)

    config = TagCloudConfig(encoding=args.encoding)

    try:
        n_words = validate_word_count(raw_words)
        result = generate_tag_cloud(input_path, n_words, config=config)
        html_path = write_tag_cloud(result, output_path)
        if args.write_css:
            css_path = write_stylesheet(html_path.parent, config=config)
            logger.debug("Wrote stylesheet to %s", css_path)
    except TagCloudError as exc:
        raise SystemExit(str(exc)) from None

    print(html_path)


if __name__ == "__main__":
    main()
