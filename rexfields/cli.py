from __future__ import annotations

import argparse
import logging
import os
import sys

from .config import Config, default_config, load_config
from .errors import ConfigError, LineError
from .processor import Processor

logger = logging.getLogger("rexfields")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rexfields", description="Extract fields from lines with a regex and print them as JSON.")
    parser.add_argument("-c", "--config", type=str, default=None, help="Path to YAML config file")
    parser.add_argument("-i", "--input-file", type=str, default="-", help="Input file path or '-' for stdin")
    parser.add_argument("-o", "--output", type=str, default="-", help="Output file path or '-' for stdout")
    parser.add_argument("-f", "--format", type=str, default=None, help="'json' for the whole record or a single field name")
    parser.add_argument("-t", "--template", type=str, default=None, help="Jinja2 template rendered with the record, overrides --format")
    parser.add_argument("-s", "--stop", action="store_true", help="Print the line which cannot be parsed and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped lines")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    try:
        cfg: Config = load_config(args.config) if args.config else default_config()
        extractor = cfg.compile()
        output_format = cfg.output_format(extractor, fmt=args.format, template=args.template)
    except ConfigError as e:
        logger.error("%s", e)
        return 1
    processor = Processor(extractor=extractor, output_format=output_format, strict=args.stop or cfg.strict)

    if args.input_file == "-" and hasattr(sys.stdin, "reconfigure"):
        # Split on "\n" only, a lone "\r" stays inside the line
        sys.stdin.reconfigure(newline="")
    try:
        src = sys.stdin if args.input_file == "-" else open(args.input_file, "r", encoding="utf-8", newline="")
    except OSError as e:
        logger.error("Cannot open input: %s", e)
        return 1
    try:
        dst = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")
    except OSError as e:
        logger.error("Cannot open output: %s", e)
        if src is not sys.stdin:
            src.close()
        return 1

    try:
        stats = processor.process_stream(src, dst)
        dst.flush()
    except LineError as e:
        logger.error("parse failed: %s", e.describe())
        return 1
    except UnicodeDecodeError as e:
        logger.error("Failed to read line: %s", e)
        return 1
    except BrokenPipeError:
        # Reader went away; silence the flush at interpreter exit
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return 0
    except OSError as e:
        logger.error("Failed to read line: %s", e)
        return 1
    finally:
        if src is not sys.stdin:
            src.close()
        if dst is not sys.stdout:
            dst.close()
    logger.debug("Processed %d line(s): %d emitted, %d skipped", stats.lines, stats.emitted, stats.skipped)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
