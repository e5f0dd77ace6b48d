from __future__ import annotations

import argparse
import logging
import os
import sys

from hexedit.app import HexeditApp, parse_offset
from hexedit.core.config import load_config
from hexedit.core.document import Document
from hexedit.core.errors import ConfigError, EmptyFileError, FileIOError
from hexedit.core.history import History


def _offset(text: str) -> int:
    value = parse_offset(text)
    if value is None or value < 0:
        raise argparse.ArgumentTypeError(f"invalid offset: {text!r}")
    return value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="hexedit", description="Hex editor for large files (Textual)")
    parser.add_argument("path", help="Path to the file to edit")
    parser.add_argument("--offset", type=_offset, default=None, help="Initial cursor offset (decimal or 0x hex)")
    parser.add_argument("--config", default=None, help="Config file (default: ~/.config/hexedit/config.yaml)")
    parser.add_argument("--log-file", default=None, help="Write log messages to this file")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level (needs --log-file)")
    args = parser.parse_args(argv)

    # The terminal belongs to Textual; log only into a file
    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG if args.debug else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if not os.path.exists(args.path):
        print(f"hexedit: file not found: {args.path}", file=sys.stderr)
        return 2

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"hexedit: {exc}", file=sys.stderr)
        return 1

    # Fail early on empty or unreadable files
    try:
        Document.open(args.path, config).close()
    except (EmptyFileError, FileIOError) as exc:
        print(f"hexedit: {exc}", file=sys.stderr)
        return 1

    history = History.load(config=config)
    app = HexeditApp(args.path, config=config, history=history, offset=args.offset)
    try:
        app.run()
    finally:
        if app.document is not None:
            app.document.close()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
