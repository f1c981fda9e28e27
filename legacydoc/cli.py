"""Command-line helper to dump text from a Word 97-2003 document."""

import argparse
import json
import logging
from pathlib import Path

from .book import parse_doc
from .exceptions import DocFormatError, TextExtractionError
from .fallback import extract_ascii_text
from .reader import DocReader


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Dump text from a binary .doc file using pure Python")
    parser.add_argument("document", type=Path, help="path to the .doc file")
    parser.add_argument("--json", action="store_true", help="print the parsed book as JSON")
    parser.add_argument("--title", help="file name used for the book title (defaults to the document name)")
    parser.add_argument("--list-streams", action="store_true", help="list the streams of the OLE2 container")
    parser.add_argument("--raw-ascii", action="store_true", help="dump loose ASCII runs without parsing")
    parser.add_argument("--no-newline", action="store_true", help="do not append final newline")
    parser.add_argument("-v", "--verbose", action="store_true", help="log each parsing stage")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        with DocReader(args.document) as reader:
            if args.list_streams:
                container = reader.container()
                if container is None:
                    raise DocFormatError("not an OLE2 container")
                output = "\n".join(container.stream_names())
            elif args.raw_ascii:
                output = extract_ascii_text(reader.data)
            elif args.json:
                book = parse_doc(reader.data, args.title or args.document.name)
                output = json.dumps(book.to_dict(), ensure_ascii=False, indent=2)
            else:
                output = reader.read_text()
                if not output.strip():
                    raise TextExtractionError(file_name=args.document.name)
    except (DocFormatError, OSError) as exc:
        parser.error(str(exc))
    end = "" if args.no_newline else "\n"
    print(output, end=end)


if __name__ == "__main__":
    main()
