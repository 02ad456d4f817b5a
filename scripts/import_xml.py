#!/usr/bin/env python3
"""Import ezxmltext dumps that were exported by the richtext conversion and corrected by hand.

ALWAYS make sure you have a restorable backup of your database before using this!

Examples:
  python scripts/import_xml.py --export-dir /var/dumps --dry-run

  python scripts/import_xml.py \
    --export-dir /var/dumps \
    --image-content-types image,photo \
    --content-object 12 \
    --stylesheet /opt/xsl/ezxml_to_docbook.xsl \
    --schema /opt/schema/ezpublish.rng \
    --report /tmp/import_xml_report.txt \
    --json-report /tmp/import_xml_report.json
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import structlog

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from xmltext_import.core.config import Settings, get_settings
from xmltext_import.core.logging import configure_logging
from xmltext_import.db.session import build_session_factory
from xmltext_import.services.error_codes import ImportConfigError
from xmltext_import.services.import_report import ImportReport, write_report
from xmltext_import.services.import_service import import_dumps, prepare_import
from xmltext_import.services.richtext_converter import load_converter

logger = structlog.get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import ezxmltext dumps which were manually corrected after a failed richtext conversion"
    )
    parser.add_argument("--dry-run", action="store_true", help="run the converter without writing to the database")
    parser.add_argument("--export-dir", default=None, help="directory holding ezxmltext_*.xml dumps")
    parser.add_argument(
        "--image-content-types",
        default=None,
        help="comma separated content type identifiers treated as images for embeds (default: image)",
    )
    parser.add_argument("--content-object", default=None, help="only import dumps for this content object id")
    parser.add_argument("--converter", default=None, help="converter as module:attribute")
    parser.add_argument("--stylesheet", action="append", default=None, help="XSLT stylesheet, repeatable, applied in order")
    parser.add_argument("--schema", default=None, help="RelaxNG schema the converted document must satisfy")
    parser.add_argument("--database-url", default=None)
    parser.add_argument("--report", default="", help="text report file")
    parser.add_argument("--json-report", default="", help="json report file")
    return parser.parse_args(argv)


def split_identifiers(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return list(default)
    return [part.strip() for part in value.split(",") if part.strip()]


def _print_summary(report: ImportReport) -> None:
    print(report.summary_line())


def run(args: argparse.Namespace, settings: Settings) -> ImportReport:
    if args.dry_run:
        print("Running in dry-run mode. No changes will actually be written to database\n")

    converter = load_converter(
        args.converter or settings.converter,
        stylesheets=args.stylesheet or settings.xslt_stylesheets,
        schema=args.schema or settings.richtext_schema,
    )
    session_factory = build_session_factory(args.database_url or settings.database_url)

    with session_factory() as db:
        ctx = prepare_import(
            db,
            export_dir=args.export_dir or settings.export_dir,
            converter=converter,
            image_content_types=split_identifiers(args.image_content_types, settings.image_content_types),
            dry_run=args.dry_run,
            content_object_id=args.content_object,
            filename_tag=settings.dump_filename_tag,
            legacy_data_type=settings.legacy_data_type,
        )
        return import_dumps(db, ctx)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_format, settings.log_level)

    try:
        report = run(args, settings)
    except ImportConfigError as exc:
        logger.error("import_aborted", code=exc.code, error=exc.message)
        raise SystemExit(exc.message) from exc

    write_report(report, args.report, as_json=False)
    write_report(report, args.json_report, as_json=True)
    _print_summary(report)


if __name__ == "__main__":
    main()
