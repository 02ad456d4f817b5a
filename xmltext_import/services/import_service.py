from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from sqlalchemy.orm import Session

from xmltext_import.services.attribute_store import (
    LEGACY_DATA_TYPE,
    attribute_exists,
    missing_content_type_identifiers,
    resolve_content_type_ids,
    update_attribute,
)
from xmltext_import.services.conversion_validator import RichTextConverter, ValidationResult, validate_conversion
from xmltext_import.services.document_loader import load_document
from xmltext_import.services.dump_filename import DEFAULT_TAG, FileAddress, is_dump_candidate, parse_dump_filename
from xmltext_import.services.error_codes import DumpLoadError, ImportConfigError, ImportErrorCode
from xmltext_import.services.import_report import ImportFileResult, ImportOutcome, ImportReport, now_iso

logger = structlog.get_logger(__name__)


@dataclass
class ImportContext:
    export_dir: Path
    converter: RichTextConverter
    dry_run: bool = False
    content_object_id: str | None = None
    image_content_type_ids: dict[str, int] = field(default_factory=dict)
    filename_tag: str = DEFAULT_TAG
    legacy_data_type: str = LEGACY_DATA_TYPE

    def describe(self) -> dict:
        return {
            "export_dir": str(self.export_dir),
            "dry_run": self.dry_run,
            "content_object": self.content_object_id,
            "image_content_types": dict(self.image_content_type_ids),
            "filename_tag": self.filename_tag,
        }


def check_export_dir(export_dir: str | Path) -> Path:
    if not str(export_dir).strip():
        raise ImportConfigError(ImportErrorCode.EXPORT_DIR_UNREADABLE, "export dir is required")
    path = Path(export_dir).expanduser()
    if not path.is_dir() or not os.access(path, os.R_OK | os.X_OK):
        raise ImportConfigError(ImportErrorCode.EXPORT_DIR_UNREADABLE, f"{path} is not readable")
    return path


def resolve_image_content_types(db: Session, identifiers: Sequence[str]) -> dict[str, int]:
    resolved = resolve_content_type_ids(db, identifiers)
    missing = missing_content_type_identifiers(identifiers, resolved)
    if missing:
        raise ImportConfigError(
            ImportErrorCode.CONTENT_TYPE_NOT_FOUND,
            "Unable to lookup all content type identifiers, not found : " + ",".join(missing),
        )
    return resolved


def prepare_import(
    db: Session,
    *,
    export_dir: str | Path,
    converter: RichTextConverter,
    image_content_types: Sequence[str],
    dry_run: bool = False,
    content_object_id: str | None = None,
    filename_tag: str = DEFAULT_TAG,
    legacy_data_type: str = LEGACY_DATA_TYPE,
) -> ImportContext:
    """Validate run configuration; raises ImportConfigError before any dump is read."""
    path = check_export_dir(export_dir)
    image_ids = resolve_image_content_types(db, image_content_types)
    converter.set_image_content_types(image_ids)
    logger.info("image_content_types_resolved", image_content_types=image_ids)

    return ImportContext(
        export_dir=path,
        converter=converter,
        dry_run=dry_run,
        content_object_id=content_object_id,
        image_content_type_ids=image_ids,
        filename_tag=filename_tag,
        legacy_data_type=legacy_data_type,
    )


def _diagnostic_lines(validation: ValidationResult) -> list[str]:
    lines: list[str] = []
    for diagnostic in validation.diagnostics:
        lines.append(f"{diagnostic.severity.value}: {diagnostic.message}")
        lines.extend(f"  context: {error}" for error in diagnostic.context_errors)
    return lines


def import_dump_file(db: Session, ctx: ImportContext, path: Path, address: FileAddress) -> ImportFileResult:
    filename = path.name

    try:
        document = load_document(path)
    except DumpLoadError as exc:
        logger.error("dump_load_failed", file=filename, code=exc.code, error=exc.message)
        return ImportFileResult(
            filename=filename,
            status=ImportOutcome.SKIPPED_LOAD_FAILED,
            message=exc.message,
            code=exc.code,
            address=str(address),
        )

    validation = validate_conversion(ctx.converter, document, str(path), address.attribute_id)
    diagnostics = _diagnostic_lines(validation)
    if not validation.accepted:
        return ImportFileResult(
            filename=filename,
            status=ImportOutcome.SKIPPED_VALIDATION_FAILED,
            message="validation errors when converting ezxmltext to richtext",
            code=ImportErrorCode.CONVERSION_INVALID,
            address=str(address),
            validation=validation.status.value,
            diagnostics=diagnostics,
        )

    if not attribute_exists(db, address, ctx.legacy_data_type):
        logger.warning("attribute_not_found", file=filename, address=str(address))
        return ImportFileResult(
            filename=filename,
            status=ImportOutcome.SKIPPED_NO_MATCH,
            message="file does not match any contentobject attribute stored in the database",
            code=ImportErrorCode.ATTRIBUTE_NOT_FOUND,
            address=str(address),
            validation=validation.status.value,
            diagnostics=diagnostics,
        )

    if ctx.dry_run:
        logger.info("dry_run_write_skipped", file=filename, address=str(address))
        return ImportFileResult(
            filename=filename,
            status=ImportOutcome.SKIPPED_DRY_RUN,
            message="dry-run, not written",
            address=str(address),
            validation=validation.status.value,
            diagnostics=diagnostics,
        )

    update_attribute(db, address, document.to_xml(), ctx.legacy_data_type)
    db.commit()
    logger.info("attribute_updated", file=filename, address=str(address))
    return ImportFileResult(
        filename=filename,
        status=ImportOutcome.IMPORTED,
        message="ok",
        address=str(address),
        validation=validation.status.value,
        diagnostics=diagnostics,
    )


def import_dumps(db: Session, ctx: ImportContext) -> ImportReport:
    report = ImportReport(started_at=now_iso(), finished_at="", args=ctx.describe(), dry_run=ctx.dry_run)

    with os.scandir(ctx.export_dir) as entries:
        for entry in entries:
            if not is_dump_candidate(entry):
                continue
            report.total_files += 1

            address = parse_dump_filename(entry.name, ctx.filename_tag)
            if address is None:
                logger.info("filename_not_recognized", file=entry.name)
                report.add(
                    ImportFileResult(
                        filename=entry.name,
                        status=ImportOutcome.SKIPPED_UNRECOGNIZED_FILENAME,
                        message="filename pattern not recognized",
                        code=ImportErrorCode.FILENAME_NOT_RECOGNIZED,
                    )
                )
                continue

            if not address.matches_object(ctx.content_object_id):
                report.filtered += 1
                continue

            logger.info("importing_dump", file=entry.name, address=str(address))
            report.add(import_dump_file(db, ctx, Path(entry.path), address))

    report.finish()
    return report
