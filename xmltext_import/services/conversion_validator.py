from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from xmltext_import.services.document_loader import ParsedDocument

logger = structlog.get_logger(__name__)


class Severity(str, enum.Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    context_errors: tuple[str, ...] = ()


class RichTextConverter(Protocol):
    errors: dict[Severity, list[Diagnostic]]

    def convert(
        self,
        document: ParsedDocument,
        check_duplicate_ids: bool = False,
        check_id_values: bool = False,
        content_field_id: str | None = None,
    ) -> None: ...

    def set_image_content_types(self, content_type_ids: Mapping[str, int]) -> None: ...


class ValidationStatus(str, enum.Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationResult:
    status: ValidationStatus
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.status != ValidationStatus.ERROR


def classify_diagnostics(errors: Mapping[Severity, Sequence[Diagnostic]]) -> ValidationStatus:
    if not errors:
        return ValidationStatus.OK
    if Severity.ERROR in errors:
        return ValidationStatus.ERROR
    return ValidationStatus.WARNING


def _log_diagnostics(diagnostics: list[Diagnostic], filename: str) -> None:
    for diagnostic in diagnostics:
        log = logger.error if diagnostic.severity == Severity.ERROR else logger.warning
        log(
            "conversion_diagnostic",
            file=filename,
            severity=diagnostic.severity.value,
            message=diagnostic.message,
        )
        for context_error in diagnostic.context_errors:
            log(
                "conversion_diagnostic_context",
                file=filename,
                severity=diagnostic.severity.value,
                context=context_error,
            )


def validate_conversion(
    converter: RichTextConverter,
    document: ParsedDocument,
    filename: str,
    attribute_id: str,
) -> ValidationResult:
    """Convert ``document`` in place and decide whether it may be written back.

    Any error-severity diagnostic rejects the document; warnings alone do not.
    """
    converter.convert(document, True, True, attribute_id)
    # Stylesheets may request indented output; stored data must stay unformatted.
    document.pretty_print = False

    errors = converter.errors
    status = classify_diagnostics(errors)
    diagnostics = [d for entries in errors.values() for d in entries]

    if status == ValidationStatus.ERROR:
        logger.error("conversion_rejected", file=filename, diagnostics=len(diagnostics))
    elif status == ValidationStatus.WARNING:
        logger.warning("conversion_issues_found", file=filename, diagnostics=len(diagnostics))

    _log_diagnostics(diagnostics, filename)
    return ValidationResult(status=status, diagnostics=diagnostics)
