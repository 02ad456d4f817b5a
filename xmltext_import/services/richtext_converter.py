"""Default ezxmltext -> richtext converter driven by XSLT stylesheets.

The stylesheets themselves are deployment configuration. This module only
chains them, repairs ``xml:id`` values the way the richtext field type
expects, and validates the result against an optional RelaxNG schema.
Every problem is recorded as a :class:`Diagnostic` in ``errors``.
"""

from __future__ import annotations

import importlib
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import structlog
from lxml import etree

from xmltext_import.services.conversion_validator import Diagnostic, RichTextConverter, Severity
from xmltext_import.services.document_loader import ParsedDocument
from xmltext_import.services.error_codes import ImportConfigError, ImportErrorCode

logger = structlog.get_logger(__name__)

XML_ID = "{http://www.w3.org/XML/1998/namespace}id"
XSL_NS = "http://www.w3.org/1999/XSL/Transform"
_VALID_ID = re.compile(r"[a-zA-Z_][a-zA-Z0-9_\-.]*")


def _stylesheet_indents(stylesheet: etree._ElementTree) -> bool:
    output = stylesheet.getroot().find(f"{{{XSL_NS}}}output")
    return output is not None and output.get("indent") == "yes"


class XsltRichTextConverter:
    def __init__(
        self,
        stylesheets: Sequence[str | Path] = (),
        schema: str | Path | None = None,
    ):
        if not stylesheets:
            raise ImportConfigError(ImportErrorCode.CONVERTER_LOAD_FAIL, "no XSLT stylesheet configured")

        self._transforms: list[etree.XSLT] = []
        self._indent = False
        for path in stylesheets:
            doc = etree.parse(str(path))
            self._transforms.append(etree.XSLT(doc))
            self._indent = self._indent or _stylesheet_indents(doc)

        self._schema = etree.RelaxNG(etree.parse(str(schema))) if schema else None
        self._image_content_type_ids: list[int] = []
        self.errors: dict[Severity, list[Diagnostic]] = {}

    def set_image_content_types(self, content_type_ids: Mapping[str, int]) -> None:
        self._image_content_type_ids = sorted(int(v) for v in content_type_ids.values())

    def _log(self, severity: Severity, message: str, context_errors: Sequence[str] = ()) -> None:
        self.errors.setdefault(severity, []).append(
            Diagnostic(severity=severity, message=message, context_errors=tuple(context_errors))
        )

    def convert(
        self,
        document: ParsedDocument,
        check_duplicate_ids: bool = False,
        check_id_values: bool = False,
        content_field_id: str | None = None,
    ) -> None:
        self.errors = {}
        image_types = etree.XSLT.strparam(",".join(str(i) for i in self._image_content_type_ids))

        for transform in self._transforms:
            try:
                result = transform(document.tree, imageContentTypes=image_types)
            except etree.XSLTApplyError as exc:
                self._log(
                    Severity.ERROR,
                    f"Unable to convert ezxmltext for contentobject_attribute.id={content_field_id}: {exc}",
                    [str(entry) for entry in transform.error_log],
                )
                return
            root = result.getroot()
            if root is None:
                self._log(
                    Severity.ERROR,
                    f"Conversion of ezxmltext for contentobject_attribute.id={content_field_id} produced an empty document",
                )
                return
            document.replace_root(root)

        if self._indent:
            document.pretty_print = True

        if check_duplicate_ids:
            self._check_duplicate_ids(document, content_field_id)
        if check_id_values:
            self._check_id_values(document, content_field_id)

        if self._schema is not None and not self._schema.validate(document.tree):
            self._log(
                Severity.ERROR,
                f"Validation errors when converting ezxmltext for contentobject_attribute.id={content_field_id}",
                [f"{entry.line}:{entry.column} {entry.message}" for entry in self._schema.error_log],
            )

    def _id_elements(self, document: ParsedDocument) -> list[etree._Element]:
        return [el for el in document.root.iter(etree.Element) if el.get(XML_ID) is not None]

    @staticmethod
    def _unique_id(base: str, taken: set[str]) -> str:
        counter = 1
        candidate = f"{base}_{counter}"
        while candidate in taken:
            counter += 1
            candidate = f"{base}_{counter}"
        return candidate

    def _check_duplicate_ids(self, document: ParsedDocument, content_field_id: str | None) -> None:
        elements = self._id_elements(document)
        taken = {el.get(XML_ID) for el in elements}
        seen: set[str] = set()
        for el in elements:
            value = el.get(XML_ID)
            if value not in seen:
                seen.add(value)
                continue
            new_id = self._unique_id(value, taken)
            taken.add(new_id)
            el.set(XML_ID, new_id)
            self._log(
                Severity.WARNING,
                f"Duplicated id in original ezxmltext for contentobject_attribute.id={content_field_id}, "
                f"automatically generated new id : {value} --> {new_id}",
            )

    def _check_id_values(self, document: ParsedDocument, content_field_id: str | None) -> None:
        elements = self._id_elements(document)
        taken = {el.get(XML_ID) for el in elements}
        for el in elements:
            value = el.get(XML_ID)
            if _VALID_ID.fullmatch(value):
                continue
            base = re.sub(r"[^a-zA-Z0-9_\-.]", "_", value)
            if not re.match(r"^[a-zA-Z_]", base):
                base = f"id_{base}"
            new_id = base if base not in taken else self._unique_id(base, taken)
            taken.add(new_id)
            el.set(XML_ID, new_id)
            self._log(
                Severity.WARNING,
                f"Replaced non-validating id value in richtext for contentobject_attribute.id={content_field_id}, "
                f"changed from : {value} --> {new_id}",
            )


def load_converter(dotted_path: str, **kwargs: Any) -> RichTextConverter:
    """Instantiate ``module:attribute`` with ``kwargs``."""
    module_name, _, attr = dotted_path.partition(":")
    if not module_name or not attr:
        raise ImportConfigError(
            ImportErrorCode.CONVERTER_LOAD_FAIL,
            f"converter must be given as module:attribute, got {dotted_path!r}",
        )
    try:
        factory = getattr(importlib.import_module(module_name), attr)
        converter = factory(**kwargs)
    except (ImportError, AttributeError, OSError, etree.LxmlError) as exc:
        raise ImportConfigError(
            ImportErrorCode.CONVERTER_LOAD_FAIL,
            f"unable to load converter {dotted_path}: {exc}",
        ) from exc

    logger.info("converter_loaded", converter=dotted_path)
    return converter
