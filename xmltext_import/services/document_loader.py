from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from lxml import etree

from xmltext_import.services.error_codes import DumpParseError, DumpReadError


@dataclass
class ParsedDocument:
    tree: etree._ElementTree
    source: str = ""
    pretty_print: bool = False

    @property
    def root(self) -> etree._Element:
        return self.tree.getroot()

    def replace_root(self, new_root: etree._Element) -> None:
        self.tree = etree.ElementTree(new_root)

    def to_xml(self) -> str:
        raw = etree.tostring(
            self.tree,
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=self.pretty_print,
        )
        return raw.decode("utf-8")


def _make_parser() -> etree.XMLParser:
    # No whitespace preservation, no entity expansion, no network access.
    return etree.XMLParser(
        remove_blank_text=True,
        resolve_entities=False,
        no_network=True,
        huge_tree=False,
    )


def read_dump(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise DumpReadError(str(path), f"unable to read file ({exc.strerror or exc})") from exc


def parse_document(content: bytes, source: str = "") -> ParsedDocument:
    if not content.strip():
        raise DumpParseError(source, "unable to parse ezxmltext, empty document")
    try:
        root = etree.fromstring(content, parser=_make_parser())
    except etree.XMLSyntaxError as exc:
        raise DumpParseError(source, f"unable to parse ezxmltext, invalid XML format ({exc})") from exc
    return ParsedDocument(tree=etree.ElementTree(root), source=source)


def load_document(path: Path) -> ParsedDocument:
    return parse_document(read_dump(path), source=str(path))
