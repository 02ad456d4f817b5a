import pytest

etree = pytest.importorskip("lxml.etree")

from xmltext_import.services.conversion_validator import Severity
from xmltext_import.services.document_loader import parse_document
from xmltext_import.services.error_codes import ImportConfigError, ImportErrorCode
from xmltext_import.services.richtext_converter import XML_ID, XsltRichTextConverter, load_converter

STYLESHEET = """<?xml version="1.0"?>
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform"
    xmlns="http://docbook.org/ns/docbook">
  <xsl:output method="xml" indent="{indent}"/>
  <xsl:param name="imageContentTypes"/>
  <xsl:template match="/section">
    <section version="5.0-variant ezpublish-1.0" data-image-types="{{$imageContentTypes}}">
      <xsl:apply-templates/>
    </section>
  </xsl:template>
  <xsl:template match="paragraph">
    <para><xsl:value-of select="."/></para>
  </xsl:template>
</xsl:stylesheet>
"""

SCHEMA = """<?xml version="1.0"?>
<element name="section" xmlns="http://relaxng.org/ns/structure/1.0">
  <zeroOrMore>
    <element name="paragraph"><text/></element>
  </zeroOrMore>
</element>
"""


def _write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_converter_without_stylesheets_is_a_config_error():
    with pytest.raises(ImportConfigError) as exc_info:
        XsltRichTextConverter()

    assert exc_info.value.code == ImportErrorCode.CONVERTER_LOAD_FAIL
    assert "no XSLT stylesheet" in exc_info.value.message


def test_identity_stylesheet_keeps_document(identity_stylesheet):
    converter = XsltRichTextConverter(stylesheets=[identity_stylesheet])
    doc = parse_document(b"<section><paragraph>a</paragraph></section>")
    converter.convert(doc, True, True, "5")

    assert converter.errors == {}
    assert doc.root.tag == "section"


def test_stylesheet_transforms_and_receives_image_types(tmp_path):
    stylesheet = _write(tmp_path, "to_docbook.xsl", STYLESHEET.format(indent="no"))
    converter = XsltRichTextConverter(stylesheets=[stylesheet])
    converter.set_image_content_types({"photo": 42, "image": 27})

    doc = parse_document(b"<section><paragraph>Hello</paragraph></section>")
    converter.convert(doc, True, True, "5")

    assert converter.errors == {}
    assert doc.root.tag == "{http://docbook.org/ns/docbook}section"
    assert doc.root.get("data-image-types") == "27,42"
    assert doc.root[0].text == "Hello"
    assert doc.pretty_print is False


def test_indenting_stylesheet_turns_pretty_print_on(tmp_path):
    stylesheet = _write(tmp_path, "to_docbook.xsl", STYLESHEET.format(indent="yes"))
    converter = XsltRichTextConverter(stylesheets=[stylesheet])
    doc = parse_document(b"<section><paragraph>Hello</paragraph></section>")
    converter.convert(doc)
    assert doc.pretty_print is True


def test_duplicate_ids_are_renamed_with_warning(identity_stylesheet):
    converter = XsltRichTextConverter(stylesheets=[identity_stylesheet])
    doc = parse_document(b"<section><paragraph>1</paragraph><paragraph>2</paragraph><paragraph>3</paragraph></section>")
    for el, value in zip(doc.root, ["a", "a", "a_1"]):
        el.set(XML_ID, value)
    converter.convert(doc, True, False, "5")

    ids = [el.get(XML_ID) for el in doc.root]
    assert ids == ["a", "a_2", "a_1"]
    assert list(converter.errors) == [Severity.WARNING]
    assert "a --> a_2" in converter.errors[Severity.WARNING][0].message
    assert "contentobject_attribute.id=5" in converter.errors[Severity.WARNING][0].message


def test_invalid_id_values_are_rewritten_with_warning(identity_stylesheet):
    converter = XsltRichTextConverter(stylesheets=[identity_stylesheet])
    doc = parse_document(b"<section><paragraph>1</paragraph></section>")
    doc.root[0].set(XML_ID, "1st para")
    converter.convert(doc, False, True, "5")

    assert doc.root[0].get(XML_ID) == "id_1st_para"
    assert Severity.ERROR not in converter.errors
    assert "1st para --> id_1st_para" in converter.errors[Severity.WARNING][0].message


def test_id_with_trailing_newline_is_rewritten(identity_stylesheet):
    converter = XsltRichTextConverter(stylesheets=[identity_stylesheet])
    doc = parse_document(b"<section><paragraph>1</paragraph></section>")
    doc.root[0].set(XML_ID, "abc\n")
    converter.convert(doc, False, True, "5")

    assert doc.root[0].get(XML_ID) == "abc_"
    assert len(converter.errors[Severity.WARNING]) == 1


def test_id_checks_are_skipped_when_disabled(identity_stylesheet):
    converter = XsltRichTextConverter(stylesheets=[identity_stylesheet])
    doc = parse_document(b"<section><paragraph>1</paragraph><paragraph>2</paragraph></section>")
    for el in doc.root:
        el.set(XML_ID, "a")
    converter.convert(doc, False, False, "5")
    assert converter.errors == {}


def test_schema_violation_is_error_with_context(tmp_path, identity_stylesheet):
    schema = _write(tmp_path, "richtext.rng", SCHEMA)
    converter = XsltRichTextConverter(stylesheets=[identity_stylesheet], schema=schema)

    doc = parse_document(b"<section><paragraph>ok</paragraph><table/></section>")
    converter.convert(doc, True, True, "5")

    assert list(converter.errors) == [Severity.ERROR]
    diagnostic = converter.errors[Severity.ERROR][0]
    assert diagnostic.message.startswith("Validation errors when converting ezxmltext")
    assert len(diagnostic.context_errors) >= 1


def test_errors_are_reset_between_documents(tmp_path, identity_stylesheet):
    schema = _write(tmp_path, "richtext.rng", SCHEMA)
    converter = XsltRichTextConverter(stylesheets=[identity_stylesheet], schema=schema)

    converter.convert(parse_document(b"<section><table/></section>"))
    assert Severity.ERROR in converter.errors

    converter.convert(parse_document(b"<section><paragraph>ok</paragraph></section>"))
    assert converter.errors == {}


def test_load_converter_default_class(identity_stylesheet):
    converter = load_converter(
        "xmltext_import.services.richtext_converter:XsltRichTextConverter",
        stylesheets=[identity_stylesheet],
        schema=None,
    )
    assert isinstance(converter, XsltRichTextConverter)


def test_load_converter_refuses_default_class_without_stylesheets():
    with pytest.raises(ImportConfigError) as exc_info:
        load_converter(
            "xmltext_import.services.richtext_converter:XsltRichTextConverter",
            stylesheets=[],
            schema=None,
        )
    assert exc_info.value.code == ImportErrorCode.CONVERTER_LOAD_FAIL


@pytest.mark.parametrize(
    "dotted_path",
    [
        "no_colon_here",
        "xmltext_import.services.missing_module:Converter",
        "xmltext_import.services.richtext_converter:MissingConverter",
    ],
)
def test_load_converter_rejects_bad_paths(dotted_path):
    with pytest.raises(ImportConfigError) as exc_info:
        load_converter(dotted_path)
    assert exc_info.value.code == ImportErrorCode.CONVERTER_LOAD_FAIL


def test_load_converter_reports_missing_stylesheet(tmp_path):
    with pytest.raises(ImportConfigError):
        load_converter(
            "xmltext_import.services.richtext_converter:XsltRichTextConverter",
            stylesheets=[tmp_path / "missing.xsl"],
        )
