from pathlib import Path

import pytest
from lxml import etree
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from xmltext_import.db.base import Base
from xmltext_import.db.models import ContentClass, ContentObjectAttribute
from xmltext_import.services.conversion_validator import Diagnostic, Severity

DOCBOOK_NS = "http://docbook.org/ns/docbook"

LEGACY_XML = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    '<section xmlns:image="http://ez.no/namespaces/ezpublish3/image/">\n'
    "  <paragraph>Hello <strong>world</strong></paragraph>\n"
    "</section>\n"
)


class ScriptedConverter:
    """Turns <paragraph> into docbook <para> and reports scripted diagnostics per file name."""

    def __init__(self, errors_by_file=None, **kwargs):
        self.errors_by_file = errors_by_file or {}
        self.errors = {}
        self.calls = []
        self.image_content_type_ids = None

    def set_image_content_types(self, content_type_ids):
        self.image_content_type_ids = dict(content_type_ids)

    def convert(self, document, check_duplicate_ids=False, check_id_values=False, content_field_id=None):
        name = Path(document.source).name
        self.calls.append((name, check_duplicate_ids, check_id_values, content_field_id))

        root = etree.Element(f"{{{DOCBOOK_NS}}}section", nsmap={None: DOCBOOK_NS})
        root.set("version", "5.0-variant ezpublish-1.0")
        for paragraph in document.root.iter("paragraph"):
            etree.SubElement(root, f"{{{DOCBOOK_NS}}}para").text = "".join(paragraph.itertext())
        document.replace_root(root)
        # XSLT processors tend to switch indentation on.
        document.pretty_print = True

        self.errors = {severity: list(items) for severity, items in self.errors_by_file.get(name, {}).items()}


def error(message, *context):
    return Diagnostic(severity=Severity.ERROR, message=message, context_errors=tuple(context))


def warning(message, *context):
    return Diagnostic(severity=Severity.WARNING, message=message, context_errors=tuple(context))


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with factory() as session:
        yield session
    engine.dispose()


@pytest.fixture
def seed_attribute(db):
    def _seed(object_id=12, attribute_id=5, version=1, language_code="eng-GB", data_type="ezxmltext", data_text="<old/>"):
        db.add(
            ContentObjectAttribute(
                id=attribute_id,
                version=version,
                contentobject_id=object_id,
                language_code=language_code,
                data_type_string=data_type,
                data_text=data_text,
            )
        )
        db.commit()

    return _seed


@pytest.fixture
def seed_content_class(db):
    def _seed(class_id, identifier):
        db.add(ContentClass(id=class_id, version=0, identifier=identifier))
        db.commit()

    return _seed


@pytest.fixture
def stored_text(db):
    def _read(object_id=12, attribute_id=5, version=1, language_code="eng-GB"):
        return db.execute(
            select(ContentObjectAttribute.data_text).where(
                ContentObjectAttribute.contentobject_id == object_id,
                ContentObjectAttribute.id == attribute_id,
                ContentObjectAttribute.version == version,
                ContentObjectAttribute.language_code == language_code,
            )
        ).scalar_one()

    return _read


@pytest.fixture
def export_dir(tmp_path):
    path = tmp_path / "dumps"
    path.mkdir()
    return path


IDENTITY_XSL = """<?xml version="1.0"?>
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:template match="@*|node()">
    <xsl:copy><xsl:apply-templates select="@*|node()"/></xsl:copy>
  </xsl:template>
</xsl:stylesheet>
"""


def outcome_for(report, filename):
    for row in report.results:
        if row.filename == filename:
            return row.status
    return None


@pytest.fixture
def identity_stylesheet(tmp_path):
    path = tmp_path / "identity.xsl"
    path.write_text(IDENTITY_XSL, encoding="utf-8")
    return path
