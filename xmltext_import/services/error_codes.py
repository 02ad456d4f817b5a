from __future__ import annotations


class ImportErrorCode:
    FILENAME_NOT_RECOGNIZED = "FILENAME_NOT_RECOGNIZED"
    DUMP_READ_FAIL = "DUMP_READ_FAIL"
    DUMP_PARSE_FAIL = "DUMP_PARSE_FAIL"
    CONVERSION_INVALID = "CONVERSION_INVALID"
    ATTRIBUTE_NOT_FOUND = "ATTRIBUTE_NOT_FOUND"
    EXPORT_DIR_UNREADABLE = "EXPORT_DIR_UNREADABLE"
    CONTENT_TYPE_NOT_FOUND = "CONTENT_TYPE_NOT_FOUND"
    CONVERTER_LOAD_FAIL = "CONVERTER_LOAD_FAIL"


class ImportConfigError(RuntimeError):
    """Raised before any dump is processed when the run cannot be set up."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class DumpLoadError(RuntimeError):
    code = ImportErrorCode.DUMP_READ_FAIL

    def __init__(self, path: str, message: str):
        super().__init__(f"{message}: {path}")
        self.path = path
        self.message = message


class DumpReadError(DumpLoadError):
    code = ImportErrorCode.DUMP_READ_FAIL


class DumpParseError(DumpLoadError):
    code = ImportErrorCode.DUMP_PARSE_FAIL
