"""Exception types shared across xlsxtail."""


class XlsxTailError(Exception):
    """Base class for all errors raised by xlsxtail."""


class ConfigError(XlsxTailError):
    """Invalid or conflicting configuration detected before subscribing."""


class DecodeError(XlsxTailError):
    """A message payload does not have the fixed record batch layout."""


class SinkWriteError(XlsxTailError):
    """A row, header or chart could not be written to the tabular sink."""


class SinkSaveError(XlsxTailError):
    """The workbook could not be persisted."""


__all__ = [
    "XlsxTailError",
    "ConfigError",
    "DecodeError",
    "SinkWriteError",
    "SinkSaveError",
]
