"""Tools for Common Index File Format (CIFF) files: framing, records, d-gaps, BM25 impact quantization."""

__version__ = "0.1.0"
