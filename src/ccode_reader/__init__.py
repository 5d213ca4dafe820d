"""
ccode-reader: Japanese book barcode reader.

Extracts the ISBN and C-code (Cコード) from scanned or typed JAN barcode text,
decodes the C-code into target readership, format and content category, and
looks the ISBN up in bibliographic services.
"""

__version__ = "0.1.0"
