"""Fixed-width line parsing."""

from layoutguard.parsing.line_parser import parse_line, parse_lines, read_discriminator
from layoutguard.parsing.values import convert_value, extract_text, parse_fixed_date

__all__ = [
    "convert_value",
    "extract_text",
    "parse_fixed_date",
    "parse_line",
    "parse_lines",
    "read_discriminator",
]
