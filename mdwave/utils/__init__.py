"""
Utility module for MDWave.

Formatting of log output and composition of output file names.
"""

from .formatting import (
    format_frequency,
    format_db,
    format_sample_rate,
    format_duration,
    output_file_name,
    source_chunk_name,
    processed_chunk_name,
)

__all__ = [
    "format_frequency",
    "format_db",
    "format_sample_rate",
    "format_duration",
    "output_file_name",
    "source_chunk_name",
    "processed_chunk_name",
]
