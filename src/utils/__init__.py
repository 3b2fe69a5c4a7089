"""공용 유틸리티."""

from .formatting import (
    format_elapsed,
    format_file_size,
    format_processing_time,
    generate_filename,
    is_valid_image_url,
)

__all__ = [
    "format_file_size",
    "format_processing_time",
    "format_elapsed",
    "generate_filename",
    "is_valid_image_url",
]
