"""
Formatting helpers for log output and output file names.
"""

from pathlib import Path


def format_frequency(hz: float) -> str:
    """
    Format a frequency.

    Args:
        hz: Frequency in Hz

    Returns:
        Formatted string (e.g. "1.5 kHz" or "250 Hz")
    """
    if hz >= 1000:
        return f"{hz/1000:.1f} kHz"
    else:
        return f"{hz:.0f} Hz"


def format_db(db: float, precision: int = 1) -> str:
    """
    Format a level in dBFS.

    Values at or below the no-amplitude sentinel print as -inf.
    """
    from ..core.peaks import NO_AMPLITUDE

    if db <= NO_AMPLITUDE or db == float('-inf'):
        return "-∞ dBFS"
    return f"{db:.{precision}f} dBFS"


def format_sample_rate(sr: int) -> str:
    """
    Format a sample rate.

    Returns:
        Formatted string (e.g. "44.1 kHz" or "48 kHz")
    """
    if sr % 1000 == 0:
        return f"{sr // 1000} kHz"
    else:
        return f"{sr / 1000:.1f} kHz"


def format_duration(seconds: float) -> str:
    """
    Format a duration.

    Returns:
        Formatted string (e.g. "3:01.18" or "0:01.50")
    """
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}:{secs:05.2f}"


def output_file_name(input_path: str | Path, invert: bool, used_floor: bool, max_freq: int) -> str:
    """
    Name of the processed file.

    "{Used|Discarded}_{F-<max_freq, 4 digits>|Floor}_<basename>"
    """
    prefix = "Discarded" if invert else "Used"
    cutoff = "Floor" if used_floor else f"F-{max_freq:04d}"
    return f"{prefix}_{cutoff}_{Path(input_path).name}"


def source_chunk_name(block_index: int, input_path: str | Path) -> str:
    """Name of a block dump taken before reconstruction."""
    return f"{block_index:03d}_Source_chunk_{Path(input_path).name}"


def processed_chunk_name(block_index: int, output_name: str) -> str:
    """Name of a block dump taken after reconstruction."""
    return f"{block_index:03d}_{output_name}"
