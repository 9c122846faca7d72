#!/usr/bin/env python3
"""
MDWave - entry point

Analyzes a WAV capture of the Sega Genesis/Mega Drive audio test and
writes a copy that keeps only the strongest frequencies of every tone.

Usage:
    python main.py capture.wav

Options are taken from an AnalysisConfig; argument parsing belongs to
the front end calling process_file().
"""

import logging
import sys
from pathlib import Path


def main(argv=None) -> int:
    """Run the pipeline on one file and report the outcome."""
    argv = sys.argv[1:] if argv is None else argv

    # Check Python version
    if sys.version_info < (3, 11):
        print("Error: Python 3.11 or higher is required.")
        print(f"Current version: {sys.version}")
        return 1

    if len(argv) != 1:
        print(__doc__.strip())
        return 1

    from mdwave.core import AnalysisConfig, MDWaveError, process_file

    config = AnalysisConfig()
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    filepath = Path(argv[0])
    try:
        result = process_file(filepath, config)
    except (MDWaveError, OSError, MemoryError) as e:
        logging.getLogger("mdwave").error("%s", e)
        print("Aborting")
        return 1

    for output in result.outputs:
        print(f"Results stored in {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
