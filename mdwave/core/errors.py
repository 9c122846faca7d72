"""
Error taxonomy for the analysis pipeline.

Fatal conditions raise and abort the run. Truncated captures are not fatal:
the segmenter emits TruncatedDataError through the warnings machinery and
the blocks already produced are still normalized and reconstructed.

I/O failures surface as the built-in OSError, allocation failures as
the built-in MemoryError.
"""


class MDWaveError(Exception):
    """Base class for all analysis errors."""


class FormatError(MDWaveError, ValueError):
    """
    The WAV header is malformed or describes an unsupported format.
    
    Only 16-bit stereo PCM is accepted.
    """


class TruncatedDataError(MDWaveError, UserWarning):
    """
    The capture ends before the full test sequence.
    
    Emitted with warnings.warn, never raised by the pipeline.
    
    Attributes:
        blocks_produced: Number of complete blocks read before the end
        blocks_expected: Number of blocks in the full sequence
    """
    
    def __init__(self, message: str, blocks_produced: int = 0, blocks_expected: int = 0):
        super().__init__(message)
        self.blocks_produced = blocks_produced
        self.blocks_expected = blocks_expected
