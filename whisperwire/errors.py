"""Error taxonomy for transcription sessions."""


class TranscriptionError(Exception):
    """Base class for all whisperwire failures."""


class EmptyAudioError(TranscriptionError):
    """Decoding produced no samples."""


class UnsupportedFormatError(TranscriptionError):
    """Audio container has the wrong sample rate or channel count."""


class SessionOpenError(TranscriptionError):
    """The recognizer could not create a processing context."""


class ParameterError(TranscriptionError):
    """A recognizer parameter was rejected."""


class ProcessingError(TranscriptionError):
    """The recognizer failed while processing samples."""


class FormattingError(TranscriptionError):
    """Rendering the drained segments failed."""
