class EditorError(Exception):
    """
    Base class for every failure scoped to a single edit session.
    The message is meant to be shown to the user as-is.
    """

    default_message = "Image editing failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EditorError):
    """
    Rejected input: no crop area selected, region out of bounds, missing field.
    """

    default_message = "Invalid edit request"


class DecodeError(EditorError):
    """
    The source image could not be fetched or decoded.
    """

    default_message = "Failed to load image for editing"


class EncodingError(EditorError):
    """
    A raster could not be serialized into an image blob.
    """

    default_message = "Failed to save image"
