class MassingError(Exception):
    """Base class for errors raised by the massing pipeline."""


class DecodeError(MassingError):
    """The input bytes could not be decoded as a raster image."""


class InvalidParameterError(MassingError, ValueError):
    """An ingest parameter is outside its valid range."""


class InvalidGeometryError(MassingError, ValueError):
    """A mesh instance cannot be exported as triangles."""
