"""Domain errors raised by the ingest services and mapped to HTTP by controllers."""


class IngestError(Exception):
    """Base class for errors surfaced to HTTP clients."""


class MalformedRequest(IngestError):
    """The upload body is not well-formed multipart data."""


class PayloadTooLarge(IngestError):
    """A file field exceeded the configured size cap."""


class DirectoryError(IngestError):
    """The destination directory could not be created or used."""
