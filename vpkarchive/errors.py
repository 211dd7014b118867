class VPKError(Exception):
    """Base class for vpkarchive errors."""


# Format errors: always fatal, no partial result
class FormatError(VPKError):
    pass


class InvalidSignature(FormatError):
    pass


class UnsupportedVersion(FormatError):
    pass


class CorruptEntry(FormatError):
    pass


class TruncatedData(FormatError):
    pass


# Operations
class UnsupportedOperationError(VPKError):
    pass


class UnsupportedWriteVersion(UnsupportedVersion, UnsupportedOperationError):
    pass


class SegmentNameError(VPKError):
    pass


class ArchiveNotLoaded(VPKError):
    pass


class LoadFailed(VPKError):
    pass


class IntegrityError(VPKError):
    def __init__(self, path: str, expected: int, actual: int):
        super().__init__(f"CRC mismatch for {path}: expected {expected:08x}, got {actual:08x}")
        self.path = path
        self.expected = expected
        self.actual = actual


class ExtractionError(VPKError):
    """Raised after a batch extraction when one or more destinations could not be written."""

    def __init__(self, failures):
        self.failures = list(failures)
        paths = ", ".join(dst for dst, _exc in self.failures)
        super().__init__(f"Failed to write {len(self.failures)} file(s): {paths}")

    @property
    def paths(self):
        return [dst for dst, _exc in self.failures]
