"""Error taxonomy for the encode -> scale -> composite -> write pipeline.

Every error carries a ``stage`` phrase so the command line can report which
part of the pipeline failed.
"""


class QRLogoError(Exception):
    """Base class for all pipeline failures."""

    stage = "running pipeline"

    def __init__(self, message: str, path: str = ""):
        self.message = message
        self.path = str(path) if path else ""
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message


class EncodingError(QRLogoError):
    """Payload cannot be represented at any version at the chosen ECC level."""

    stage = "generating QR code"


class ScalingError(QRLogoError):
    """Requested pixel size cannot hold every module."""

    stage = "generating QR code"


class UnsupportedFormatError(QRLogoError):
    """Logo extension is neither PNG nor SVG. Raised before any file I/O."""

    stage = "overlaying logo"


class AssetReadError(QRLogoError):
    """Logo file is missing or cannot be opened."""

    stage = "overlaying logo"


class AssetParseError(QRLogoError):
    """Logo decoder or SVG parser rejected the file content."""

    stage = "overlaying logo"


class VerificationError(QRLogoError):
    """No decoder could read the expected payload back from the raster."""

    stage = "verifying QR code"


class WriteError(QRLogoError):
    """Output image could not be encoded or written."""

    stage = "saving QR code"
