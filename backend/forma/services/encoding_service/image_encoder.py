"""Turn user-supplied room photos into transport-safe base64 payloads."""

import io
import base64
from pathlib import Path
from typing import BinaryIO, Optional, Union

from PIL import Image, UnidentifiedImageError

from forma.config.settings import Settings, get_settings
from forma.handlers.error_handler import InputValidationError
from forma.models.design import ImageItem, RoomImage
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)

ImageSource = Union[bytes, bytearray, str, Path, BinaryIO]

# Types Gemini accepts as inline image input
SUPPORTED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
)
# Subset Pillow can open without plugins, these are verified on read
VERIFIABLE_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")
MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}
GENERIC_MIME_TYPES = ("", "application/octet-stream", "binary/octet-stream")


class ImageEncoder:
    """Read, validate and base64-encode room photos.

    Absence of an image is a valid input: it reads and encodes to None,
    which request builders treat as "omit the image part".
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def read(
        self,
        source: Optional[ImageSource],
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> Optional[RoomImage]:
        """
        Load raw bytes from bytes, a path or a binary file object.

        Raises OSError when the underlying read fails and InputValidationError
        when the payload is empty, too large or not a supported image.
        """
        if source is None:
            return None

        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        elif isinstance(source, (str, Path)):
            path = Path(source)
            filename = filename or path.name
            data = path.read_bytes()
        else:
            data = source.read()
            filename = filename or getattr(source, "name", None)

        if not data:
            raise InputValidationError("The uploaded room image is empty.", field="roomImage")
        if len(data) > self.settings.max_upload_bytes:
            raise InputValidationError(
                f"Room image is too large. Maximum size is {self.settings.max_upload_size_mb}MB.",
                field="roomImage",
            )

        resolved = self._resolve_mime_type(data, mime_type)
        logger.info(f"Room image read: {filename or 'upload'} ({len(data)} bytes, {resolved})")
        return RoomImage(data=data, mime_type=resolved, filename=filename)

    def encode(self, image: Optional[RoomImage]) -> Optional[ImageItem]:
        """Base64-encode a room image; None stays None."""
        if image is None:
            return None
        return ImageItem(
            mime_type=image.mime_type,
            data_b64=base64.b64encode(image.data).decode("utf-8"),
        )

    def _resolve_mime_type(self, data: bytes, declared: Optional[str]) -> str:
        """Pick the media type from the declaration, sniffing the bytes when needed."""
        declared = (declared or "").split(";")[0].strip().lower()
        declared = MIME_ALIASES.get(declared, declared)

        if declared in GENERIC_MIME_TYPES:
            detected = self._detect_mime_type(data)
            if detected is None:
                raise InputValidationError(
                    "Could not recognise the uploaded file as an image.", field="roomImage"
                )
            declared = detected

        if declared not in SUPPORTED_MIME_TYPES:
            raise InputValidationError(
                f"Unsupported image type '{declared}'. Supported types: {', '.join(SUPPORTED_MIME_TYPES)}",
                field="roomImage",
            )

        if declared in VERIFIABLE_MIME_TYPES:
            self._verify(data)
        return declared

    @staticmethod
    def _detect_mime_type(data: bytes) -> Optional[str]:
        """Ask Pillow which format the bytes are in."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                return Image.MIME.get(img.format or "")
        except (UnidentifiedImageError, OSError):
            return None

    @staticmethod
    def _verify(data: bytes) -> None:
        """Reject truncated or corrupt images before they reach the model."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise InputValidationError(
                f"The uploaded room image could not be decoded: {exc}", field="roomImage"
            ) from exc
