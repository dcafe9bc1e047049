"""
Upload validators.

Profile pictures are checked on their raw bytes, never on the client's
Content-Type header.
"""

from dealership.core.exceptions import ValidationError

# ── Image upload rules ────────────────────────────────────────────────────────

ALLOWED_IMAGE_MIME_TYPES: frozenset[str] = frozenset({
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
})

# File-magic signatures → canonical MIME type
_MAGIC: list[tuple[bytes, str]] = [
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"RIFF", "image/webp"),                     # needs secondary check
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
]

IMAGE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

MAX_IMAGE_SIZE_BYTES: int = 10 * 1024 * 1024    # 10 MB hard cap


def validate_image_magic_bytes(data: bytes) -> str:
    """
    Confirm the bytes start with a supported image signature.
    Returns the detected MIME type.
    """
    for magic, mime in _MAGIC:
        if data[: len(magic)] == magic:
            # WebP has an extra four-byte 'WEBP' marker at offset 8
            if mime == "image/webp" and data[8:12] != b"WEBP":
                continue
            return mime

    raise ValidationError(
        "Unsupported file format. Only JPEG, PNG, WebP, and GIF images are accepted.",
        code="UNSUPPORTED_IMAGE",
    )


def validate_image_size(data: bytes) -> None:
    """Reject empty files and files over the hard size cap."""
    if not data:
        raise ValidationError("No file uploaded.", code="EMPTY_FILE")
    if len(data) > MAX_IMAGE_SIZE_BYTES:
        mb = MAX_IMAGE_SIZE_BYTES // (1024 * 1024)
        raise ValidationError(
            f"Image too large. Maximum allowed size is {mb} MB.",
            code="IMAGE_TOO_LARGE",
        )


def validate_image(data: bytes) -> tuple[str, str]:
    """Run every image check. Returns (mime type, file extension)."""
    validate_image_size(data)
    mime = validate_image_magic_bytes(data)
    return mime, IMAGE_EXTENSIONS[mime]
