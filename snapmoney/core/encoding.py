"""
Encoding Adapter: 이미지 바이트 → 전송용 base64.

- data URL 접두어(`data:image/png;base64,`)는 제거하고 payload만 남김
- 읽기 실패 → ReadError (호출자는 일반 감지 실패 메시지 표시)
- 업로드 경계 검증은 설정으로만 활성화 (기본: 검증 없음)
"""

import base64
import binascii
from pathlib import Path

from snapmoney.domain.constants import DEFAULT_IMAGE_MIME, MIME_TYPES
from snapmoney.domain.errors import ErrorCodes, ReadError, ValidationError
from snapmoney.domain.schemas import EncodedImage

DATA_URL_PREFIX = "data:"


def normalize_mime_type(file_type: str | None) -> str:
    """
    파일 타입을 MIME 타입으로 정규화.

    - 빈 값 → image/jpeg
    - 이미 MIME 타입이면 소문자로 반환
    - 확장자(".jpg", "png") → MIME, 알 수 없으면 octet-stream
    """
    if not file_type:
        return DEFAULT_IMAGE_MIME

    file_type_lower = file_type.strip().lower()
    if "/" in file_type_lower:
        return file_type_lower

    if not file_type_lower.startswith("."):
        file_type_lower = f".{file_type_lower}"
    return MIME_TYPES.get(file_type_lower, "application/octet-stream")


def strip_data_url(value: str) -> tuple[str, str | None]:
    """
    data URL이면 (payload, mime_type), 아니면 (value, None).

    "data:image/png;base64,iVBOR..." → ("iVBOR...", "image/png")
    """
    if not value.startswith(DATA_URL_PREFIX):
        return value, None

    header, sep, payload = value.partition(",")
    if not sep:
        return "", None
    mime_type = header[len(DATA_URL_PREFIX):].split(";", 1)[0] or None
    return payload, mime_type


def encode_image(file_bytes: bytes, mime_type: str | None) -> EncodedImage:
    """
    바이트 → EncodedImage.

    Raises:
        ReadError: 바이트가 비어 있음
    """
    if not file_bytes:
        raise ReadError(ErrorCodes.READ_FAILED, "Failed to read file as base64.")

    data = base64.b64encode(file_bytes).decode("ascii")
    return EncodedImage(data=data, mime_type=normalize_mime_type(mime_type))


def encode_data_url(data_url: str, mime_type: str | None = None) -> EncodedImage:
    """
    data URL 문자열 → EncodedImage (접두어 제거).

    Raises:
        ReadError: payload가 비었거나 base64가 아님
    """
    payload, url_mime = strip_data_url(data_url.strip())
    if not payload:
        raise ReadError(ErrorCodes.READ_FAILED, "Failed to read file as base64.")

    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ReadError(
            ErrorCodes.READ_FAILED,
            "Failed to read file as base64.",
        ) from e

    return EncodedImage(
        data=payload,
        mime_type=normalize_mime_type(mime_type or url_mime),
    )


def encode_file(file_path: Path) -> EncodedImage:
    """
    파일 경로 → EncodedImage.

    Raises:
        ReadError: 파일을 읽을 수 없음
    """
    try:
        file_bytes = file_path.read_bytes()
    except OSError as e:
        raise ReadError(
            ErrorCodes.READ_FAILED,
            f"Failed to read image file: {e}",
            path=str(file_path),
        ) from e

    return encode_image(file_bytes, file_path.suffix)


def check_upload(
    file_bytes: bytes,
    mime_type: str | None,
    max_size_mb: float | None = None,
    require_image_mime: bool = False,
) -> None:
    """
    업로드 경계 검증 (선택).

    기본값(None, False)이면 아무것도 검사하지 않음.

    Raises:
        ValidationError: 크기 초과 또는 이미지가 아닌 MIME
    """
    if max_size_mb is not None and len(file_bytes) > max_size_mb * 1024 * 1024:
        raise ValidationError(
            ErrorCodes.IMAGE_TOO_LARGE,
            "image exceeds size limit",
            size=len(file_bytes),
            max_size_mb=max_size_mb,
        )

    if require_image_mime and not normalize_mime_type(mime_type).startswith("image/"):
        raise ValidationError(
            ErrorCodes.UNSUPPORTED_MIME,
            "file is not an image",
            mime_type=mime_type,
        )
