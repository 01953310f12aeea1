"""
Converter Session: 모드 상태 머신 + 변환 결과 보관.

규칙:
- 모드는 태그된 상태 (ManualState | PhotoState), 다른 모드 필드가 남을 수 없음
- 모드 전환/이미지 교체/초기화 → 모든 일시 결과/에러 폐기
- 감지 요청마다 단조 증가 request_id 발급, 완료 시 일치할 때만 결과 적용
- 환율 변경 → 표시 중인 결과를 저장된 original에서 재계산
- 도메인 에러는 여기서 잡혀 사용자 메시지로 변환 (세션을 깨뜨리지 않음)
"""

import base64
import itertools
import logging
import uuid
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from snapmoney.app.providers.base import AmountExtractor
from snapmoney.core.conversion import (
    convert,
    convert_all,
    ensure_finite,
    parse_amount,
    parse_rate_as_provided,
    recompute,
    resolve_rate,
)
from snapmoney.core.encoding import (
    check_upload,
    encode_data_url,
    encode_image,
    normalize_mime_type,
)
from snapmoney.core.formatting import format_krw, format_number, format_thb
from snapmoney.domain.constants import (
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_LOCALE,
    DEFAULT_MAX_SESSIONS,
    MANUAL_FRACTION_DIGITS,
    MSG_CREDENTIAL,
    MSG_DETECTION_FAILED,
    MSG_EMPTY_AMOUNT,
    MSG_IMAGE_TOO_LARGE,
    MSG_INVALID_AMOUNT,
    MSG_INVALID_CONFIG,
    MSG_NO_AMOUNTS,
    MSG_NO_IMAGE,
    MSG_OUT_OF_RANGE,
    MSG_PROVIDER_NOT_INSTALLED,
    MSG_UNSUPPORTED_MIME,
    PHOTO_FRACTION_DIGITS,
    SOURCE_FRACTION_DIGITS,
)
from snapmoney.domain.errors import (
    ConfigurationError,
    ErrorCodes,
    ReadError,
    SnapMoneyError,
    ValidationError,
)
from snapmoney.domain.schemas import ConversionResult, DetectionOutcome, Mode, PhotoPhase

logger = logging.getLogger(__name__)

ExtractorFactory = Callable[[], AmountExtractor]

# 에러 코드 → 사용자 메시지
USER_MESSAGES = {
    ErrorCodes.EMPTY_AMOUNT: MSG_EMPTY_AMOUNT,
    ErrorCodes.INVALID_AMOUNT: MSG_INVALID_AMOUNT,
    ErrorCodes.OUT_OF_RANGE: MSG_OUT_OF_RANGE,
    ErrorCodes.NO_IMAGE: MSG_NO_IMAGE,
    ErrorCodes.IMAGE_TOO_LARGE: MSG_IMAGE_TOO_LARGE,
    ErrorCodes.UNSUPPORTED_MIME: MSG_UNSUPPORTED_MIME,
    ErrorCodes.MISSING_CREDENTIAL: MSG_CREDENTIAL,
    ErrorCodes.INVALID_CREDENTIAL: MSG_CREDENTIAL,
    ErrorCodes.INVALID_RESPONSE_SHAPE: MSG_INVALID_CONFIG,
    ErrorCodes.GEMINI_NOT_INSTALLED: MSG_PROVIDER_NOT_INSTALLED,
}


def user_message(error: SnapMoneyError) -> str:
    """도메인 에러 → 사용자 메시지."""
    if error.code in USER_MESSAGES:
        return USER_MESSAGES[error.code]
    if isinstance(error, ReadError):
        return f"{MSG_DETECTION_FAILED}."
    if isinstance(error, ConfigurationError):
        return MSG_CREDENTIAL
    return error.message or f"{MSG_DETECTION_FAILED}."


class ModeMismatchError(ValidationError):
    """현재 모드에서 허용되지 않는 액션."""

    def __init__(self, expected: Mode, actual: Mode) -> None:
        super().__init__(
            ErrorCodes.INVALID_MODE,
            "action not allowed in current mode",
            expected=expected.value,
            actual=actual.value,
        )


# =============================================================================
# Mode States
# =============================================================================


@dataclass
class ManualState:
    """수동 입력 모드 상태."""
    amount_input: str = ""
    result: ConversionResult | None = None
    error: str | None = None

    @property
    def mode(self) -> Mode:
        return Mode.MANUAL


@dataclass
class PhotoState:
    """
    사진 모드 상태.

    results가 비어 있고 empty=True면 EmptyResult (에러 아님).
    """
    image_bytes: bytes | None = None
    mime_type: str | None = None
    filename: str | None = None
    results: list[ConversionResult] = field(default_factory=list)
    empty: bool = False
    error: str | None = None
    detecting: bool = False

    @property
    def mode(self) -> Mode:
        return Mode.PHOTO

    @property
    def has_image(self) -> bool:
        return self.image_bytes is not None

    @property
    def phase(self) -> PhotoPhase:
        if self.detecting:
            return PhotoPhase.DETECTING
        if self.error is not None:
            return PhotoPhase.ERROR_SHOWN
        if self.results or self.empty:
            return PhotoPhase.RESULTS_SHOWN
        if self.has_image:
            return PhotoPhase.IMAGE_SELECTED
        return PhotoPhase.NO_IMAGE


ModeState = ManualState | PhotoState


def _new_state(mode: Mode) -> ModeState:
    return ManualState() if mode == Mode.MANUAL else PhotoState()


# =============================================================================
# Session
# =============================================================================


class ConverterSession:
    """
    세션 하나의 변환 상태.

    Usage:
        session = ConverterSession()
        session.switch_mode(Mode.PHOTO)
        session.select_image(image_bytes, "image/jpeg", "menu.jpg")
        await session.detect(lambda: GeminiAmountExtractor(config))
    """

    def __init__(
        self,
        session_id: str | None = None,
        mode: Mode = Mode.MANUAL,
        default_rate: float = DEFAULT_EXCHANGE_RATE,
        locale: str = DEFAULT_LOCALE,
        upload_limits: dict[str, Any] | None = None,
    ):
        """
        Args:
            session_id: 세션 ID (None이면 생성)
            mode: 초기 모드
            default_rate: 기본 환율 (수동 모드 fallback)
            locale: 표시 로캘
            upload_limits: 업로드 경계 검증 (max_size_mb, require_image_mime)
        """
        self.session_id = session_id or uuid.uuid4().hex
        self.default_rate = default_rate
        self.locale = locale
        self.upload_limits = upload_limits or {}
        self.rate_input = str(default_rate)
        self.state: ModeState = _new_state(mode)

        self._request_ids = itertools.count(1)
        self._pending_request_id: int | None = None

    # -------------------------------------------------------------------------
    # Rate
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def manual_rate(self) -> float:
        """수동 모드 계산용 (비숫자/0 이하 → 기본값)."""
        return resolve_rate(self.rate_input, self.default_rate)

    @property
    def photo_rate(self) -> float:
        """사진 모드 계산용 (입력값 그대로)."""
        return parse_rate_as_provided(self.rate_input)

    def set_rate(self, rate_input: str) -> None:
        """
        환율 입력 변경.

        표시 중인 결과를 저장된 original에서 즉시 재계산.
        """
        self.rate_input = rate_input.strip() if rate_input else ""
        state = self.state

        try:
            if isinstance(state, ManualState) and state.result is not None:
                state.result = ensure_finite(recompute([state.result], self.manual_rate))[0]
            elif isinstance(state, PhotoState) and state.results:
                state.results = ensure_finite(recompute(state.results, self.photo_rate))
        except ValidationError as e:
            # 범위를 넘는 결과는 보관하지 않음
            if isinstance(state, ManualState):
                state.result = None
            else:
                state.results = []
            state.error = user_message(e)

    # -------------------------------------------------------------------------
    # Mode
    # -------------------------------------------------------------------------

    def switch_mode(self, mode: Mode) -> None:
        """모드 전환. 진행 중 감지와 모든 일시 상태를 폐기."""
        if self._pending_request_id is not None:
            logger.info(
                f"Session {self.session_id}: mode switch invalidates "
                f"request {self._pending_request_id}"
            )
        self._invalidate_pending()
        self.state = _new_state(mode)

    def discard(self) -> None:
        """저장소에서 제거될 때. 진행 중 감지를 무효화하고 이미지를 놓는다."""
        self._invalidate_pending()
        self.state = _new_state(self.mode)

    def _require(self, mode: Mode) -> Any:
        if self.state.mode != mode:
            raise ModeMismatchError(expected=mode, actual=self.state.mode)
        return self.state

    def _invalidate_pending(self) -> None:
        self._pending_request_id = None

    # -------------------------------------------------------------------------
    # Manual
    # -------------------------------------------------------------------------

    def submit_manual(self, amount_input: str) -> ConversionResult | None:
        """
        수동 변환.

        Returns:
            ConversionResult, 입력이 잘못되면 None (에러 메시지 설정)

        Raises:
            ModeMismatchError: 수동 모드가 아님
        """
        state: ManualState = self._require(Mode.MANUAL)
        state.amount_input = amount_input
        state.result = None
        state.error = None

        try:
            amount = parse_amount(amount_input)
            result = ConversionResult(amount, convert(amount, self.manual_rate))
            ensure_finite([result])
        except ValidationError as e:
            state.error = user_message(e)
            return None

        state.result = result
        return state.result

    # -------------------------------------------------------------------------
    # Photo
    # -------------------------------------------------------------------------

    def select_image(
        self,
        image_bytes: bytes,
        mime_type: str | None,
        filename: str | None = None,
    ) -> bool:
        """
        이미지 선택. 어느 하위 상태에서든 이전 결과/에러를 지움.

        Returns:
            선택 성공 여부 (경계 검증 실패 시 False, 에러 메시지 설정)

        Raises:
            ModeMismatchError: 사진 모드가 아님
        """
        self._require(Mode.PHOTO)
        self._invalidate_pending()
        state = PhotoState()
        self.state = state

        try:
            check_upload(
                image_bytes,
                mime_type,
                max_size_mb=self.upload_limits.get("max_size_mb"),
                require_image_mime=bool(self.upload_limits.get("require_image_mime", False)),
            )
        except ValidationError as e:
            state.error = user_message(e)
            return False

        state.image_bytes = image_bytes
        state.mime_type = normalize_mime_type(mime_type)
        state.filename = filename
        return True

    def select_data_url(self, data_url: str, filename: str | None = None) -> bool:
        """
        data URL로 이미지 선택 (브라우저 FileReader.readAsDataURL 결과).

        접두어의 MIME을 사용하고, payload가 base64가 아니면 에러 메시지 설정.

        Raises:
            ModeMismatchError: 사진 모드가 아님
        """
        self._require(Mode.PHOTO)
        try:
            encoded = encode_data_url(data_url)
        except ReadError as e:
            self._invalidate_pending()
            self.state = PhotoState(error=user_message(e))
            return False

        return self.select_image(base64.b64decode(encoded.data), encoded.mime_type, filename)

    def clear_image(self) -> None:
        """명시적 초기화 → no-image."""
        self._require(Mode.PHOTO)
        self._invalidate_pending()
        self.state = PhotoState()

    async def detect(self, extractor_factory: ExtractorFactory) -> DetectionOutcome | None:
        """
        감지 + 변환.

        Args:
            extractor_factory: 호출 시점에 자격 증명을 읽어 Provider 생성

        Returns:
            적용된 DetectionOutcome, 실패/폐기 시 None
        """
        state: PhotoState = self._require(Mode.PHOTO)

        if not state.has_image:
            state.error = user_message(
                ValidationError(ErrorCodes.NO_IMAGE, "no image selected")
            )
            return None
        if state.detecting:
            # 진행 중에는 트리거 비활성
            return None

        request_id = next(self._request_ids)
        self._pending_request_id = request_id
        state.detecting = True
        state.error = None
        state.results = []
        state.empty = False

        try:
            encoded = encode_image(state.image_bytes or b"", state.mime_type)
            extractor = extractor_factory()
            outcome = await extractor.extract_amounts(encoded)

        except SnapMoneyError as e:
            if self._is_current(request_id, state):
                logger.warning(f"Session {self.session_id}: detection failed [{e.code}]")
                self._pending_request_id = None
                state.error = user_message(e)
            else:
                logger.info(f"Session {self.session_id}: discarded stale error for request {request_id}")
            return None

        finally:
            # 성공/실패와 무관하게 항상 해제
            state.detecting = False

        if not self._is_current(request_id, state):
            logger.info(f"Session {self.session_id}: discarded stale result for request {request_id}")
            return None

        self._pending_request_id = None
        outcome.request_id = request_id

        if outcome.is_empty:
            state.empty = True
            return outcome

        try:
            state.results = ensure_finite(convert_all(outcome.amounts, self.photo_rate))
        except ValidationError as e:
            state.error = user_message(e)
        return outcome

    def _is_current(self, request_id: int, state: PhotoState) -> bool:
        return self._pending_request_id == request_id and self.state is state

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """표시용 상태."""
        data: dict[str, Any] = {
            "session_id": self.session_id,
            "mode": self.mode.value,
            "rate": {
                "input": self.rate_input,
                "manual": self.manual_rate,
                "photo": self.photo_rate,
            },
            "manual": None,
            "photo": None,
        }

        state = self.state
        if isinstance(state, ManualState):
            data["manual"] = self._manual_snapshot(state)
        else:
            data["photo"] = self._photo_snapshot(state)
        return data

    def _manual_snapshot(self, state: ManualState) -> dict[str, Any]:
        result = None
        if state.result is not None:
            result = {
                **state.result.to_dict(),
                "original_display": format_number(
                    state.result.original, SOURCE_FRACTION_DIGITS, self.locale
                ),
                "converted_display": format_krw(
                    state.result.converted, MANUAL_FRACTION_DIGITS, self.locale
                ),
            }
        return {
            "amount_input": state.amount_input,
            "result": result,
            "error": state.error,
        }

    def _photo_snapshot(self, state: PhotoState) -> dict[str, Any]:
        return {
            "phase": state.phase.value,
            "has_image": state.has_image,
            "filename": state.filename,
            "mime_type": state.mime_type,
            "detecting": state.detecting,
            "can_detect": state.has_image and not state.detecting,
            "results": [
                {
                    **r.to_dict(),
                    "original_display": format_thb(r.original),
                    "converted_display": format_krw(
                        r.converted, PHOTO_FRACTION_DIGITS, self.locale
                    ),
                }
                for r in state.results
            ],
            "empty": state.empty,
            "notice": MSG_NO_AMOUNTS if state.empty else None,
            "error": state.error,
        }


# =============================================================================
# Session Store
# =============================================================================


class SessionStore:
    """
    세션 ID → ConverterSession (인메모리, 영속화 없음).

    sessions.max_sessions를 넘으면 가장 오래 조회되지 않은 세션부터 제거(LRU).
    세션마다 업로드 이미지를 보관하므로 상한이 필요하다.
    """

    def __init__(self, config: dict | None = None):
        self.config = config or {}
        sessions_config = self.config.get("sessions", {}) or {}
        self.max_sessions = max(1, int(sessions_config.get("max_sessions", DEFAULT_MAX_SESSIONS)))
        self._sessions: OrderedDict[str, ConverterSession] = OrderedDict()

    def create(self, mode: Mode = Mode.MANUAL) -> ConverterSession:
        conversion_config = self.config.get("conversion", {}) or {}
        session = ConverterSession(
            mode=mode,
            default_rate=float(conversion_config.get("default_rate", DEFAULT_EXCHANGE_RATE)),
            locale=conversion_config.get("locale", DEFAULT_LOCALE),
            upload_limits=self.config.get("upload", {}) or {},
        )
        self._sessions[session.session_id] = session
        logger.info(f"Session created: {session.session_id}")
        self._evict()
        return session

    def get(self, session_id: str) -> ConverterSession:
        """
        Raises:
            KeyError: 알 수 없는 세션 (제거된 세션 포함)
        """
        session = self._sessions[session_id]
        self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> None:
        """
        Raises:
            KeyError: 알 수 없는 세션
        """
        session = self._sessions.pop(session_id)
        session.discard()
        logger.info(f"Session deleted: {session_id}")

    def _evict(self) -> None:
        while len(self._sessions) > self.max_sessions:
            session_id, session = self._sessions.popitem(last=False)
            session.discard()
            logger.info(f"Session evicted: {session_id}")

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
