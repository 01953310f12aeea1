"""
Converter Routes: THB → KRW 변환 화면 + 세션 API.

- GET / → 변환 화면
- POST /api/sessions → 세션 생성
- GET /api/sessions/<id> → 상태 조회
- DELETE /api/sessions/<id> → 세션 종료
- POST /api/sessions/<id>/mode → 모드 전환
- POST /api/sessions/<id>/rate → 환율 변경
- POST /api/sessions/<id>/manual → 수동 변환
- POST /api/sessions/<id>/photo → 사진 선택
- DELETE /api/sessions/<id>/photo → 사진 초기화
- POST /api/sessions/<id>/photo/detect → 금액 감지 + 변환
- GET /api/sessions/<id>/photo/preview → 미리보기

도메인 에러는 세션 에러 상태로 들어가고 200으로 반환된다.
HTTP 에러는 세션 없음(404), 잘못된 모드 값 또는 사진 없음(422), 모드 불일치(409)뿐.
"""

import logging
from typing import Any

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response

from snapmoney.app.services.session import ConverterSession, ModeMismatchError, SessionStore
from snapmoney.domain.constants import DEFAULT_EXCHANGE_RATE
from snapmoney.domain.schemas import Mode

logger = logging.getLogger(__name__)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints


def get_store(request: Request) -> SessionStore:
    """Request에서 SessionStore 가져오기."""
    return request.app.state.sessions


def get_session(request: Request, session_id: str) -> ConverterSession:
    """세션 조회. 없으면 404."""
    try:
        return get_store(request).get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found") from None


def parse_mode(value: str) -> Mode:
    """모드 문자열 검증. 잘못되면 422."""
    try:
        return Mode(value.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail=f"mode must be one of: {', '.join(m.value for m in Mode)}",
        ) from None


def mode_conflict(error: ModeMismatchError) -> HTTPException:
    return HTTPException(status_code=409, detail=error.to_dict())


# =============================================================================
# Page Routes (HTML)
# =============================================================================

@router.get("/", response_class=HTMLResponse)
async def converter_page(request: Request) -> HTMLResponse:
    """변환 화면."""
    return HTMLResponse(content=f"""
<!DOCTYPE html>
<html lang="ko">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Snap Money</title>
</head>
<body>
    <main class="container">
        <header>
            <h1>Snap Money</h1>
            <p>태국 바트(THB) → 대한민국 원(KRW)</p>
        </header>

        <nav>
            <button data-mode="manual">바트 금액 직접 입력</button>
            <button data-mode="photo">사진으로 금액 변환</button>
        </nav>

        <section id="manual-converter">
            <form id="manual-form">
                <label for="thb-amount">바트 금액 (THB)</label>
                <input id="thb-amount" name="amount" type="text" inputmode="decimal" placeholder="예: 5000">
                <button type="submit">원화(KRW)로 변환</button>
            </form>
        </section>

        <section id="photo-converter" hidden>
            <input id="photo-input" type="file" accept="image/*" capture="environment">
            <img id="photo-preview" alt="선택한 이미지" hidden>
            <button id="photo-clear" type="button">&times;</button>
            <button id="photo-detect" type="button" disabled>사진에서 금액 변환</button>
        </section>

        <section id="result"></section>

        <footer>
            <label for="exchange-rate-input">적용 환율: 1 THB =</label>
            <input id="exchange-rate-input" type="text" inputmode="decimal" value="{DEFAULT_EXCHANGE_RATE}">
            <span>KRW</span>
            <p>이 서비스는 개발 단계의 가상 환율을 사용합니다.</p>
        </footer>
    </main>
    <script>
    let sessionId = null;
    const api = (path, init) => fetch(`/api/sessions/${{sessionId}}${{path}}`, init).then(r => r.json());
    const form = (data) => {{ const f = new FormData(); Object.entries(data).forEach(([k, v]) => f.append(k, v)); return f; }};

    function render(s) {{
        document.getElementById("manual-converter").hidden = s.mode !== "manual";
        document.getElementById("photo-converter").hidden = s.mode !== "photo";
        const out = document.getElementById("result");
        out.innerHTML = "";
        if (s.manual) {{
            if (s.manual.error) out.textContent = s.manual.error;
            else if (s.manual.result) out.textContent = `${{s.manual.result.converted_display}} (${{s.manual.result.original_display}} 바트)`;
        }}
        if (s.photo) {{
            const detect = document.getElementById("photo-detect");
            detect.disabled = !s.photo.can_detect;
            detect.textContent = s.photo.detecting ? "금액 감지 중..." : "사진에서 금액 변환";
            const preview = document.getElementById("photo-preview");
            preview.hidden = !s.photo.has_image;
            if (s.photo.has_image) preview.src = `/api/sessions/${{sessionId}}/photo/preview?t=${{Date.now()}}`;
            if (s.photo.error) out.textContent = s.photo.error;
            else if (s.photo.notice) out.textContent = s.photo.notice;
            else s.photo.results.forEach(r => {{
                const li = document.createElement("li");
                li.textContent = `${{r.original_display}} → ${{r.converted_display}}`;
                out.appendChild(li);
            }});
        }}
    }}

    fetch("/api/sessions", {{method: "POST"}}).then(r => r.json()).then(s => {{ sessionId = s.session_id; render(s); }});
    window.addEventListener("pagehide", () => {{
        if (sessionId) fetch(`/api/sessions/${{sessionId}}`, {{method: "DELETE", keepalive: true}});
    }});
    document.querySelectorAll("nav button").forEach(b => b.onclick = () =>
        api("/mode", {{method: "POST", body: form({{mode: b.dataset.mode}})}}).then(render));
    document.getElementById("manual-form").onsubmit = (e) => {{
        e.preventDefault();
        api("/manual", {{method: "POST", body: form({{amount: document.getElementById("thb-amount").value}})}}).then(render);
    }};
    document.getElementById("exchange-rate-input").oninput = (e) =>
        api("/rate", {{method: "POST", body: form({{rate: e.target.value}})}}).then(render);
    document.getElementById("photo-input").onchange = (e) => {{
        if (!e.target.files[0]) return;
        api("/photo", {{method: "POST", body: form({{file: e.target.files[0]}})}}).then(render);
    }};
    document.getElementById("photo-clear").onclick = () => {{
        document.getElementById("photo-input").value = "";
        api("/photo", {{method: "DELETE"}}).then(render);
    }};
    document.getElementById("photo-detect").onclick = (e) => {{
        e.target.disabled = true;
        e.target.textContent = "금액 감지 중...";
        api("/photo/detect", {{method: "POST"}}).then(render);
    }};
    </script>
</body>
</html>
    """)


# =============================================================================
# API Routes
# =============================================================================

@api_router.post("")
async def create_session(request: Request, mode: str = Form("manual")) -> dict[str, Any]:
    """새 세션."""
    session = get_store(request).create(parse_mode(mode))
    return session.snapshot()


@api_router.get("/{session_id}")
async def get_session_state(request: Request, session_id: str) -> dict[str, Any]:
    """세션 상태."""
    return get_session(request, session_id).snapshot()


@api_router.delete("/{session_id}")
async def delete_session(request: Request, session_id: str) -> dict[str, Any]:
    """세션 종료. 보관 중인 이미지/결과 폐기."""
    try:
        get_store(request).delete(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found") from None
    return {"session_id": session_id, "deleted": True}


@api_router.post("/{session_id}/mode")
async def switch_mode(
    request: Request,
    session_id: str,
    mode: str = Form(...),
) -> dict[str, Any]:
    """모드 전환. 모든 일시 결과/에러 초기화."""
    session = get_session(request, session_id)
    session.switch_mode(parse_mode(mode))
    return session.snapshot()


@api_router.post("/{session_id}/rate")
async def set_rate(
    request: Request,
    session_id: str,
    rate: str = Form(""),
) -> dict[str, Any]:
    """환율 변경. 표시 중 결과 재계산."""
    session = get_session(request, session_id)
    session.set_rate(rate)
    return session.snapshot()


@api_router.post("/{session_id}/manual")
async def convert_manual(
    request: Request,
    session_id: str,
    amount: str = Form(""),
) -> dict[str, Any]:
    """수동 변환."""
    session = get_session(request, session_id)
    try:
        session.submit_manual(amount)
    except ModeMismatchError as e:
        raise mode_conflict(e) from None
    return session.snapshot()


@api_router.post("/{session_id}/photo")
async def select_photo(
    request: Request,
    session_id: str,
    file: UploadFile | None = File(None),
    data_url: str | None = Form(None),
    filename: str | None = Form(None),
) -> dict[str, Any]:
    """
    사진 선택. 이전 결과/에러 폐기.

    multipart `file` 또는 `data_url` (FileReader.readAsDataURL 결과) 중 하나.
    """
    session = get_session(request, session_id)
    if file is None and not data_url:
        raise HTTPException(status_code=422, detail="file or data_url is required")

    try:
        if file is not None:
            # 파일 읽기
            file_bytes = await file.read()
            session.select_image(file_bytes, file.content_type, file.filename)
        else:
            session.select_data_url(data_url or "", filename)
    except ModeMismatchError as e:
        raise mode_conflict(e) from None
    return session.snapshot()


@api_router.delete("/{session_id}/photo")
async def clear_photo(request: Request, session_id: str) -> dict[str, Any]:
    """사진 초기화 → no-image."""
    session = get_session(request, session_id)
    try:
        session.clear_image()
    except ModeMismatchError as e:
        raise mode_conflict(e) from None
    return session.snapshot()


@api_router.post("/{session_id}/photo/detect")
async def detect_photo(request: Request, session_id: str) -> dict[str, Any]:
    """금액 감지 + 변환 (1회 시도)."""
    session = get_session(request, session_id)
    extractor_factory = request.app.state.extractor_factory

    try:
        await session.detect(extractor_factory)
    except ModeMismatchError as e:
        raise mode_conflict(e) from None
    return session.snapshot()


@api_router.get("/{session_id}/photo/preview")
async def photo_preview(request: Request, session_id: str) -> Response:
    """선택한 사진 미리보기."""
    session = get_session(request, session_id)
    state = session.state
    image_bytes = getattr(state, "image_bytes", None)
    if image_bytes is None:
        raise HTTPException(status_code=404, detail="No image selected")
    return Response(content=image_bytes, media_type=state.mime_type)
