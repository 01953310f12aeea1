"""
App layer: 변환 서버 (FastAPI).

역할:
- 변환 화면, 세션 API, 사진 업로드
- Gemini 금액 감지 호출
- 계산/인코딩/표시 규칙은 core에 위임
"""
