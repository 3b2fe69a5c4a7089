"""
App layer: UI 서버 (FastAPI + HTMX).

역할:
- Relay 엔드포인트 (POST /api/colorize-manga)
- 세션별 UI 상태 머신, 업로드/다운로드 화면
- 외부 모델 호출은 providers/에 위임

주의: 폴더 구분
- src/app/templates/ → Jinja2 HTML (HTMX)
- src/app/providers/ → 외부 모델 어댑터
"""
