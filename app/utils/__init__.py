# app/utils/__init__.py

"""
도메인에 속하지 않는 공용 유틸리티 패키지입니다.

- `files.py`: 변경 요청 첨부 파일을 업로드 디렉터리에 저장합니다.
"""
