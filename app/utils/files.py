# app/utils/files.py

import uuid
from pathlib import Path
from typing import Tuple

import aiofiles
from fastapi import HTTPException, UploadFile, status

from app.core.config import settings

# UPLOAD_DIR이 마운트되는 웹 경로 (app/main.py)
UPLOAD_URL_PREFIX = "/uploads"


async def save_upload_file(sub_dir: str, upload_file: UploadFile) -> Tuple[str, str]:
    """
    업로드된 파일을 UPLOAD_DIR 하위의 지정된 경로에 저장합니다.

    - 파일명은 중복을 피하기 위해 UUID를 앞에 붙여 새로 생성합니다.
    - 저장 후, 원본 파일명과 웹에서 접근 가능한 경로를 반환합니다.

    Args:
        sub_dir (str): UPLOAD_DIR 아래에 생성할 하위 디렉토리 이름 (예: "change_requests/12")
        upload_file (UploadFile): FastAPI를 통해 업로드된 파일 객체

    Returns:
        Tuple[str, str]: (원본 파일명, 웹 접근 경로 예: "/uploads/change_requests/12/uuid-name.pdf")
    """
    # monkeypatch로 변경된 settings 값을 반영하기 위해 런타임에 경로를 계산합니다.
    upload_dir = Path(settings.UPLOAD_DIR) / sub_dir
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_content = await upload_file.read()
    if not file_content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    original_name = Path(upload_file.filename or "file").name
    new_filename = f"{uuid.uuid4()}-{original_name}"

    try:
        async with aiofiles.open(upload_dir / new_filename, "wb") as f:
            await f.write(file_content)
    except OSError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"파일 저장 중 오류 발생: {e}",
        )
    finally:
        await upload_file.close()

    web_path = "/".join((UPLOAD_URL_PREFIX, sub_dir.strip("/"), new_filename))
    return original_name, web_path
