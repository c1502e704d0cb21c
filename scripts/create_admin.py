# scripts/create_admin.py

"""
PMS 애플리케이션 초기 설정용 CLI입니다.

    python -m scripts.create_admin init-db
    python -m scripts.create_admin create-admin -u admin -e admin@example.com
"""

import asyncio
from typing import Optional

import typer
from fastapi import HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import AsyncSessionLocal, create_db_and_tables
from app.domains.usr import crud as usr_crud
from app.domains.usr import schemas as usr_schemas
from app.domains.usr.models import UserRole

cli = typer.Typer(help="PMS 초기 설정 도구")


async def create_admin_user(db: AsyncSession, user_in: usr_schemas.UserCreate) -> bool:
    """
    데이터베이스에 관리자 사용자를 생성합니다. 사용자명/이메일 중복 시 False를 반환합니다.
    """
    try:
        await usr_crud.user.create(db, obj_in=user_in)
    except HTTPException as e:
        typer.secho(f"오류: {e.detail}", fg=typer.colors.RED)
        return False
    typer.secho(f"관리자 계정이 생성되었습니다: {user_in.username} ({user_in.role.name})", fg=typer.colors.GREEN)
    return True


@cli.command("init-db")
def init_db():
    """
    스키마(usr, pms, cr)와 테이블을 생성합니다. 개발 환경 전용이며, 운영은 Alembic을 사용합니다.
    """
    asyncio.run(create_db_and_tables())
    typer.echo("데이터베이스 스키마/테이블 생성 완료")


@cli.command("create-admin")
def create_admin(
    username: str = typer.Option(
        ..., '--username', '-u',
        prompt="관리자 사용자명(ID)을 입력하세요",
        help="로그인 시 사용할 사용자명(ID)입니다."
    ),
    email: Optional[str] = typer.Option(
        None, '--email', '-e',
        help="관리자 이메일 주소입니다."
    ),
    password: str = typer.Option(
        ..., '--password', '-p',
        prompt="관리자 비밀번호를 입력하세요",
        hide_input=True,
        confirmation_prompt=True,
        help="관리자 비밀번호입니다. (최소 8자 이상)"
    ),
    full_name: str = typer.Option("Admin", '--name', '-n', help="관리자의 이름입니다."),
    superuser: bool = typer.Option(False, '--superuser', help="ADMIN 대신 SUPERUSER 역할로 생성합니다."),
):
    """
    변경 요청을 검토할 수 있는 관리자(ADMIN 또는 SUPERUSER) 계정을 생성합니다.
    """
    if len(password) < 8:
        typer.secho("오류: 비밀번호는 최소 8자 이상이어야 합니다.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    user_in = usr_schemas.UserCreate(
        username=username,
        email=email,
        password=password,
        full_name=full_name,
        role=UserRole.SUPERUSER if superuser else UserRole.ADMIN,
    )

    async def run_creation() -> bool:
        async with AsyncSessionLocal() as db:
            return await create_admin_user(db, user_in)

    if not asyncio.run(run_creation()):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
