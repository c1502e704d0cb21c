# app/domains/pms/crud.py

"""
'pms' 도메인 (기기 레지스터)의 CRUD 작업을 담당하는 모듈입니다.
"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import HTTPException, status

from app.core.crud_base import CRUDBase
from . import models as pms_models
from . import schemas as pms_schemas


# =============================================================================
# 1. pms.components 테이블 CRUD
# =============================================================================
class CRUDComponent(CRUDBase[pms_models.Component, pms_schemas.ComponentCreate, pms_schemas.ComponentUpdate]):
    def __init__(self):
        super().__init__(model=pms_models.Component)

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[pms_models.Component]:
        return await self.get_by_attribute(db, attribute="code", value=code)

    async def create(self, db: AsyncSession, *, obj_in: pms_schemas.ComponentCreate) -> pms_models.Component:
        if await self.get_by_code(db, code=obj_in.code):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Component with this code already exists")
        return await super().create(db, obj_in=obj_in)

    async def remove(self, db: AsyncSession, *, id: int) -> pms_models.Component:
        """
        기기를 삭제합니다. 하위 작업 지시/예비품 연결/상태 항목도 함께 삭제합니다.
        """
        component = await self.get(db, id=id)
        if not component:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")

        for child_model in (pms_models.WorkOrder, pms_models.ComponentSpare, pms_models.ConditionMetric):
            result = await db.execute(select(child_model).where(child_model.component_id == id))
            for child in result.scalars().all():
                await db.delete(child)

        return await super().delete(db, id=id)


component = CRUDComponent()


# =============================================================================
# 2. 기기 하위 목록 공통 CRUD (작업 지시, 예비품 연결, 상태 감시 항목)
# =============================================================================
class CRUDComponentChild(CRUDBase):
    """component_id로 묶이는 하위 목록 엔티티의 공통 CRUD"""

    async def get_by_component(self, db: AsyncSession, *, component_id: int) -> List:
        statement = (
            select(self.model)
            .where(self.model.component_id == component_id)
            .order_by(self.model.id)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def create_for_component(self, db: AsyncSession, *, component_id: int, obj_in) -> object:
        db_obj = self.model(**obj_in.model_dump(), component_id=component_id)
        db.add(db_obj)
        await db.flush()
        self.before_commit(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    def before_commit(self, db_obj) -> None:
        """flush로 ID가 발급된 뒤, 커밋 전에 호출됩니다."""


class CRUDWorkOrder(CRUDComponentChild):
    def __init__(self):
        super().__init__(model=pms_models.WorkOrder)

    async def get_by_wo_no(self, db: AsyncSession, *, component_id: int, wo_no: str) -> Optional[pms_models.WorkOrder]:
        statement = select(self.model).where(
            self.model.component_id == component_id, self.model.wo_no == wo_no
        )
        result = await db.execute(statement)
        return result.scalars().first()

    def before_commit(self, db_obj: pms_models.WorkOrder) -> None:
        if not db_obj.wo_no:
            db_obj.wo_no = make_wo_no(db_obj.id)


def make_wo_no(work_order_id: int) -> str:
    """작업 지시 번호 자동 채번 규칙 (WO-00001)"""
    return f"WO-{work_order_id:05d}"


class CRUDComponentSpare(CRUDComponentChild):
    def __init__(self):
        super().__init__(model=pms_models.ComponentSpare)

    async def get_by_part_code(self, db: AsyncSession, *, component_id: int, part_code: str) -> Optional[pms_models.ComponentSpare]:
        statement = select(self.model).where(
            self.model.component_id == component_id, self.model.part_code == part_code
        )
        result = await db.execute(statement)
        return result.scalars().first()

    async def create_for_component(self, db: AsyncSession, *, component_id: int, obj_in) -> pms_models.ComponentSpare:
        if await self.get_by_part_code(db, component_id=component_id, part_code=obj_in.part_code):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Spare already linked to this component")
        return await super().create_for_component(db, component_id=component_id, obj_in=obj_in)


class CRUDConditionMetric(CRUDComponentChild):
    def __init__(self):
        super().__init__(model=pms_models.ConditionMetric)


work_order = CRUDWorkOrder()
component_spare = CRUDComponentSpare()
condition_metric = CRUDConditionMetric()
