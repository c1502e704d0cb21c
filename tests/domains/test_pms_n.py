# tests/domains/test_pms_n.py

"""
'pms' 도메인 (기기 레지스터) 관련 API 엔드포인트와 diff 적용 서비스에 대한 테스트 모듈입니다.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import NotFoundError
from app.domains.pms import crud as pms_crud
from app.domains.pms import models as pms_models
from app.domains.pms import services as pms_services


async def _seed_component(db_session: AsyncSession) -> pms_models.Component:
    """작업 지시 1건, 연결 예비품 1건, 상태 감시 항목 1건을 가진 기기를 생성합니다."""
    component = pms_models.Component(
        code="601.001",
        name="Main Engine",
        vessel_id="V001",
        maker="MAN B&W",
        model="6S60MC",
        location="Engine Room",
        running_hours="12000",
        classification={"classProvider": "DNV", "certificateNo": "C-100"},
    )
    db_session.add(component)
    await db_session.flush()

    db_session.add_all([
        pms_models.WorkOrder(
            component_id=component.id, wo_no="WO-90001", job_title="Overhaul", frequency_value=180
        ),
        pms_models.ComponentSpare(
            component_id=component.id, part_code="SP-100", part_name="Piston Ring", min=2, critical="Yes"
        ),
        pms_models.ConditionMetric(component_id=component.id, name="Vibration", value=2.5),
    ])
    await db_session.commit()
    await db_session.refresh(component)
    return component


# =============================================================================
# 1. 기기 (Component) 엔드포인트 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_create_component_success_admin(admin_client: AsyncClient):
    """관리자 권한으로 기기를 등록합니다."""
    component_data = {
        "code": "602.001",
        "name": "Auxiliary Engine No.1",
        "maker": "Yanmar",
        "classification": {"classProvider": "ABS"},
    }
    response = await admin_client.post("/api/v1/pms/components", json=component_data)

    assert response.status_code == 201
    created = response.json()
    assert created["code"] == "602.001"
    assert created["vessel_id"] == "V001"
    assert created["classification"] == {"classProvider": "ABS"}


@pytest.mark.asyncio
async def test_create_component_duplicate_code(admin_client: AsyncClient, db_session: AsyncSession):
    """이미 존재하는 기기 코드로 등록하면 400을 반환합니다."""
    await _seed_component(db_session)
    response = await admin_client.post("/api/v1/pms/components", json={"code": "601.001", "name": "Duplicate"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Component with this code already exists"


@pytest.mark.asyncio
async def test_create_component_forbidden_for_crew(authorized_client: AsyncClient):
    """
    선원은 기기 레지스터를 직접 수정할 수 없습니다. (변경 요청을 통해 반영)
    """
    response = await authorized_client.post("/api/v1/pms/components", json={"code": "603.001", "name": "Boiler"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_read_components_search(authorized_client: AsyncClient, db_session: AsyncSession):
    """코드/이름/제조사 부분 일치 검색 (대소문자 무시)"""
    await _seed_component(db_session)
    db_session.add(pms_models.Component(code="701.001", name="Fresh Water Generator", vessel_id="V002"))
    await db_session.commit()

    response = await authorized_client.get("/api/v1/pms/components", params={"search": "man b"})
    assert response.status_code == 200
    assert [item["code"] for item in response.json()] == ["601.001"]

    response = await authorized_client.get("/api/v1/pms/components", params={"vessel_id": "V002"})
    assert [item["code"] for item in response.json()] == ["701.001"]


@pytest.mark.asyncio
async def test_read_component_not_found(authorized_client: AsyncClient):
    response = await authorized_client.get("/api/v1/pms/components/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_read_component_snapshot(authorized_client: AsyncClient, db_session: AsyncSession):
    """
    변경 요청용 스냅샷은 camelCase 키와 문자열 ID를 사용하고 하위 목록을 포함합니다.
    """
    component = await _seed_component(db_session)

    response = await authorized_client.get(f"/api/v1/pms/components/{component.id}/snapshot")

    assert response.status_code == 200
    snapshot = response.json()
    assert snapshot["id"] == str(component.id)
    assert snapshot["maker"] == "MAN B&W"
    assert snapshot["serialNo"] is None
    assert snapshot["runningHours"] == "12000"
    assert snapshot["classification"]["certificateNo"] == "C-100"
    assert snapshot["workOrders"][0]["woNo"] == "WO-90001"
    assert snapshot["workOrders"][0]["jobTitle"] == "Overhaul"
    assert snapshot["spares"][0]["partCode"] == "SP-100"
    assert snapshot["metrics"][0]["name"] == "Vibration"
    assert "isNew" not in snapshot["workOrders"][0]


@pytest.mark.asyncio
async def test_read_component_snapshot_not_found(authorized_client: AsyncClient):
    response = await authorized_client.get("/api/v1/pms/components/99999/snapshot")
    assert response.status_code == 404
    assert response.json() == {"detail": "Component not found", "code": "NOT_FOUND"}


@pytest.mark.asyncio
async def test_update_component_admin(admin_client: AsyncClient, db_session: AsyncSession):
    component = await _seed_component(db_session)
    response = await admin_client.put(f"/api/v1/pms/components/{component.id}", json={"location": "Steering Gear Room"})

    assert response.status_code == 200
    assert response.json()["location"] == "Steering Gear Room"
    assert response.json()["maker"] == "MAN B&W"


@pytest.mark.asyncio
async def test_delete_component_removes_children(admin_client: AsyncClient, db_session: AsyncSession):
    """기기 삭제 시 작업 지시/예비품 연결/상태 감시 항목도 함께 삭제됩니다."""
    component = await _seed_component(db_session)
    component_id = component.id

    response = await admin_client.delete(f"/api/v1/pms/components/{component_id}")
    assert response.status_code == 204

    assert await pms_crud.work_order.get_by_component(db_session, component_id=component_id) == []
    assert await pms_crud.component_spare.get_by_component(db_session, component_id=component_id) == []
    assert await pms_crud.condition_metric.get_by_component(db_session, component_id=component_id) == []


# =============================================================================
# 2. 기기 하위 목록 엔드포인트 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_create_work_order_assigns_number(admin_client: AsyncClient, db_session: AsyncSession):
    """작업 지시 번호를 비워두면 WO-00000 형식으로 자동 채번됩니다."""
    component = await _seed_component(db_session)

    response = await admin_client.post(
        f"/api/v1/pms/components/{component.id}/work_orders",
        json={"job_title": "Inspect fuel injectors", "frequency_type": "Running Hours", "frequency_value": 2000},
    )

    assert response.status_code == 201
    work_order = response.json()
    assert work_order["wo_no"] == f"WO-{work_order['id']:05d}"
    assert work_order["component_id"] == component.id


@pytest.mark.asyncio
async def test_create_work_order_invalid_frequency(admin_client: AsyncClient, db_session: AsyncSession):
    component = await _seed_component(db_session)
    response = await admin_client.post(
        f"/api/v1/pms/components/{component.id}/work_orders",
        json={"job_title": "Bad", "frequency_value": 0},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_link_spare_duplicate(admin_client: AsyncClient, db_session: AsyncSession):
    """같은 예비품을 같은 기기에 두 번 연결할 수 없습니다."""
    component = await _seed_component(db_session)
    response = await admin_client.post(
        f"/api/v1/pms/components/{component.id}/spares",
        json={"part_code": "SP-100", "part_name": "Piston Ring"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Spare already linked to this component"


@pytest.mark.asyncio
async def test_list_children(authorized_client: AsyncClient, db_session: AsyncSession):
    component = await _seed_component(db_session)

    work_orders = await authorized_client.get(f"/api/v1/pms/components/{component.id}/work_orders")
    spares = await authorized_client.get(f"/api/v1/pms/components/{component.id}/spares")
    metrics = await authorized_client.get(f"/api/v1/pms/components/{component.id}/metrics")

    assert [wo["wo_no"] for wo in work_orders.json()] == ["WO-90001"]
    assert [spare["part_code"] for spare in spares.json()] == ["SP-100"]
    assert metrics.json()[0]["value"] == 2.5


@pytest.mark.asyncio
async def test_create_metric_admin(admin_client: AsyncClient, db_session: AsyncSession):
    component = await _seed_component(db_session)
    response = await admin_client.post(
        f"/api/v1/pms/components/{component.id}/metrics", json={"name": "Temperature", "value": 78.5}
    )
    assert response.status_code == 201
    assert response.json()["name"] == "Temperature"


# =============================================================================
# 3. 승인된 diff 적용 서비스 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_apply_component_diff_scalar_fields(db_session: AsyncSession):
    """섹션 A/B 필드, 섹션 없는 필드, 선급 정보(G.classification.*)를 반영합니다."""
    component = await _seed_component(db_session)
    diff = {
        "A.maker": {"from": "MAN B&W", "to": "Wartsila"},
        "B.runningHours": {"from": "12000", "to": "12500"},
        "location": {"from": "Engine Room", "to": "Aft Engine Room"},
        "G.classification.certificateNo": {"from": "C-100", "to": "C-200"},
    }

    result = await pms_services.apply_component_diff(db_session, component_id=component.id, diff=diff)
    await db_session.commit()

    assert result["fields"] == 4
    refreshed = await pms_crud.component.get(db_session, id=component.id)
    assert refreshed.maker == "Wartsila"
    assert refreshed.running_hours == "12500"
    assert refreshed.location == "Aft Engine Room"
    assert refreshed.classification == {"classProvider": "DNV", "certificateNo": "C-200"}


@pytest.mark.asyncio
async def test_apply_component_diff_list_entities(db_session: AsyncSession):
    """작업 지시/예비품/상태 감시 항목의 added, modified, removed 버킷을 반영합니다."""
    component = await _seed_component(db_session)
    metric = (await pms_crud.condition_metric.get_by_component(db_session, component_id=component.id))[0]
    diff = {
        "C.workOrders.added": [{
            "tempId": "new-wo-1700000000000",
            "jobTitle": "Replace filters",
            "assignedTo": "2/E",
            "frequencyType": "Calendar",
            "frequencyValue": "90",
            "initialNextDue": "",
            "notes": "",
        }],
        "C.workOrders.modified": [{"woNo": "WO-90001", "fields": {"frequencyValue": {"from": 180, "to": 365}}}],
        "E.spares.added": [{"partCode": "SP-200", "partName": "Gasket", "min": 4, "critical": "No", "location": "Store 2"}],
        "E.spares.removed": [{"partCode": "SP-100"}],
        "B.metrics.modified": [{"id": str(metric.id), "fields": {"value": {"from": 2.5, "to": 3.1}}}],
        "B.metrics.added": [{"tempId": "metric-new-1", "name": "Pressure", "value": 4}],
    }

    result = await pms_services.apply_component_diff(db_session, component_id=component.id, diff=diff)
    await db_session.commit()

    assert result == {"fields": 0, "added": 3, "modified": 2, "removed": 1, "skipped": 0}

    work_orders = await pms_crud.work_order.get_by_component(db_session, component_id=component.id)
    assert [wo.job_title for wo in work_orders] == ["Overhaul", "Replace filters"]
    assert work_orders[0].frequency_value == 365
    assert work_orders[1].frequency_value == 90
    assert work_orders[1].wo_no == f"WO-{work_orders[1].id:05d}"

    spares = await pms_crud.component_spare.get_by_component(db_session, component_id=component.id)
    assert [spare.part_code for spare in spares] == ["SP-200"]
    assert spares[0].min == 4

    metrics = await pms_crud.condition_metric.get_by_component(db_session, component_id=component.id)
    assert {m.name: m.value for m in metrics} == {"Vibration": 3.1, "Pressure": 4.0}


@pytest.mark.asyncio
async def test_apply_component_diff_skips_missing_rows(db_session: AsyncSession):
    """이미 없어진 행과 알 수 없는 키는 건너뛰고 나머지는 반영합니다."""
    component = await _seed_component(db_session)
    diff = {
        "A.maker": {"from": "MAN B&W", "to": "Hyundai"},
        "X.unknown.deep.key": {"from": 1, "to": 2},
        "C.workOrders.removed": [{"woNo": "WO-DOES-NOT-EXIST"}],
        "E.spares.modified": [{"partCode": "SP-999", "fields": {"min": {"from": 1, "to": 2}}}],
        "B.metrics.removed": [{"id": "metric-new-123"}],
    }

    result = await pms_services.apply_component_diff(db_session, component_id=component.id, diff=diff)

    assert result["fields"] == 1
    assert result["skipped"] == 4
    assert result["removed"] == 0


@pytest.mark.asyncio
async def test_apply_component_diff_missing_component(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await pms_services.apply_component_diff(db_session, component_id=99999, diff={"A.maker": {"to": "X"}})
