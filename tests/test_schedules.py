"""시간표 API 테스트 — 강의실/강사 충돌, 강제 편성, 게시, 복제, 공개 시간표."""

from httpx import AsyncClient

from tests.conftest import auth_header

SCHEDULES = "/api/v1/admin/schedules"
CLASSES = "/api/v1/admin/classes"
ROOMS = "/api/v1/admin/studio/rooms"
TEACHERS = "/api/v1/admin/teachers"
PUBLIC = "/api/v1/app/schedule"


async def _setup(client: AsyncClient, token: str) -> dict:
    schedule = await client.post(SCHEDULES, json={
        "name": "Spring 2026", "start_date": "2026-01-05", "end_date": "2026-05-30", "is_active": True,
    }, headers=auth_header(token))
    room = await client.post(ROOMS, json={"name": "Studio A"}, headers=auth_header(token))
    ballet = await client.post(CLASSES, json={"name": "Ballet I"}, headers=auth_header(token))
    jazz = await client.post(CLASSES, json={"name": "Jazz I"}, headers=auth_header(token))
    return {
        "schedule": schedule.json()["id"],
        "room": room.json()["id"],
        "ballet": ballet.json()["id"],
        "jazz": jazz.json()["id"],
    }


def _slot(class_id: str, start: str, end: str, **fields) -> dict:
    return {"class_instance_id": class_id, "day_of_week": 2, "start_time": start, "end_time": end, **fields}


class TestSlots:
    """시간표 슬롯 테스트."""

    async def test_room_conflict(self, client: AsyncClient, admin_token):
        ids = await _setup(client, admin_token)
        url = f"{SCHEDULES}/{ids['schedule']}/classes"
        first = await client.post(url, json=_slot(ids["ballet"], "16:00", "17:00", room_id=ids["room"]), headers=auth_header(admin_token))
        assert first.status_code == 201

        res = await client.post(url, json=_slot(ids["jazz"], "16:30", "17:30", room_id=ids["room"]), headers=auth_header(admin_token))
        assert res.status_code == 409
        assert [c["type"] for c in res.json()["detail"]["conflicts"]] == ["studio_conflict"]

        # 강의실이 없으면 충돌 아님
        free = await client.post(url, json=_slot(ids["jazz"], "16:30", "17:30"), headers=auth_header(admin_token))
        assert free.status_code == 201

    async def test_end_before_start(self, client: AsyncClient, admin_token):
        ids = await _setup(client, admin_token)
        res = await client.post(
            f"{SCHEDULES}/{ids['schedule']}/classes",
            json=_slot(ids["ballet"], "17:00", "16:00"),
            headers=auth_header(admin_token),
        )
        assert res.status_code == 400

    async def test_force_only_skips_availability(self, client: AsyncClient, admin_token, teacher):
        ids = await _setup(client, admin_token)
        await client.post(f"{TEACHERS}/{teacher.id}/availability", json={
            "day_of_week": 2, "start_time": "15:00", "end_time": "17:00",
        }, headers=auth_header(admin_token))
        url = f"{SCHEDULES}/{ids['schedule']}/classes"
        late = _slot(ids["ballet"], "17:30", "18:30", teacher_id=str(teacher.id))

        blocked = await client.post(url, json=late, headers=auth_header(admin_token))
        assert blocked.status_code == 409
        assert blocked.json()["detail"]["conflicts"][0]["type"] == "outside_availability"

        forced = await client.post(url, json={**late, "force": True}, headers=auth_header(admin_token))
        assert forced.status_code == 201

        # 강사 중복은 force 로도 통과 불가
        overlap = _slot(ids["jazz"], "18:00", "19:00", teacher_id=str(teacher.id), force=True)
        res = await client.post(url, json=overlap, headers=auth_header(admin_token))
        assert res.status_code == 409
        assert "teacher_conflict" in [c["type"] for c in res.json()["detail"]["conflicts"]]

    async def test_staff_cannot_force(self, client: AsyncClient, admin_token, staff_token):
        ids = await _setup(client, admin_token)
        res = await client.post(
            f"{SCHEDULES}/{ids['schedule']}/classes",
            json=_slot(ids["ballet"], "16:00", "17:00", force=True),
            headers=auth_header(staff_token),
        )
        assert res.status_code == 403

    async def test_check_conflicts_dry_run(self, client: AsyncClient, admin_token):
        ids = await _setup(client, admin_token)
        await client.post(
            f"{SCHEDULES}/{ids['schedule']}/classes",
            json=_slot(ids["ballet"], "16:00", "17:00", room_id=ids["room"]),
            headers=auth_header(admin_token),
        )
        res = await client.post(f"{SCHEDULES}/check-conflicts", json={
            "schedule_id": ids["schedule"], "room_id": ids["room"],
            "day_of_week": 2, "start_time": "16:45", "end_time": "17:45",
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["has_conflicts"] is True


class TestPublishing:
    """게시/복제 테스트."""

    async def test_publish_bumps_version_and_shows_publicly(self, client: AsyncClient, admin_token, org):
        ids = await _setup(client, admin_token)
        await client.post(
            f"{SCHEDULES}/{ids['schedule']}/classes",
            json=_slot(ids["ballet"], "16:00", "17:00"),
            headers=auth_header(admin_token),
        )

        hidden = await client.get(PUBLIC, params={"studio_code": org.code})
        assert hidden.json() == {"schedules": []}

        for version in (1, 2):
            res = await client.post(f"{SCHEDULES}/{ids['schedule']}/publish", json={}, headers=auth_header(admin_token))
            assert res.json()["published_version"] == version

        history = await client.get(f"{SCHEDULES}/{ids['schedule']}/history", headers=auth_header(admin_token))
        assert sorted(h["version"] for h in history.json()) == [1, 2]

        public = await client.get(PUBLIC, params={"studio_code": org.code})
        schedules = public.json()["schedules"]
        assert len(schedules) == 1
        assert len(schedules[0]["slots"]) == 1

    async def test_duplicate(self, client: AsyncClient, admin_token):
        ids = await _setup(client, admin_token)
        await client.post(
            f"{SCHEDULES}/{ids['schedule']}/classes",
            json=_slot(ids["ballet"], "16:00", "17:00"),
            headers=auth_header(admin_token),
        )
        missing = await client.post(f"{SCHEDULES}/{ids['schedule']}/duplicate", json={
            "new_name": "Fall 2026",
        }, headers=auth_header(admin_token))
        assert missing.status_code == 400

        res = await client.post(f"{SCHEDULES}/{ids['schedule']}/duplicate", json={
            "new_name": "Fall 2026", "new_start_date": "2026-09-07", "new_end_date": "2026-12-19",
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        data = res.json()
        assert data["slot_count"] == 1
        assert data["publication_status"] == "draft"
        assert data["is_active"] is False
