from fastapi.testclient import TestClient


def test_lesson_progress_flow(client: TestClient, enrollment_factory, formation_factory, module_factory, lesson_factory):
    formation = formation_factory()
    module = module_factory(formation, title="Intro", order=1)
    lesson = lesson_factory(formation, module, order=1)
    enrollment = enrollment_factory(formation=formation)
    base = f"/enrollments/{enrollment.id}/lessons/{lesson.id}"

    started = client.post(f"{base}/start", json={"position": 30})
    assert started.status_code == 200
    assert started.json()["data"]["status"] == "in_progress"
    assert started.json()["data"]["current_position"] == 30

    updated = client.put(f"{base}/progress", json={"progress_percentage": 70, "time_spent_seconds": 45})
    assert updated.json()["data"]["progress_percentage"] == 70

    assert client.post(f"{base}/favorite").json()["data"]["is_favorite"] is True

    completed = client.post(f"{base}/complete")
    assert completed.json()["data"]["status"] == "completed"

    enrollment_view = client.get(f"/enrollments/{enrollment.id}").json()["data"]
    assert enrollment_view["status"] == "completed"
    assert enrollment_view["progress_percentage"] == 100

    listed = client.get(f"/enrollments/{enrollment.id}/progress").json()["data"]
    assert [row["lesson_id"] for row in listed] == [lesson.id]


def test_progress_on_foreign_lesson_is_rejected(client: TestClient, enrollment_factory, formation_factory, lesson_factory):
    enrollment = enrollment_factory()
    foreign = lesson_factory(formation_factory(title="Elsewhere"))

    response = client.post(f"/enrollments/{enrollment.id}/lessons/{foreign.id}/start")

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "CROSS_COURSE_REFERENCE"
