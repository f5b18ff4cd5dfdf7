"""API tests for score, auth and notification routes."""

from app.models.all_models import Notification, Score


def submit(client, headers, **payload):
    return client.post("/api/scores/", json=payload, headers=headers)


class TestSubmitScores:
    def test_create_then_update(self, client, students, teacher_headers, notifier):
        kim_id = students["kim"].id

        response = submit(client, teacher_headers, student_id=kim_id, grade=2, semester=1, subject1=90, subject2=80)
        assert response.status_code == 201
        body = response.json()
        assert body["outcome"] == "created"
        assert body["score"]["total_score"] == 170
        assert body["score"]["average_score"] == 85

        response = submit(client, teacher_headers, student_id=kim_id, grade=2, semester=1, subject3=70)
        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "updated"
        assert body["score"]["subjects"]["subject1"] == 90
        assert body["score"]["subjects"]["subject2"] == 80
        assert body["score"]["subjects"]["subject3"] == 70
        assert body["score"]["total_score"] == 240
        assert body["score"]["average_score"] == 80

        assert len(notifier.sent) == 2

    def test_unknown_student(self, client, students, teacher_headers):
        response = submit(client, teacher_headers, student_id=9999, grade=2, semester=1, subject1=90)
        assert response.status_code == 404
        assert "9999" in response.json()["detail"]

    def test_negative_score_is_rejected(self, client, students, teacher_headers):
        response = submit(client, teacher_headers, student_id=students["kim"].id, grade=2, semester=1, subject1=-5)
        assert response.status_code == 422

    def test_nan_score_is_rejected(self, client, db, students, teacher_headers):
        body = f'{{"student_id": {students["kim"].id}, "grade": 2, "semester": 1, "subject1": NaN, "subject2": 80}}'
        response = client.post(
            "/api/scores/",
            content=body,
            headers={**teacher_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 422
        assert db.query(Score).count() == 0

    def test_infinite_score_is_rejected(self, client, db, students, teacher_headers):
        body = f'{{"student_id": {students["kim"].id}, "grade": 2, "semester": 1, "subject1": Infinity}}'
        response = client.post(
            "/api/scores/",
            content=body,
            headers={**teacher_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 422
        assert db.query(Score).count() == 0

    def test_unresolvable_upsert_is_a_conflict(self, client, students, teacher_headers, monkeypatch):
        kim_id = students["kim"].id
        response = submit(client, teacher_headers, student_id=kim_id, grade=2, semester=1, subject1=90)
        assert response.status_code == 201

        monkeypatch.setattr("app.services.scores.merge_score_subjects", lambda *args, **kwargs: 0)
        response = submit(client, teacher_headers, student_id=kim_id, grade=2, semester=1, subject2=80)

        assert response.status_code == 409

    def test_semester_must_be_positive(self, client, students, teacher_headers):
        response = submit(client, teacher_headers, student_id=students["kim"].id, grade=2, semester=0, subject1=50)
        assert response.status_code == 422

    def test_requires_authentication(self, client, students):
        response = submit(client, {}, student_id=students["kim"].id, grade=2, semester=1, subject1=90)
        assert response.status_code in (401, 403)

    def test_students_cannot_submit(self, client, students, student_headers):
        response = submit(client, student_headers, student_id=students["kim"].id, grade=2, semester=1, subject1=90)
        assert response.status_code == 403


class TestUpdateScores:
    def test_patch_existing(self, client, students, teacher_headers):
        kim_id = students["kim"].id
        submit(client, teacher_headers, student_id=kim_id, grade=2, semester=1, subject1=90, subject2=80)

        response = client.patch(f"/api/scores/{kim_id}/2/1", json={"subject1": 70}, headers=teacher_headers)

        assert response.status_code == 200
        assert response.json()["score"]["total_score"] == 150
        assert response.json()["score"]["average_score"] == 75

    def test_patch_missing(self, client, students, teacher_headers):
        response = client.patch(f"/api/scores/{students['kim'].id}/2/1", json={"subject1": 70}, headers=teacher_headers)
        assert response.status_code == 404

    def test_patch_unknown_student(self, client, students, teacher_headers):
        response = client.patch("/api/scores/9999/2/1", json={"subject1": 70}, headers=teacher_headers)
        assert response.status_code == 404
        assert "9999" in response.json()["detail"]


class TestReadScores:
    def test_student_scores(self, client, students, teacher_headers, student_headers):
        kim_id = students["kim"].id
        submit(client, teacher_headers, student_id=kim_id, grade=2, semester=1, subject1=90)

        response = client.get(f"/api/scores/student/{kim_id}", headers=student_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["student_num"] == "20101"
        assert body["student_name"] == "Kim Minji"
        assert len(body["scores"]) == 1

    def test_student_without_scores(self, client, students, teacher_headers):
        response = client.get(f"/api/scores/student/{students['lee'].id}", headers=teacher_headers)
        assert response.status_code == 404

    def test_class_scores(self, client, students, teacher_headers):
        submit(client, teacher_headers, student_id=students["lee"].id, grade=2, semester=1, subject4=88)

        response = client.get(
            "/api/scores/class", params={"grade": 2, "semester": 1, "classroom": 1}, headers=teacher_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert [s["name"] for s in body["students"]] == ["Lee Jiho"]
        assert body["students"][0]["subjects"]["subject4"] == 88

    def test_empty_class_scores(self, client, students, teacher_headers):
        response = client.get(
            "/api/scores/class", params={"grade": 2, "semester": 2, "classroom": 1}, headers=teacher_headers
        )
        assert response.status_code == 200
        assert response.json()["students"] == []


class TestDeleteScores:
    def test_delete(self, client, db, students, teacher_headers):
        kim_id = students["kim"].id
        submit(client, teacher_headers, student_id=kim_id, grade=2, semester=1, subject1=90)

        response = client.delete(f"/api/scores/{kim_id}/2/1", headers=teacher_headers)

        assert response.status_code == 200
        assert db.query(Score).count() == 0

    def test_delete_missing(self, client, students, teacher_headers):
        response = client.delete(f"/api/scores/{students['kim'].id}/2/1", headers=teacher_headers)
        assert response.status_code == 404


class TestAuth:
    def test_login_and_me(self, client, users, test_password):
        response = client.post("/api/auth/login", json={"username": "teacher", "password": test_password})
        assert response.status_code == 200
        token = response.json()["access_token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["role"] == "teacher"

    def test_wrong_password(self, client, users):
        response = client.post("/api/auth/login", json={"username": "teacher", "password": "nope"})
        assert response.status_code == 401

    def test_refresh(self, client, users, test_password):
        tokens = client.post("/api/auth/login", json={"username": "admin", "password": test_password}).json()

        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200

        response = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401

    def test_me_links_student(self, client, students, student_headers):
        response = client.get("/api/auth/me", headers=student_headers)
        assert response.json()["student_id"] == students["kim"].id


class TestNotifications:
    def test_list_and_mark_read(self, client, db, users, student_headers):
        db.add(Notification(user_id=users["student"].id, message="Scores registered"))
        db.add(Notification(user_id=users["parent"].id, message="Not for the student"))
        db.commit()

        response = client.get("/api/notifications/", headers=student_headers)
        assert response.status_code == 200
        notifications = response.json()
        assert [n["message"] for n in notifications] == ["Scores registered"]

        response = client.post(f"/api/notifications/{notifications[0]['id']}/read", headers=student_headers)
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        response = client.get("/api/notifications/", params={"unread_only": True}, headers=student_headers)
        assert response.json() == []

    def test_cannot_read_someone_elses(self, client, db, users, student_headers):
        notification = Notification(user_id=users["parent"].id, message="Scores updated")
        db.add(notification)
        db.commit()

        response = client.post(f"/api/notifications/{notification.id}/read", headers=student_headers)
        assert response.status_code == 404
