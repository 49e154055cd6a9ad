"""
Tutorium Backend — Course, Topic and Group Endpoint Tests
===========================================================

What:  HTTP tests for the course catalogue, topics, learning tracks, levels,
       groups (CRUD, catalog, enrollment) and staff student management.
"""

import pytest

from tutorium.models import Lesson, Role, Topic, User


class TestCourses:

    @pytest.mark.asyncio
    async def test_create_course_with_topics(self, client, factory):
        """Topics are numbered from 1 in the order they were sent."""
        teacher = await factory.user(Role.TEACHER)
        response = await client.post(
            "/api/courses",
            headers=factory.headers(teacher),
            json={
                "name": "Spanish A1",
                "level": "beginner",
                "duration": "3 months",
                "topics": [{"name": "Greetings"}, {"name": "Numbers"}, {"name": "Family"}],
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["level"] == "A1"
        assert body["total_topics"] == 3
        assert [(t["name"], t["order"]) for t in body["topics"]] == [
            ("Greetings", 1), ("Numbers", 2), ("Family", 3),
        ]

    @pytest.mark.asyncio
    async def test_students_cannot_create_courses(self, client, factory):
        student = await factory.user(Role.STUDENT)
        response = await client.post(
            "/api/courses",
            headers=factory.headers(student),
            json={"name": "X", "level": "A1", "duration": "1 month"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_replaces_topics_and_keeps_matching_rows(self, client, factory):
        """A topic whose name survives keeps its id; dropped topics release their lessons."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=3)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)
        lesson = await factory.lesson(teacher, group=group, topic=topics[2])

        response = await client.put(
            f"/api/courses/{course.id}",
            headers=factory.headers(teacher),
            json={"topics": [{"name": "Topic 2"}, {"name": "Brand new"}]},
        )

        assert response.status_code == 200
        body = response.json()
        assert [(t["name"], t["order"]) for t in body["topics"]] == [("Topic 2", 1), ("Brand new", 2)]
        assert body["topics"][0]["id"] == str(topics[1].id)
        assert (await factory.refresh(Lesson, lesson.id)).topic_id is None
        assert await factory.refresh(Topic, topics[2].id) is None

    @pytest.mark.asyncio
    async def test_course_detail_lists_groups(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course()
        group = await factory.group(teacher, course, name="Morning")
        await factory.user(Role.STUDENT, group=group)
        await factory.lesson(teacher, group=group)

        response = await client.get(f"/api/courses/{course.id}", headers=factory.headers(teacher))

        assert response.status_code == 200
        groups = response.json()["groups"]
        assert len(groups) == 1
        assert groups[0]["name"] == "Morning"
        assert groups[0]["total_students"] == 1
        assert groups[0]["total_recordings"] == 1

    @pytest.mark.asyncio
    async def test_delete_course_blocked_by_group(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course()
        await factory.group(teacher, course)

        response = await client.delete(f"/api/courses/{course.id}", headers=factory.headers(admin))
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete course with active groups"

    @pytest.mark.asyncio
    async def test_delete_course(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        course = await factory.course(topics=2)

        response = await client.delete(f"/api/courses/{course.id}", headers=factory.headers(admin))
        assert response.status_code == 200
        assert response.json() == {"message": "Course deleted successfully"}

        missing = await client.get(f"/api/courses/{course.id}", headers=factory.headers(admin))
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_teachers_cannot_delete_courses(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course()
        response = await client.delete(f"/api/courses/{course.id}", headers=factory.headers(teacher))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_learning_tracks_route_is_not_a_course_id(self, client, factory):
        """/api/courses/user resolves to the caller's tracks, not a UUID lookup."""
        teacher = await factory.user(Role.TEACHER, name="Anna Petrova")
        course = await factory.course(name="Spanish", topics=4)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course, name="Evening")
        student = await factory.user(Role.STUDENT, group=group)
        await factory.lesson(teacher, group=group, topic=topics[0])

        response = await client.get("/api/courses/user", headers=factory.headers(student))

        assert response.status_code == 200
        tracks = response.json()
        assert len(tracks) == 1
        assert tracks[0]["title"] == "Evening"
        assert tracks[0]["course_name"] == "Spanish"
        assert tracks[0]["teacher_name"] == "Anna Petrova"
        assert tracks[0]["progress_percent"] == 25
        assert tracks[0]["next_topic"] == "Topic 2"
        assert tracks[0]["completed_lessons"] == 1

    @pytest.mark.asyncio
    async def test_learning_tracks_without_group(self, client, factory):
        student = await factory.user(Role.STUDENT)
        response = await client.get("/api/courses/user", headers=factory.headers(student))
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_levels_are_public(self, client):
        response = await client.get("/api/levels")
        assert response.status_code == 200
        assert [level["value"] for level in response.json()] == ["A1", "A2", "B1", "B2", "C1"]


class TestTopics:

    @pytest.mark.asyncio
    async def test_create_topic_appends_to_course(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=2)

        response = await client.post(
            "/api/topics",
            headers=factory.headers(teacher),
            json={"name": "Travel", "course_id": str(course.id)},
        )
        assert response.status_code == 201
        assert response.json()["order"] == 3
        assert response.json()["course"]["id"] == str(course.id)

    @pytest.mark.asyncio
    async def test_create_topic_unknown_course(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        response = await client.post(
            "/api/topics",
            headers=factory.headers(teacher),
            json={"name": "Travel", "course_id": "00000000-0000-0000-0000-000000000000"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_topics_filtered_by_course(self, client, factory):
        student = await factory.user(Role.STUDENT)
        course = await factory.course(topics=2)
        await factory.course(topics=3)

        response = await client.get(
            f"/api/topics?course_id={course.id}", headers=factory.headers(student)
        )
        assert [t["name"] for t in response.json()] == ["Topic 1", "Topic 2"]

    @pytest.mark.asyncio
    async def test_delete_topic_clears_lesson_references(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=2)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)
        lesson = await factory.lesson(teacher, group=group, topic=topics[0], next_topic=topics[0])

        response = await client.delete(f"/api/topics/{topics[0].id}", headers=factory.headers(teacher))

        assert response.status_code == 200
        assert response.json() == {"message": "Topic deleted successfully"}
        refreshed = await factory.refresh(Lesson, lesson.id)
        assert refreshed.topic_id is None
        assert refreshed.next_topic_id is None


class TestGroups:

    @pytest.mark.asyncio
    async def test_create_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course()
        response = await client.post(
            "/api/groups",
            headers=factory.headers(teacher),
            json={"name": "Morning A1", "level": "A1", "max_students": 6, "course_id": str(course.id)},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Group created successfully"
        assert body["group"]["teacher"]["id"] == str(teacher.id)
        assert body["group"]["course"]["id"] == str(course.id)
        assert body["group"]["student_count"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_group_name_for_same_teacher(self, client, factory):
        """Names are unique per teacher, not globally."""
        teacher = await factory.user(Role.TEACHER)
        other = await factory.user(Role.TEACHER)
        await factory.group(teacher, name="Morning")

        duplicate = await client.post(
            "/api/groups", headers=factory.headers(teacher), json={"name": "Morning", "level": "A1"}
        )
        assert duplicate.status_code == 409

        elsewhere = await client.post(
            "/api/groups", headers=factory.headers(other), json={"name": "Morning", "level": "A1"}
        )
        assert elsewhere.status_code == 201

    @pytest.mark.asyncio
    async def test_list_own_groups(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        other = await factory.user(Role.TEACHER)
        await factory.group(teacher, name="Mine")
        await factory.group(other, name="Theirs")

        response = await client.get("/api/groups", headers=factory.headers(teacher))
        assert [g["name"] for g in response.json()] == ["Mine"]

    @pytest.mark.asyncio
    async def test_other_teacher_cannot_update(self, client, factory):
        owner = await factory.user(Role.TEACHER)
        intruder = await factory.user(Role.TEACHER)
        group = await factory.group(owner)

        response = await client.put(
            f"/api/groups/{group.id}", headers=factory.headers(intruder), json={"name": "Mine now"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_update_any_group(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        owner = await factory.user(Role.TEACHER)
        group = await factory.group(owner)

        response = await client.put(
            f"/api/groups/{group.id}", headers=factory.headers(admin), json={"max_students": 3}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Group updated successfully"
        assert response.json()["group"]["max_students"] == 3

    @pytest.mark.asyncio
    async def test_enroll_and_unenroll(self, client, factory):
        """Enrolling also enrolls in the group's course."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course()
        group = await factory.group(teacher, course)
        student = await factory.user(Role.STUDENT)
        headers = factory.headers(teacher)

        enrolled = await client.post(
            f"/api/groups/{group.id}/enroll", headers=headers, json={"student_id": str(student.id)}
        )
        assert enrolled.status_code == 200
        assert enrolled.json()["student"]["group_id"] == str(group.id)

        again = await client.post(
            f"/api/groups/{group.id}/enroll", headers=headers, json={"student_id": str(student.id)}
        )
        assert again.status_code == 409

        detail = await client.get(f"/api/students/{student.id}", headers=headers)
        assert [c["id"] for c in detail.json()["enrolled_courses"]] == [str(course.id)]

        removed = await client.delete(
            f"/api/groups/{group.id}/enroll?student_id={student.id}", headers=headers
        )
        assert removed.status_code == 200
        assert removed.json() == {"message": "Student unenrolled successfully"}
        assert (await factory.refresh(User, student.id)).group_id is None

    @pytest.mark.asyncio
    async def test_enroll_in_full_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        group = await factory.group(teacher, max_students=1)
        await factory.user(Role.STUDENT, group=group)
        newcomer = await factory.user(Role.STUDENT)

        response = await client.post(
            f"/api/groups/{group.id}/enroll",
            headers=factory.headers(teacher),
            json={"student_id": str(newcomer.id)},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Group is full"

    @pytest.mark.asyncio
    async def test_enroll_student_from_another_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        first = await factory.group(teacher)
        second = await factory.group(teacher)
        student = await factory.user(Role.STUDENT, group=first)

        response = await client.post(
            f"/api/groups/{second.id}/enroll",
            headers=factory.headers(teacher),
            json={"student_id": str(student.id)},
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_catalog_flags(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        await factory.group(teacher, name="Open", max_students=5)
        full_group = await factory.group(teacher, name="Full", max_students=1)
        await factory.user(Role.STUDENT, group=full_group)
        student = await factory.user(Role.STUDENT)

        response = await client.get("/api/groups/all", headers=factory.headers(student))

        assert response.status_code == 200
        body = response.json()
        assert body["current_user_group"] is None
        flags = {g["name"]: g["can_enroll"] for g in body["groups"]}
        assert flags == {"Full": False, "Open": True}

    @pytest.mark.asyncio
    async def test_student_sees_only_own_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        mine = await factory.group(teacher)
        other = await factory.group(teacher)
        student = await factory.user(Role.STUDENT, group=mine)
        headers = factory.headers(student)

        assert (await client.get(f"/api/groups/{mine.id}", headers=headers)).status_code == 200
        assert (await client.get(f"/api/groups/{other.id}", headers=headers)).status_code == 403

        user_groups = await client.get("/api/groups/user", headers=headers)
        assert [g["id"] for g in user_groups.json()] == [str(mine.id)]

    @pytest.mark.asyncio
    async def test_delete_group_with_students_is_refused(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        group = await factory.group(teacher)
        await factory.user(Role.STUDENT, group=group)

        response = await client.delete(f"/api/groups/{group.id}", headers=factory.headers(teacher))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_empty_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        group = await factory.group(teacher)

        response = await client.delete(f"/api/groups/{group.id}", headers=factory.headers(teacher))
        assert response.status_code == 200
        assert response.json() == {"message": "Group deleted successfully"}


class TestStudents:

    @pytest.mark.asyncio
    async def test_teacher_creates_student_in_own_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        group = await factory.group(teacher)

        response = await client.post(
            "/api/students",
            headers=factory.headers(teacher),
            json={
                "name": "Elena Garcia",
                "email": "elena.garcia@example.com",
                "level": "Элементарный",
                "group_id": str(group.id),
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Student created successfully"
        assert body["student"]["role"] == "STUDENT"
        assert body["student"]["level"] == "A2"
        assert body["student"]["group"]["id"] == str(group.id)
        assert len(body["default_password"]) == 12

    @pytest.mark.asyncio
    async def test_teacher_cannot_place_student_in_foreign_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        other = await factory.user(Role.TEACHER)
        foreign = await factory.group(other)

        response = await client.post(
            "/api/students",
            headers=factory.headers(teacher),
            json={"name": "X", "email": "x@example.com", "level": "A1", "group_id": str(foreign.id)},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_student_email(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        await factory.user(Role.STUDENT, email="dup@example.com")
        response = await client.post(
            "/api/students",
            headers=factory.headers(admin),
            json={"name": "Dup", "email": "dup@example.com", "level": "A1"},
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_teacher_lists_only_own_students(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        other = await factory.user(Role.TEACHER)
        mine = await factory.group(teacher)
        theirs = await factory.group(other)
        await factory.user(Role.STUDENT, name="Anna Mine", group=mine)
        await factory.user(Role.STUDENT, name="Boris Theirs", group=theirs)
        await factory.user(Role.STUDENT, name="Clara Nobody")

        teacher_view = await client.get("/api/students", headers=factory.headers(teacher))
        assert [s["name"] for s in teacher_view.json()] == ["Anna Mine"]

        admin = await factory.user(Role.ADMIN)
        admin_view = await client.get("/api/students", headers=factory.headers(admin))
        assert len(admin_view.json()) == 3

    @pytest.mark.asyncio
    async def test_update_student_removes_from_group(self, client, factory):
        teacher = await factory.user(Role.TEACHER)
        group = await factory.group(teacher)
        student = await factory.user(Role.STUDENT, group=group)

        response = await client.put(
            f"/api/students/{student.id}",
            headers=factory.headers(teacher),
            json={"group_id": None, "level": "B1"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Student updated successfully"
        assert body["student"]["group"] is None
        assert body["student"]["level"] == "B1"

    @pytest.mark.asyncio
    async def test_delete_student(self, client, factory):
        admin = await factory.user(Role.ADMIN)
        student = await factory.user(Role.STUDENT)

        response = await client.delete(f"/api/students/{student.id}", headers=factory.headers(admin))
        assert response.status_code == 200
        assert response.json() == {"message": "Student deleted successfully"}

    @pytest.mark.asyncio
    async def test_students_endpoint_is_staff_only(self, client, factory):
        student = await factory.user(Role.STUDENT)
        response = await client.get("/api/students", headers=factory.headers(student))
        assert response.status_code == 403
