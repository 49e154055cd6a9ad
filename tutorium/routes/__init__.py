"""
Tutorium Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.
How:   One module per resource; every router is mounted in main.create_app().

Route Inventory:
    - auth.py:         /api/auth/register, /login, /logout
    - users.py:        /api/users/profile, /api/users/update
    - admin_users.py:  /api/admin/users[/{id}]
    - courses.py:      /api/courses[/{id}], /api/courses/user, /api/levels
    - topics.py:       /api/topics[/{id}]
    - groups.py:       /api/groups[/{id}], /all, /user, /{id}/enroll
    - students.py:     /api/students[/{id}]
    - recordings.py:   /api/recordings[/{id}]
    - lessons.py:      /api/lessons/recent, /upcoming, /individual[/{id}]
    - attendance.py:   /api/attendance[/{id}]
    - feedback.py:     /api/feedback, /api/feedback/user
    - products.py:     /api/products, /api/products/enroll
    - uploads.py:      /api/uploads[/{attachment_id}]
    - teachers.py:     /api/teachers/{id}/groups, /lessons, /stats
    - health.py:       /health, /api/status

Design Principle:
    Routes are THIN: they pull the caller and the session from dependencies,
    call one service method and wrap the result. Role checks live in the
    dependencies (auth/dependencies.py); ownership checks in the services.
"""
