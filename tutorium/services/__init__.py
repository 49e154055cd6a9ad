"""
Tutorium Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level singleton;
       every method receives the request's AsyncSession and, where access
       depends on it, the calling User. Services raise TutoriumError
       subclasses and never build HTTP responses themselves.

Service Inventory:
    - access:     shared lesson visibility and ownership rules
    - auth:       registration, login, profile updates
    - admin:      user management for administrators
    - course:     courses, topics, learning tracks
    - group:      groups, catalogue, enrollment
    - student:    student accounts managed by staff
    - recording:  completed lessons with video, dashboard lesson lists
    - lesson:     individual lesson scheduling
    - attendance: attendance marking
    - feedback:   lesson ratings and their aggregates
    - product:    products and product enrollments
    - file:       on-disk storage of uploaded files
    - upload:     lesson attachments
    - progress:   course/group progress from completed lessons
    - teacher:    teacher dashboard data
"""
