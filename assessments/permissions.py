from rest_framework import permissions


class IsInstructorOrAdmin(permissions.BasePermission):
    """
    Allows access to Admins and Instructors.
    Strictly blocks Students.
    """
    def has_permission(self, request, view):
        # 1. User must be logged in
        if not request.user or not request.user.is_authenticated:
            return False

        # 2. Check Role
        return request.user.is_admin or request.user.is_instructor


class IsStudent(permissions.BasePermission):
    message = "Only students can take exams."

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_student
