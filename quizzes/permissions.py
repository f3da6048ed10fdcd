from rest_framework import permissions


class IsQuizOwner(permissions.BasePermission):
    """Object-level check that the quiz, question or answer belongs to the caller."""
    message = "Quiz not found or you do not have permission to modify it"

    def has_object_permission(self, request, view, obj):
        return _owner_of(obj) == request.user


def _owner_of(obj):
    if hasattr(obj, 'owner'):
        return obj.owner
    if hasattr(obj, 'question_set'):
        return obj.question_set.owner
    if hasattr(obj, 'question'):
        return obj.question.question_set.owner
    return None
