from rest_framework import permissions

from apps.catalog.services.permissions import ADMIN, SELLER, role_for_user


class IsSellerOrReadOnly(permissions.BasePermission):
    """Anyone may read; sellers and administrators may write."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return role_for_user(request.user) in (ADMIN, SELLER)


class IsCatalogAdminOrReadOnly(permissions.BasePermission):

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return role_for_user(request.user) == ADMIN


class IsCatalogAdmin(permissions.BasePermission):

    def has_permission(self, request, view):
        return role_for_user(request.user) == ADMIN
