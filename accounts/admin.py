from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .forms import CustomUserCreationForm, CustomUserChangeForm
from .models import CustomUser


class CustomUserAdmin(UserAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser
    list_display = [
        "email",
        "username",
        "role",
        "department",
        "year",
        "is_staff",
        "is_active",
    ]
    list_filter = ["role", "department", "year", "is_staff", "is_active"]
    search_fields = ["email", "username", "first_name", "last_name", "phone"]
    fieldsets = UserAdmin.fieldsets + (
        ("Profile", {"fields": ("role", "department", "year", "phone")}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ("Profile", {"fields": ("role", "department", "year", "phone")}),
    )


admin.site.register(CustomUser, CustomUserAdmin)
