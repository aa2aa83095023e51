from django.contrib import admin
from django.contrib.auth import get_user_model


User = get_user_model()


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("email", "username", "phone_number", "is_active", "is_staff")
    list_filter = ("is_staff", "is_active", "is_superuser")
    search_fields = ("email", "username", "phone_number")
    ordering = ("email",)
