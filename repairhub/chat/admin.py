from django.contrib import admin

from repairhub.chat import models


@admin.register(models.ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ["id", "sender", "receiver", "sender_role", "is_read", "created_at"]
    search_fields = ["message", "sender__email", "receiver__email"]
    list_filter = ["sender_role", "is_read", "created_at"]
