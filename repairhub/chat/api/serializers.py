from __future__ import annotations

from rest_framework import serializers

from repairhub.chat.models import ChatMessage


class ChatMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChatMessage
        fields = (
            "id",
            "sender",
            "receiver",
            "sender_role",
            "message",
            "attachments",
            "is_read",
            "created_at",
        )
        read_only_fields = fields


class ChatSendSerializer(serializers.Serializer):
    """Input for ``POST chat/send/``.

    Receiver existence is checked when the message is stored.
    """

    receiver = serializers.IntegerField(min_value=1)
    message = serializers.CharField(trim_whitespace=True)
    attachments = serializers.ListField(
        child=serializers.JSONField(),
        required=False,
        default=list,
    )


class ConversationSerializer(serializers.Serializer):
    partner = serializers.DictField()
    last_message = ChatMessageSerializer(allow_null=True)
    unread_count = serializers.IntegerField()
