from django.conf import settings
from django.db import models
from django.db.models import F
from django.db.models import Q


class ChatMessage(models.Model):
    """One message of a support conversation.

    There is no conversation row: a conversation is the stream of messages
    between two users. Only ``is_read`` ever changes after insert.
    """

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_messages",
    )
    # Role at time of send; the sender's role may change later.
    sender_role = models.CharField(max_length=20, default="user")
    message = models.TextField()
    attachments = models.JSONField(default=list, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["receiver", "sender", "is_read"],
                name="chat_unread_pair_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(sender=F("receiver")),
                name="chat_sender_not_receiver",
            ),
        ]

    def __str__(self):
        return f"{self.sender_id} -> {self.receiver_id}: {self.message[:40]}"

    def partner_id_for(self, user_id: int) -> int:
        return self.receiver_id if self.sender_id == user_id else self.sender_id
