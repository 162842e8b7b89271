from __future__ import annotations

from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from repairhub.chat import services
from repairhub.chat.protocol import MessageValidationError
from repairhub.realtime.identity import Principal
from repairhub.users.api.permissions import IsAdminRole

from .serializers import ChatMessageSerializer
from .serializers import ChatSendSerializer
from .serializers import ConversationSerializer


def _parse_limit(raw: str | None) -> int | None:
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError({"limit": "Must be an integer."}) from exc


@extend_schema_view(
    send=extend_schema(tags=["Chat"], request=ChatSendSerializer),
    conversations=extend_schema(tags=["Chat"]),
    messages=extend_schema(tags=["Chat"]),
    unread_count=extend_schema(tags=["Chat"]),
    support_admin=extend_schema(tags=["Chat"]),
    delete_conversation=extend_schema(tags=["Chat"]),
)
class ChatViewSet(GenericViewSet):
    """Support chat for the authenticated user.

    - send: persist a message and push it live once committed
    - conversations / messages: read paths; opening a thread marks it read
    - delete_conversation: admins only
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ChatMessageSerializer

    def get_permissions(self):
        if self.action == "delete_conversation":
            return [IsAuthenticated(), IsAdminRole()]
        return [p() for p in self.permission_classes]

    @action(detail=False, methods=["post"])
    def send(self, request):
        serializer = ChatSendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            message = services.send_message(
                Principal.from_user(request.user),
                data["receiver"],
                data["message"],
                attachments=data["attachments"],
            )
        except MessageValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        out = ChatMessageSerializer(message, context={"request": request}).data
        return Response({"message": out}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def conversations(self, request):
        conversations = services.list_conversations(request.user.pk)
        out = ConversationSerializer(conversations, many=True).data
        return Response({"conversations": out})

    @action(detail=False, methods=["get"], url_path=r"messages/(?P<user_id>\d+)")
    def messages(self, request, user_id=None):
        limit = _parse_limit(request.query_params.get("limit"))
        thread = services.get_thread(request.user.pk, int(user_id), limit)
        out = ChatMessageSerializer(thread, many=True).data
        return Response({"messages": out})

    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        return Response({"count": services.unread_count(request.user.pk)})

    @action(detail=False, methods=["get"], url_path="support-admin")
    def support_admin(self, request):
        admin = services.get_support_admin()
        if admin is None:
            return Response(
                {"detail": "No support admin found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"admin": {"id": admin.pk, "name": admin.name or "Support Team"}})

    @action(
        detail=False,
        methods=["delete"],
        url_path=r"conversations/(?P<user_id>\d+)",
    )
    def delete_conversation(self, request, user_id=None):
        services.delete_conversation(Principal.from_user(request.user), int(user_id))
        return Response(status=status.HTTP_204_NO_CONTENT)
