from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import AccessToken

User = get_user_model()


def create_user(username: str, *, role: str = "user", **extra) -> User:
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="TestPass123!",  # noqa: S106
        role=role,
        **extra,
    )


def token_for(user: User, **claims) -> str:
    token = AccessToken.for_user(user)
    for key, value in claims.items():
        token[key] = value
    return str(token)
