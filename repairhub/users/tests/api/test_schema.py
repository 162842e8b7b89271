from drf_spectacular.generators import SchemaGenerator

from config.schema import assign_group_tag


def test_assign_group_tag():
    assert assign_group_tag("/api/v1/chat/send/") == "Chat"
    assert assign_group_tag("/api/v1/auth/jwt/refresh/") == "JWT Authentication"
    assert assign_group_tag("/health/") is None


def test_schema_tag_grouping(db):
    schema = SchemaGenerator().get_schema(request=None, public=True)
    paths = schema["paths"]

    expected = {
        "/api/v1/auth/jwt/create/": ["JWT Authentication"],
        "/api/v1/users/me/": ["Users"],
        "/api/v1/chat/send/": ["Chat"],
        "/api/v1/chat/conversations/": ["Chat"],
        "/api/v1/notifications/": ["Notifications"],
    }
    for path, tags in expected.items():
        first_op = next(iter(paths[path].values()))
        assert first_op["tags"] == tags, path

    declared = {t["name"] for t in schema["tags"]}
    assert {"Chat", "Notifications", "Users", "JWT Authentication"} <= declared
