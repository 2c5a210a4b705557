"""
Tests for virtual endpoint construction and the template catalog.
"""

import pytest

from api_explorer.schemas.virtual_endpoint import DEFAULT_EXECUTION_TIMEOUT_MS, VirtualEndpointCreate
from api_explorer.services.templates import VIRTUAL_ENDPOINT_TEMPLATES, get_template, get_template_list
from api_explorer.services.virtual_endpoint_factory import (
    DEFAULT_CALLABLE_NAME,
    DEFAULT_NAME,
    DEFAULT_PATH,
    callable_name,
    create_virtual_endpoint,
    update_virtual_endpoint,
)


class TestCreateVirtualEndpoint:

    def test_defaults(self):
        endpoint = create_virtual_endpoint({})

        assert endpoint.id.startswith("virtual-")
        assert endpoint.name == DEFAULT_NAME
        assert endpoint.title == endpoint.name
        assert endpoint.path == DEFAULT_PATH
        assert endpoint.url == endpoint.path
        assert endpoint.method == "GET"
        assert endpoint.type == "virtual"
        assert endpoint.tags == []
        assert endpoint.config.timeout == DEFAULT_EXECUTION_TIMEOUT_MS
        assert endpoint.config.cancel_on_timeout is False
        assert endpoint.created_at == endpoint.updated_at

    def test_none_values_fall_back_to_defaults(self):
        endpoint = create_virtual_endpoint({"name": None, "path": None, "config": {"timeout": None}})

        assert endpoint.name == DEFAULT_NAME
        assert endpoint.path == DEFAULT_PATH
        assert endpoint.config.timeout == DEFAULT_EXECUTION_TIMEOUT_MS

    def test_from_create_schema(self):
        data = VirtualEndpointCreate(
            id="virtual-profile",
            name="Profile",
            path="/virtual/profile/:id",
            method="POST",
            tags=["users"],
            code="return 1",
            config={"timeout": 500, "cancel_on_timeout": True},
        )

        endpoint = create_virtual_endpoint(data)

        assert endpoint.id == "virtual-profile"
        assert endpoint.title == "Profile"
        assert endpoint.url == "/virtual/profile/:id"
        assert endpoint.method == "POST"
        assert endpoint.tags == ["users"]
        assert endpoint.config.timeout == 500
        assert endpoint.config.cancel_on_timeout is True

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            create_virtual_endpoint("not a definition")


class TestUpdateVirtualEndpoint:

    def test_keeps_identity_and_unchanged_fields(self):
        existing = create_virtual_endpoint({"id": "virtual-1", "name": "Old", "path": "/virtual/old", "code": "return 1"})

        updated = update_virtual_endpoint(existing, {"name": "New", "code": None})

        assert updated.id == "virtual-1"
        assert updated.created_at == existing.created_at
        assert updated.updated_at >= existing.updated_at
        assert updated.name == "New"
        assert updated.title == "New"
        assert updated.path == "/virtual/old"
        assert updated.code == "return 1"

    def test_config_is_replaced_wholesale(self):
        existing = create_virtual_endpoint({"config": {"timeout": 500, "cancel_on_timeout": True}})

        updated = update_virtual_endpoint(existing, {"config": {"timeout": 2000}})

        assert updated.config.timeout == 2000
        assert updated.config.cancel_on_timeout is False


class TestCallableName:

    @pytest.mark.parametrize("name, expected", [
        ("User Profile (v2)", "User_Profile_v2"),
        ("42 things", "_42_things"),
        ("class", "class_"),
        ("already_valid", "already_valid"),
        ("", DEFAULT_CALLABLE_NAME),
        ("!!!", DEFAULT_CALLABLE_NAME),
        (None, DEFAULT_CALLABLE_NAME),
    ])
    def test_callable_name(self, name, expected):
        assert callable_name(name) == expected


class TestTemplates:

    def test_catalog_lists_every_template(self):
        summaries = get_template_list()

        assert len(summaries) == 13
        assert [summary.key for summary in summaries] == list(VIRTUAL_ENDPOINT_TEMPLATES)
        assert summaries[0].key == "blank"

    def test_get_template(self):
        template = get_template("pagination")
        assert template.name == "Pagination Wrapper"
        assert "context.get" in template.code

    @pytest.mark.parametrize("key", ["does-not-exist", "", None])
    def test_unknown_key_falls_back_to_blank(self, key):
        assert get_template(key) == get_template("blank")
