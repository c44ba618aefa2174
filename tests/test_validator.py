"""Tests for the schema validator and the global config schema."""

import pytest

from zonectl.schema import GLOBAL_CONFIG_SCHEMA, get_config_file_schema
from zonectl.validator import (
    SchemaNode,
    bool_value,
    elem_of,
    executable_path,
    ip_address,
    novnc_path,
    regexp,
    validate,
)


class TestPredicates:
    def test_elem_of_is_case_sensitive(self):
        check = elem_of("on", "off")
        assert check("on") is None
        assert check("ON") is not None
        assert check(True) is not None

    def test_regexp_uses_custom_message(self):
        check = regexp(r"^.$", "expected a single character")
        assert check("_") is None
        assert check("ab") == "expected a single character"

    def test_bool_value_accepts_words_and_booleans(self):
        check = bool_value()
        for value in ("on", "off", "yes", "no", "true", "false", True, False):
            assert check(value) is None
        assert check("maybe") is not None

    @pytest.mark.parametrize(
        "address", ["*", "127.0.0.1", "0.0.0.0", "::1", "[::1]", "[fe80::1]", "::", "[::1", "::1]"]
    )
    def test_ip_address_valid(self, address):
        assert ip_address()(address) is None

    @pytest.mark.parametrize("address", ["localhost", "300.1.1.1", "[127.0.0.1]", "", 5])
    def test_ip_address_invalid(self, address):
        assert ip_address()(address) == "not a valid IP address"

    def test_novnc_path(self, tmp_path):
        check = novnc_path()
        assert check(str(tmp_path / "missing")) is not None
        assert "vnc.html" in check(str(tmp_path))

        (tmp_path / "vnc.html").write_text("<html></html>")
        assert check(str(tmp_path)) is None

    def test_executable_path(self, tmp_path):
        script = tmp_path / "tool"
        script.write_text("#!/bin/sh\n")
        check = executable_path()
        assert check(str(script)) is not None

        script.chmod(0o755)
        assert check(str(script)) is None


class TestValidate:
    SCHEMA = {
        "name": SchemaNode(validator=regexp(r"^\w+$", "bad name")),
        "net": SchemaNode(
            optional=True,
            members={"physical": SchemaNode(), "vlan": SchemaNode(optional=True)},
        ),
    }

    def test_valid_document(self):
        assert validate({"name": "web", "net": {"physical": "web0"}}, self.SCHEMA) == []

    def test_missing_mandatory_member(self):
        errors = validate({"net": {"physical": "web0"}}, self.SCHEMA)
        assert errors == ["name: mandatory member is missing"]

    def test_all_violations_are_reported(self):
        """Validation keeps going after the first problem."""
        errors = validate(
            {"name": "bad name", "extra": 1, "net": {"vlan": 3, "mtu": 9000}},
            self.SCHEMA,
        )
        assert "extra: unknown member" in errors
        assert "net.mtu: unknown member" in errors
        assert "net.physical: mandatory member is missing" in errors
        assert any(e.startswith("name: bad name") for e in errors)
        assert len(errors) == 4

    def test_branch_requires_mapping(self):
        errors = validate({"name": "web", "net": "web0"}, self.SCHEMA)
        assert errors == ["net: expected a mapping, got str"]

    def test_root_requires_mapping(self):
        assert validate(["web"], self.SCHEMA) == ["root: expected a mapping, got list"]


class TestGlobalConfigSchema:
    def test_empty_config_is_valid(self):
        assert validate({}, GLOBAL_CONFIG_SCHEMA) == []

    def test_full_config_is_valid(self):
        config = {
            "CONFIG": {"format": "toml"},
            "CONSOLE": {"auto_connect": "on", "auto_disconnect": "off", "escape_char": "_"},
            "SNAPSHOT": {"prefix": "zonectl__"},
            "VNC": {"bind_address": "[::1]", "auto_connect": "on"},
        }
        assert validate(config, GLOBAL_CONFIG_SCHEMA) == []

    def test_unknown_section_and_bad_format_are_both_reported(self):
        errors = validate(
            {"CONFIG": {"format": "xml"}, "NETWORK": {}}, GLOBAL_CONFIG_SCHEMA
        )
        assert len(errors) == 2
        assert "NETWORK: unknown member" in errors
        assert any(e.startswith("CONFIG.format:") for e in errors)

    def test_snapshot_prefix_rejects_spaces(self):
        errors = validate({"SNAPSHOT": {"prefix": "my snap"}}, GLOBAL_CONFIG_SCHEMA)
        assert len(errors) == 1
        assert "alphanumeric" in errors[0]

    def test_schema_document(self):
        doc = get_config_file_schema()
        assert set(doc["sections"]) == {"CONFIG", "CONSOLE", "SNAPSHOT", "VNC"}
        fmt = doc["sections"]["CONFIG"]["fields"]["format"]
        assert fmt["required"] is False
        assert fmt["example"] == '"format" : "toml"'
