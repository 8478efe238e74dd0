"""Tests for field name sets."""

import pytest

from fieldvals.errors import InvalidField
from fieldvals.fields import FieldSet, as_field_set, is_field_name


class TestFieldNames:
    """Tests for field name syntax."""

    @pytest.mark.parametrize("name", ["Name", "a", "First-Name", "field_2"])
    def test_legal(self, name):
        """Test legal field names."""
        assert is_field_name(name)

    @pytest.mark.parametrize("name", ["", "2nd", "-x", "has space", "colon:"])
    def test_illegal(self, name):
        """Test illegal field names."""
        assert not is_field_name(name)


class TestFieldSet:
    """Tests for the FieldSet class."""

    def test_order_and_duplicates(self):
        """Test that names keep insertion order without duplicates."""
        fields = FieldSet(["Name", "Year"])

        assert fields.add("Tag") is True
        assert fields.add("Name") is False
        assert fields.names == ["Name", "Year", "Tag"]
        assert len(fields) == 3
        assert fields == ["Name", "Year", "Tag"]

    def test_case_sensitive(self):
        """Test that names differing in case are distinct."""
        fields = FieldSet(["name", "Name"])

        assert len(fields) == 2
        assert "NAME" not in fields

    def test_illegal_name_rejected(self):
        """Test that add() refuses illegal names."""
        with pytest.raises(ValueError):
            FieldSet(["9lives"])

    def test_require(self):
        """Test require() on known and unknown names."""
        fields = FieldSet(["Name"])

        assert fields.require("Name") == "Name"
        with pytest.raises(InvalidField) as exc_info:
            fields.require("Year")

        assert exc_info.value.known == ["Name"]

    def test_names_is_a_copy(self):
        """Test that the names list cannot mutate the set."""
        fields = FieldSet(["Name"])
        fields.names.append("Year")

        assert "Year" not in fields

    def test_copy_and_coerce(self):
        """Test copying and coercing to a FieldSet."""
        fields = FieldSet(["Name"])
        copied = fields.copy()
        copied.add("Year")

        assert fields.names == ["Name"]
        assert as_field_set(fields) is fields
        assert as_field_set(["A", "B"]) == FieldSet(["A", "B"])
