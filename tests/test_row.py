"""Tests for the Row record class."""

import pytest

from fieldvals.errors import InvalidField
from fieldvals.fields import FieldSet
from fieldvals.row import Row


FIELDS = ["Name", "Author", "Tag"]


@pytest.fixture
def row():
    return Row(FIELDS, {"Name": "Beyond", "Author": "Doe,Jane", "Tag": ["zine", "sf"]})


class TestRowValues:
    """Tests for reading and writing field values."""

    def test_every_field_is_present(self):
        """Test that a new row knows all fields but has no values."""
        row = Row(FIELDS)

        assert list(row) == FIELDS
        assert "Tag" in row
        assert row.get("Tag") is None
        assert row.get_all("Tag") is None
        assert row.as_dict() == {}

    def test_unknown_field_in_constructor(self):
        """Test that initial values must use declared fields."""
        with pytest.raises(InvalidField):
            Row(FIELDS, {"Colour": "red"})

    def test_get_index_rules(self, row):
        """Test clamping of value indices."""
        assert row.get("Tag") == "zine"
        assert row.get("Tag", 1) == "sf"
        assert row.get("Tag", 5) == "sf"
        assert row.get("Tag", -1) == "zine"

    def test_get_unknown_field(self, row):
        """Test that reading an unknown field returns None."""
        assert row.get("Colour") is None
        assert row.count("Colour") == 0

    def test_get_all_is_a_copy(self, row):
        """Test that get_all does not expose internal state."""
        row.get_all("Tag").append("x")

        assert row.get_all("Tag") == ["zine", "sf"]

    def test_set_scalar(self, row):
        """Test that a scalar without an index replaces all values."""
        row.set("Tag", "fandom")

        assert row.get_all("Tag") == ["fandom"]

    def test_set_list(self, row):
        """Test that a list replaces all values."""
        row.set("Tag", ["a", "b", "c"])

        assert row.count("Tag") == 3
        row.set("Tag", [])
        assert row.get_all("Tag") is None

    def test_set_with_index(self, row):
        """Test indexed writes: replace, append past the end, negative replaces first."""
        row.set("Tag", "SF", 1)
        assert row.get_all("Tag") == ["zine", "SF"]

        row.set("Tag", "new", 10)
        assert row.get_all("Tag") == ["zine", "SF", "new"]

        row.set("Tag", "first", -2)
        assert row.get_all("Tag") == ["first", "SF", "new"]

    def test_set_none_removes(self, row):
        """Test that setting None removes the values."""
        row.set("Name", None)

        assert row.get("Name") is None
        assert "Name" not in row.as_dict()

    def test_set_unknown_field_raises(self, row):
        """Test that writing an undeclared field raises."""
        with pytest.raises(InvalidField) as exc_info:
            row.set("Colour", "red")

        assert str(exc_info.value) == "Field 'Colour' not found"

    def test_delete_and_clear(self, row):
        """Test deleting one field and clearing them all."""
        assert row.delete("Tag") == ["zine", "sf"]
        assert row.get("Tag") is None

        row.clear()
        assert row.as_dict() == {}

    def test_update(self, row):
        """Test setting several fields at once."""
        row.update({"Name": "Other", "Tag": ("x",)})

        assert row.as_dict() == {"Name": ["Other"], "Author": ["Doe,Jane"], "Tag": ["x"]}

    def test_copy_is_independent(self, row):
        """Test that copies do not share values."""
        other = row.copy()
        other.set("Tag", "only")

        assert row.get_all("Tag") == ["zine", "sf"]
        assert other == {"Name": "Beyond", "Author": "Doe,Jane", "Tag": "only"}

    def test_equality(self, row):
        """Test comparison with rows and mappings."""
        assert row == Row(FIELDS, {"Name": "Beyond", "Author": "Doe,Jane", "Tag": ["zine", "sf"]})
        assert row != {"Name": "Beyond"}
        assert row != {"Colour": "red"}


class TestRowMatching:
    """Tests for pattern matching on rows."""

    def test_matches_all_criteria(self, row):
        """Test that every criterion must match."""
        assert row.matches({"Name": "^Bey", "Tag": "zine"})
        assert not row.matches({"Name": "^Bey", "Author": "Smith"})

    def test_matches_uses_first_value(self, row):
        """Test that criteria test the first value of a field."""
        assert not row.matches({"Tag": "^sf$"})

    def test_missing_value_never_matches(self, row):
        """Test that absent or unknown fields fail a criterion."""
        row.set("Name", None)

        assert not row.matches({"Name": "!x"})
        assert not row.matches({"Colour": "red"})

    def test_matches_any(self, row):
        """Test matching any field."""
        assert row.matches_any("Jane")
        assert not row.matches_any("Smith")


class TestRowEncoding:
    """Tests for text and markup conversion."""

    def test_to_text(self, row):
        """Test text output in field order."""
        assert row.to_text() == "Name:Beyond\nAuthor:Doe,Jane\nTag:zine\nTag:sf"

    def test_from_text(self):
        """Test building a row from text."""
        row = Row.from_text("Tag:a\nName:n\nmore", FIELDS)

        assert row.get("Name") == "n\nmore"
        assert row.get("Tag") == "a"

    def test_set_from_text_override_fields(self, row):
        """Test that override_fields takes the field list from the text."""
        row.set_from_text("Colour:red\nSize:9", override_fields=True)

        assert row.field_names() == ["Colour", "Size"]
        assert row.get("Colour") == "red"
        assert row.get("Name") is None

    def test_markup_round_trip(self, row):
        """Test markup output decodes back into the same row."""
        other = Row(FIELDS)
        other.set_from_markup(row.to_markup())

        assert other == row

    def test_set_from_markup_override_fields(self):
        """Test reading markup with its own field list."""
        row = Row(FieldSet(["Name"]))
        row.set_from_markup("<record><Colour>red</Colour></record>", override_fields=True)

        assert row.field_names() == ["Colour"]


class TestTemplateVars:
    """Tests for report template variables."""

    def test_nice_value(self):
        """Test reordering around a separator."""
        assert Row.nice_value("Author", "Doe,Jane", {"Author": ","}) == "Jane Doe"
        assert Row.nice_value("Author", "Jane", {"Author": ","}) == "Jane"
        assert Row.nice_value("Name", "Doe,Jane", {"Author": ","}) == "Doe,Jane"
        assert Row.nice_value("Author", "Doe,Jane") == "Doe,Jane"

    def test_template_vars(self, row):
        """Test the generated variable names and values."""
        out = row.template_vars(field_index=1, reorder_rules={"Author": ","})

        assert out["Name"] == "Beyond"
        assert out["Tag"] == "sf"
        assert out["Tag_all"] == ["zine", "sf"]
        assert out["Nice_Author"] == "Jane Doe"
        assert out["Nice_Author_all"] == ["Jane Doe"]

    def test_template_vars_prefix(self, row):
        """Test a custom prefix for display values."""
        out = row.template_vars(nice_prefix="Pretty")

        assert "PrettyName" in out
        assert "Nice_Name" not in out
