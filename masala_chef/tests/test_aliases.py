"""
Tests for ingredient alias resolution.
"""
import pytest

from masala_chef.engine.aliases import IngredientAliasResolver
from masala_chef.errors import RecipeDefinitionError
from masala_chef.models.schemas import IngredientKey


@pytest.fixture
def resolver():
    return IngredientAliasResolver()


class TestResolve:
    """Tests for resolve()."""

    @pytest.mark.parametrize("name,expected", [
        ("turmeric", IngredientKey.TURMERIC),
        ("haldi", IngredientKey.TURMERIC),
        ("container1", IngredientKey.TURMERIC),
        ("zeera", IngredientKey.ZEERA),
        ("jeera", IngredientKey.ZEERA),
        ("Cumin Seeds", IngredientKey.ZEERA),
        ("container-big", IngredientKey.ZEERA),
        ("redChilli", IngredientKey.RED_CHILLI),
        ("red_chilli", IngredientKey.RED_CHILLI),
        ("Red Chili Powder", IngredientKey.RED_CHILLI),
        ("potato-diced", IngredientKey.POTATO),
        ("salt", IngredientKey.SALT),
    ])
    def test_accepted_names(self, resolver, name, expected):
        """Every accepted label should resolve to its canonical key."""
        assert resolver.resolve(name) == expected

    def test_case_insensitive(self, resolver):
        """Matching should ignore case and surrounding whitespace."""
        assert resolver.resolve("HALDI") == IngredientKey.TURMERIC
        assert resolver.resolve("  Container1 ") == IngredientKey.TURMERIC

    def test_no_partial_matching(self, resolver):
        """Prefixes and misspellings should not resolve."""
        assert resolver.resolve("turm") is None
        assert resolver.resolve("haldii") is None

    def test_unknown_and_empty(self, resolver):
        """Unknown or empty names should be unresolved."""
        assert resolver.resolve("onion") is None
        assert resolver.resolve("") is None
        assert resolver.resolve(None) is None


class TestIsSameIngredient:
    """Tests for is_same_ingredient()."""

    def test_alias_transparency(self, resolver):
        """Different names for one substance are the same ingredient."""
        assert resolver.is_same_ingredient("turmeric", "haldi") is True
        assert resolver.is_same_ingredient("container-big", "cumin") is True

    def test_different_ingredients(self, resolver):
        """Names of different substances are not the same ingredient."""
        assert resolver.is_same_ingredient("haldi", "zeera") is False
        assert resolver.is_same_ingredient("salt", "oil") is False

    def test_literal_equality_for_non_ingredients(self, resolver):
        """Equal strings match even when they are not ingredients."""
        assert resolver.is_same_ingredient("pan", "Pan") is True
        assert resolver.is_same_ingredient("pan", "stove") is False

    def test_unresolved_never_match_each_other(self, resolver):
        """Two different unknown names should not match."""
        assert resolver.is_same_ingredient("onion", "garlic") is False


class TestCustomTable:
    """Tests for custom alias tables."""

    def test_custom_table(self):
        """A custom table should replace the default one."""
        resolver = IngredientAliasResolver({IngredientKey.SALT: ["namak"]})
        assert resolver.resolve("namak") == IngredientKey.SALT
        assert resolver.resolve("haldi") is None

    def test_conflicting_alias_rejected(self):
        """An alias may refer to only one ingredient."""
        with pytest.raises(RecipeDefinitionError) as exc_info:
            IngredientAliasResolver({
                IngredientKey.SALT: ["white powder"],
                IngredientKey.TURMERIC: ["White Powder"],
            })
        assert "white powder" in exc_info.value.message.lower()

    def test_aliases_for(self, resolver):
        """aliases_for should list every accepted label, normalized."""
        names = resolver.aliases_for(IngredientKey.TURMERIC)
        assert "haldi" in names
        assert "turmeric" in names
        assert "zeera" not in names
