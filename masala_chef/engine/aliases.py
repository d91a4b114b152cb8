"""
Ingredient alias resolution.

The same substance is labelled differently across the kitchen: recipe text says
"turmeric", the player may know it as "haldi", and the shelf sprite the player
clicks is "container1". All of them resolve to one canonical IngredientKey.
"""
from typing import Dict, List, Optional

from masala_chef.errors import RecipeDefinitionError
from masala_chef.models.schemas import IngredientKey


DEFAULT_ALIASES: Dict[IngredientKey, List[str]] = {
    IngredientKey.POTATO: ["potato", "potato-raw", "potato-peeled", "potato-diced"],
    IngredientKey.OIL: ["oil", "cooking oil"],
    IngredientKey.ZEERA: ["zeera", "cumin", "cumin seeds", "jeera", "container-big"],
    IngredientKey.TURMERIC: ["turmeric", "haldi", "turmeric powder", "container1"],
    IngredientKey.RED_CHILLI: [
        "redChilli",
        "red chilli",
        "red chili powder",
        "red chilli powder",
        "chilli powder",
        "container2",
    ],
    IngredientKey.SALT: ["salt"],
}


def _normalize(name: str) -> str:
    return name.strip().lower()


class IngredientAliasResolver:
    """Map display strings to canonical ingredient keys (case-insensitive, exact)."""

    def __init__(self, aliases: Optional[Dict[IngredientKey, List[str]]] = None):
        table = DEFAULT_ALIASES if aliases is None else aliases
        self._lookup: Dict[str, IngredientKey] = {}

        for key, names in table.items():
            key = IngredientKey(key)
            # The canonical key always resolves to itself
            for name in [key.value, *names]:
                normalized = _normalize(name)
                existing = self._lookup.get(normalized)
                if existing is not None and existing != key:
                    raise RecipeDefinitionError(
                        f"alias '{name}' refers to both '{existing.value}' and '{key.value}'",
                        details={"alias": name},
                    )
                self._lookup[normalized] = key

    def resolve(self, display_name: Optional[str]) -> Optional[IngredientKey]:
        """
        Resolve a display name or key to its canonical ingredient.

        Args:
            display_name: Any accepted label, e.g. "Haldi" or "container1"

        Returns:
            The canonical IngredientKey, or None when unresolved
        """
        if not display_name:
            return None
        return self._lookup.get(_normalize(display_name))

    def is_same_ingredient(self, a: str, b: str) -> bool:
        """True iff both names are equal or resolve to the same ingredient."""
        if a is None or b is None:
            return False
        if _normalize(a) == _normalize(b):
            return True
        key_a = self.resolve(a)
        return key_a is not None and key_a == self.resolve(b)

    def aliases_for(self, key: IngredientKey) -> List[str]:
        """All accepted labels for an ingredient, normalized."""
        return sorted(name for name, value in self._lookup.items() if value == key)
