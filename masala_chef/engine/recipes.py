"""
Recipe registry.

Recipes are static content. Each one is checked against the alias table once,
when it is loaded, so a misspelled ingredient fails at startup instead of
silently never matching during play.
"""
import logging
from typing import Dict, List, Optional

from masala_chef.engine.aliases import IngredientAliasResolver
from masala_chef.errors import RecipeDefinitionError, RecipeNotFoundError
from masala_chef.models.schemas import (
    ActionKind, IngredientKey, Milestone, RecipeDefinition, StepDefinition
)

logger = logging.getLogger(__name__)


_SPICE_SPOONS = ["1/2 tsp", "1 tsp", "1 1/2 tsp"]


ALOO_BHUJIA = RecipeDefinition(
    key="aloo_bhujia",
    name="Aloo Bhujia",
    expected_duration_seconds=5 * 60,
    base_ingredient=IngredientKey.POTATO,
    required_ingredients=[
        IngredientKey.OIL,
        IngredientKey.ZEERA,
        IngredientKey.TURMERIC,
        IngredientKey.SALT,
        IngredientKey.RED_CHILLI,
    ],
    steps=[
        StepDefinition(
            id=1,
            description="Wash the potatoes",
            target_item="potato",
            action=ActionKind.WASH,
            unlocks=[Milestone.POTATO_WASHED],
            hints=["Wash the potato", "Or place the pan on the stove"],
        ),
        StepDefinition(
            id=2,
            description="Peel the potatoes",
            target_item="potato",
            action=ActionKind.PEEL,
            result_item="potato-peeled",
            unlocks=[Milestone.POTATO_PEELED],
            hints=["Peel the potato"],
        ),
        StepDefinition(
            id=3,
            description="Dice the potatoes",
            target_item="potato",
            action=ActionKind.CHOP,
            result_item="potato-diced",
            unlocks=[Milestone.POTATO_CHOPPED],
            hints=["Chop the potato"],
        ),
        StepDefinition(
            id=4,
            description="Place pan on stove",
            target_item="pan",
            action=ActionKind.PLACE,
            result_item="pan-on-stove",
            unlocks=[Milestone.PAN_PLACED],
            hints=["Place the pan on the stove"],
        ),
        StepDefinition(
            id=5,
            description="Set stove to medium heat",
            target_item="stove",
            action=ActionKind.SET_HEAT,
            options=["low", "medium", "high"],
            preferred_option="medium",
            unlocks=[Milestone.HEAT_SET],
            hints=["Set the stove heat"],
        ),
        StepDefinition(
            id=6,
            description="Add oil to the pan",
            target_item="oil",
            action=ActionKind.ADD_OIL,
            options=["1 tbsp", "2 tbsp", "3 tbsp"],
            preferred_option="2 tbsp",
            unlocks=[Milestone.OIL_ADDED],
            hints=["Add oil to the pan"],
        ),
        StepDefinition(
            id=7,
            description="Add cumin seeds",
            target_item="container-big",
            action=ActionKind.ADD_SPICE,
            options=_SPICE_SPOONS,
            preferred_option="1 tsp",
            unlocks=[Milestone.SPICES_ADDED],
            hints=["Add spices"],
        ),
        StepDefinition(
            id=8,
            description="Add turmeric powder",
            target_item="container1",
            action=ActionKind.ADD_SPICE,
            options=["1/4 tsp", "1/2 tsp", "1 tsp"],
            preferred_option="1/2 tsp",
            unlocks=[Milestone.SPICES_ADDED],
            hints=["Add spices"],
        ),
        StepDefinition(
            id=9,
            description="Add red chilli powder",
            target_item="container2",
            action=ActionKind.ADD_SPICE,
            options=_SPICE_SPOONS,
            preferred_option="1 tsp",
            unlocks=[Milestone.SPICES_ADDED],
            hints=["Add spices"],
        ),
        StepDefinition(
            id=10,
            description="Add salt",
            target_item="salt",
            action=ActionKind.ADD_SPICE,
            options=_SPICE_SPOONS,
            preferred_option="1 tsp",
            unlocks=[Milestone.SPICES_ADDED],
            hints=["Add salt"],
        ),
        StepDefinition(
            id=11,
            description="Add diced potatoes to pan",
            target_item="potato-diced",
            action=ActionKind.ADD_INGREDIENT,
            result_item="potato-cooking",
            unlocks=[Milestone.POTATO_IN_PAN],
            hints=["Add diced potato to pan"],
        ),
        StepDefinition(
            id=12,
            description="Stir the potatoes",
            target_item="mixingSpoon",
            action=ActionKind.STIR,
            unlocks=[Milestone.STIRRED],
            hints=["Stir the potatoes"],
        ),
        StepDefinition(
            id=13,
            description="Cook until golden brown",
            target_item="pan",
            action=ActionKind.COOK,
            options=["3 min", "5 min", "7 min"],
            preferred_option="5 min",
            result_item="potato-cooked",
            unlocks=[Milestone.COOKED],
            hints=["Cook until golden brown"],
        ),
    ],
)


def validate_recipe(recipe: RecipeDefinition, resolver: IngredientAliasResolver) -> None:
    """
    Check a recipe's content against the alias table.

    Args:
        recipe: Recipe to check
        resolver: Alias table the recipe will be played with

    Raises:
        RecipeDefinitionError: If a substance step names an unknown ingredient,
            two substance steps add the same ingredient, or a required
            ingredient can never be added
    """
    added: Dict[IngredientKey, int] = {}
    for step in recipe.steps:
        if not step.is_substance_step:
            continue
        ingredient = resolver.resolve(step.target_item)
        if ingredient is None:
            raise RecipeDefinitionError(
                f"step {step.id} adds unknown ingredient '{step.target_item}'",
                details={"recipe_key": recipe.key, "step_id": step.id},
            )
        if ingredient in added:
            raise RecipeDefinitionError(
                f"steps {added[ingredient]} and {step.id} both add '{ingredient.value}'",
                details={"recipe_key": recipe.key, "step_id": step.id},
            )
        added[ingredient] = step.id

    never_added = [i.value for i in recipe.required_ingredients if i not in added]
    if never_added:
        raise RecipeDefinitionError(
            "required ingredients are not added by any step",
            details={"recipe_key": recipe.key, "ingredients": never_added},
        )

    if recipe.base_ingredient is not None and not any(
        resolver.resolve(step.target_item) == recipe.base_ingredient for step in recipe.steps
    ):
        raise RecipeDefinitionError(
            f"no step uses base ingredient '{recipe.base_ingredient.value}'",
            details={"recipe_key": recipe.key},
        )


class RecipeCatalog:
    """Registry of validated recipes, keyed by recipe key."""

    def __init__(
        self,
        recipes: Optional[List[RecipeDefinition]] = None,
        resolver: Optional[IngredientAliasResolver] = None,
    ):
        self.resolver = resolver or IngredientAliasResolver()
        self._recipes: Dict[str, RecipeDefinition] = {}
        for recipe in recipes if recipes is not None else [ALOO_BHUJIA]:
            self.register(recipe)

    def register(self, recipe: RecipeDefinition) -> None:
        validate_recipe(recipe, self.resolver)
        if recipe.key in self._recipes:
            raise RecipeDefinitionError(
                f"recipe key '{recipe.key}' registered twice",
                details={"recipe_key": recipe.key},
            )
        self._recipes[recipe.key] = recipe
        logger.debug(f"Registered recipe {recipe.key} ({recipe.total_steps} steps)")

    def get(self, key: str) -> RecipeDefinition:
        recipe = self._recipes.get(key)
        if recipe is None:
            raise RecipeNotFoundError(key)
        return recipe

    def list(self) -> List[RecipeDefinition]:
        return list(self._recipes.values())

    def __contains__(self, key: str) -> bool:
        return key in self._recipes


_default_catalog: Optional[RecipeCatalog] = None


def get_catalog() -> RecipeCatalog:
    """Get the process-wide catalog (built on first use)."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = RecipeCatalog()
    return _default_catalog
