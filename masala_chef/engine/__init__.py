"""
Recipe progression and scoring engine.

The engine is a small interpreter over a static recipe:
1. IngredientAliasResolver - maps on-screen labels to canonical ingredients
2. PrerequisiteGraph - milestones each action kind requires
3. StepValidator - decides whether an attempt is legal right now
4. ProgressionMutator / ScoringLedger - commit steps and keep score

RecipeSession wires them together for one play-through.
"""

from masala_chef.engine.aliases import IngredientAliasResolver, DEFAULT_ALIASES
from masala_chef.engine.prerequisites import PrerequisiteGraph, DEFAULT_PREREQUISITES
from masala_chef.engine.progress import ProgressTracker
from masala_chef.engine.recipes import ALOO_BHUJIA, RecipeCatalog, get_catalog, validate_recipe
from masala_chef.engine.validator import StepValidator
from masala_chef.engine.scoring import ScoringLedger, format_elapsed
from masala_chef.engine.progression import ProgressionMutator
from masala_chef.engine.session import RecipeSession

__all__ = [
    # Content
    "IngredientAliasResolver",
    "DEFAULT_ALIASES",
    "PrerequisiteGraph",
    "DEFAULT_PREREQUISITES",
    "ALOO_BHUJIA",
    "RecipeCatalog",
    "get_catalog",
    "validate_recipe",
    # Session components
    "ProgressTracker",
    "StepValidator",
    "ScoringLedger",
    "ProgressionMutator",
    "format_elapsed",
    # Facade
    "RecipeSession",
]
