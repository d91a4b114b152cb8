"""
Recipe catalog API routes (read only).
"""
from typing import List

from fastapi import APIRouter, HTTPException

from masala_chef.engine.recipes import get_catalog
from masala_chef.errors import RecipeNotFoundError
from masala_chef.models.schemas import RecipeDefinition

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


@router.get("", response_model=List[RecipeDefinition])
def list_recipes():
    """List all playable recipes."""
    return get_catalog().list()


@router.get("/{recipe_key}", response_model=RecipeDefinition)
def get_recipe(recipe_key: str):
    """Get one recipe with its steps."""
    try:
        return get_catalog().get(recipe_key)
    except RecipeNotFoundError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "error_code": e.error_code.value,
                "message": e.message,
                "details": e.details,
            },
        )
