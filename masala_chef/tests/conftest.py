"""
Shared pytest fixtures for Masala Chef engine tests.

This module provides common fixtures for:
- A manual clock for deterministic timing
- Sessions on the default Aloo Bhujia recipe
- A helper that validates and completes a sequence of steps
- FastAPI test client with an isolated session registry
"""
import pytest
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional

from fastapi.testclient import TestClient

from masala_chef.cli import ManualClock
from masala_chef.config import get_settings
from masala_chef.engine.recipes import ALOO_BHUJIA
from masala_chef.engine.session import RecipeSession
from masala_chef.main import app
from masala_chef.services.session_service import SessionService, get_session_service


START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

# Preferred option for every step that declares one
PREFERRED: Dict[int, str] = {
    step.id: step.preferred_option for step in ALOO_BHUJIA.steps if step.preferred_option
}


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def clock() -> ManualClock:
    """Clock fixed at START until advanced."""
    return ManualClock(START)


@pytest.fixture
def config():
    """Settings with default scoring constants and lenient content checks."""
    return get_settings(debug=False)


@pytest.fixture
def session(clock, config) -> RecipeSession:
    """Started Aloo Bhujia session with the potato already selected."""
    s = RecipeSession("aloo_bhujia", config=config, clock=clock)
    s.start()
    s.select_base_ingredient()
    return s


@pytest.fixture
def cook() -> Callable:
    """
    Validate and complete steps in the given order.

    Usage:
        cook(session, [1, 2, 3], options={5: "high"})

    Steps without an explicit option use their preferred option.
    """
    def _cook(
        s: RecipeSession,
        step_ids: Iterable[int],
        options: Optional[Dict[int, Optional[str]]] = None,
        seconds_per_step: float = 0,
    ):
        options = options or {}
        completions = []
        for step_id in step_ids:
            step = s.get_step(step_id)
            result = s.validate(step.action.value, step.target_item, step_id=step_id)
            assert result.legal, f"step {step_id} rejected: {result.reason}"
            assert not result.duplicate
            if seconds_per_step:
                s.clock.advance(seconds_per_step)
            option = options.get(step_id, PREFERRED.get(step_id))
            completions.append(s.complete_step(step_id, option))
        return completions

    return _cook


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def session_service(clock) -> SessionService:
    """Fresh in-memory registry per test."""
    return SessionService(config=get_settings(debug=False, max_active_sessions=3), clock=clock)


@pytest.fixture
def client(session_service) -> TestClient:
    """FastAPI test client using the isolated registry."""
    app.dependency_overrides[get_session_service] = lambda: session_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
