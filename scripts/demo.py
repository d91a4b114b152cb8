#!/usr/bin/env python3
"""
Demo script for the Masala Chef recipe engine.
Cooks Aloo Bhujia with a few typical player slips to show validation and scoring.
"""
from masala_chef.cli import ManualClock
from masala_chef.engine.scoring import format_elapsed
from masala_chef.engine.session import RecipeSession
from masala_chef.models.schemas import StepAttempt


def print_section(title: str):
    """Print a formatted section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70 + "\n")


def attempt(session, action, target, option=None, seconds=15):
    """Validate an action and, when legal, complete the step it resolves to."""
    result = session.validate(StepAttempt(action=action, target_item=target))
    label = f"{action} {target}"

    if not result.legal:
        print(f"  ✗ {label:32} → {result.reason}")
        return None
    if result.duplicate:
        print(f"  ○ {label:32} → already in the pan, nothing happens")
        return None

    session.clock.advance(seconds)
    completion = session.complete_step(result.step_id, option)
    print(f"  ✓ {label:32} → step {completion.step.id} ({completion.points:+d}, total {session.score})")
    return completion


def main():
    """Run the engine demonstration."""
    print_section("Masala Chef Engine Demo")

    session = RecipeSession("aloo_bhujia", clock=ManualClock())
    session.start()
    print(f"✓ Started {session.recipe.name} ({session.recipe.total_steps} steps, "
          f"target time {format_elapsed(session.recipe.expected_duration_seconds)})")

    # STEP 1: Prerequisites
    print_section("STEP 1: Prepare the Potato")

    attempt(session, "wash", "potato")
    session.select_base_ingredient()
    print("  ✓ Picked a potato from the basket")
    attempt(session, "wash", "potato")
    attempt(session, "place", "pan")
    attempt(session, "peel", "potato")
    attempt(session, "chop", "potato")

    # STEP 2: Heat and oil
    print_section("STEP 2: Heat the Pan")

    attempt(session, "add_spice", "haldi")
    attempt(session, "set_heat", "stove", option="high")
    attempt(session, "add_oil", "haldi")
    attempt(session, "add_oil", "oil", option="2 tbsp")

    # STEP 3: Spices in any order once the oil is in
    print_section("STEP 3: Add Spices (Any Order)")

    print("Legal right now:")
    for step in session.get_next_steps():
        print(f"  • {step.id:2}. {step.description}")
    print()

    attempt(session, "add_spice", "haldi", option="1/2 tsp")
    attempt(session, "add_spice", "redChilli", option="1 tsp")
    attempt(session, "add_spice", "turmeric", option="1/2 tsp")
    attempt(session, "add_spice", "cumin seeds", option="1 tsp")
    attempt(session, "add_ingredient", "potato-diced")

    # STEP 4: Finish without salt
    print_section("STEP 4: Forget the Salt and Serve")

    attempt(session, "stir", "mixingSpoon")
    progress = session.get_progress()
    print(f"\nStopping at {progress.completed}/{progress.total} steps ({progress.percentage:.0f}%)")

    summary = session.finalize()

    print_section("RESULT")

    print(f"Score:      {summary.score} (raw {summary.raw_score})")
    print(f"Time:       {format_elapsed(summary.elapsed_seconds)} (bonus {summary.time_bonus})")
    print(f"Ingredients: {', '.join(f'{k.value}={v}' for k, v in summary.ingredient_log.items())}")
    print("\nMistakes:")
    for mistake in summary.mistakes:
        print(f"  • [{mistake.kind.value}] {mistake.description}")

    print("\n" + "=" * 70)
    print("  Demo Complete ✨")
    print("=" * 70 + "\n")


if __name__ == '__main__':
    main()
