"""
Demo Scenario Loader

Loads a marketplace scenario into the hosted database.
Usage: python -m app.scripts.load_demo --scenario seed
       python -m app.scripts.load_demo --scenario generated --tutors 30 --students 100 --seed 7
"""
import asyncio
import argparse
from typing import Optional

from app.database import AsyncSessionLocal, Base, engine
from app.domain.records import AppState
from app.services.data_generator import DataGenerator
from app.services.hosted_backend import SqlMarketplaceBackend
from app.services.seed_data import build_initial_state

SCENARIOS = ["seed", "generated"]


def build_scenario(
    scenario_name: str,
    num_tutors: int = 20,
    num_students: int = 60,
    seed: Optional[int] = None,
) -> AppState:
    """
    Build the snapshot for a scenario.

    Raises:
        ValueError: If the scenario is unknown
    """
    if scenario_name == "seed":
        return build_initial_state()
    if scenario_name == "generated":
        generator = DataGenerator(num_tutors=num_tutors, num_students=num_students, seed=seed)
        return generator.generate_state()
    raise ValueError(f"Unknown scenario '{scenario_name}'. Available scenarios: {', '.join(SCENARIOS)}")


async def create_tables():
    """Create any missing tables (local development without Alembic)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✓ Tables ready")


async def load_scenario(
    scenario_name: str,
    num_tutors: int = 20,
    num_students: int = 60,
    seed: Optional[int] = None,
    backend: Optional[SqlMarketplaceBackend] = None,
):
    """
    Replace the marketplace tables with a scenario.

    Args:
        scenario_name: "seed" for the fixed demo data, "generated" for Faker data
    """
    state = build_scenario(scenario_name, num_tutors=num_tutors, num_students=num_students, seed=seed)
    print(f"\nLoading '{scenario_name}' scenario...")

    backend = backend or SqlMarketplaceBackend(AsyncSessionLocal)
    await backend.load_state(state)

    print(f"  Loaded {len(state.tutors)} tutors and {len(state.students)} students")
    print(f"  Loaded {len(state.sessions)} sessions and {len(state.payments)} payments")
    print(f"\n✅ Scenario '{scenario_name}' loaded successfully!")


def main():
    """CLI entry point"""
    parser = argparse.ArgumentParser(description="Load demo scenarios")
    parser.add_argument(
        "--scenario",
        "-s",
        choices=SCENARIOS,
        required=True,
        help="Scenario to load"
    )
    parser.add_argument("--tutors", type=int, default=20, help="Tutors to generate")
    parser.add_argument("--students", type=int, default=60, help="Students to generate")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for generated data")
    parser.add_argument("--create-tables", action="store_true", help="Create tables before loading")

    args = parser.parse_args()

    async def run():
        if args.create_tables:
            await create_tables()
        await load_scenario(args.scenario, args.tutors, args.students, args.seed)

    asyncio.run(run())


if __name__ == "__main__":
    main()
