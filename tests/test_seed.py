"""
HealthFinder API — Seeding Command Tests
==========================================

What:  Dataset loading, import into an empty store, skip on a populated
       store, and the destructive reset.
"""

import json
from pathlib import Path

import pytest
from sqlalchemy import func, select

from healthfinder.database import async_session_factory
from healthfinder.models import Clinic, Review
from healthfinder.seed import build_parser, load_dataset, main, seed_database

DATASET = Path(__file__).resolve().parent.parent / "data" / "clinics.json"


async def _count(model):
    async with async_session_factory() as session:
        return (await session.execute(select(func.count(model.id)))).scalar_one()


@pytest.fixture
def small_dataset(tmp_path):
    path = tmp_path / "clinics.json"
    path.write_text(
        json.dumps(
            [
                {
                    "region": "Stockholm",
                    "clinic_operation": "Närakut",
                    "clinic_type": "Närakut",
                    "clinic_name": " Närakut Haninge ",
                    "address": "Hantverkarvägen 11, Haninge",
                    "open_hours": "Mån-Sön 08-22",
                    "drop_in": None,
                    "review_count": 99,
                },
                {"region": "Uppsala", "clinic_name": "Vårdcentralen Gränby"},
            ]
        ),
        encoding="utf-8",
    )
    return str(path)


class TestLoadDataset:

    @pytest.mark.asyncio
    async def test_bundled_dataset_loads(self):
        records = await load_dataset(str(DATASET))
        assert len(records) > 0
        assert all(set(r) == {
            "region", "clinic_operation", "clinic_type", "clinic_name",
            "address", "open_hours", "drop_in",
        } for r in records)

    @pytest.mark.asyncio
    async def test_values_are_cleaned(self, small_dataset):
        first, second = await load_dataset(small_dataset)
        assert first["clinic_name"] == "Närakut Haninge"
        assert first["drop_in"] == ""
        assert "review_count" not in first
        assert second["address"] == ""

    @pytest.mark.asyncio
    async def test_non_array_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"region": "Stockholm"}', encoding="utf-8")
        with pytest.raises(ValueError, match="JSON array"):
            await load_dataset(str(path))


class TestSeedDatabase:

    @pytest.mark.asyncio
    async def test_imports_into_empty_store(self, prepared_store, small_dataset):
        assert await seed_database(small_dataset) == 2
        assert await _count(Clinic) == 2

        async with async_session_factory() as session:
            clinics = (await session.execute(select(Clinic))).scalars().all()
        assert all(c.review_count == 0 and c.average_rating == 0 for c in clinics)

    @pytest.mark.asyncio
    async def test_populated_store_is_left_alone(self, prepared_store, small_dataset):
        await seed_database(small_dataset)
        assert await seed_database(small_dataset) == 0
        assert await _count(Clinic) == 2

    @pytest.mark.asyncio
    async def test_reset_drops_reviews_and_clinics(self, prepared_store, clinic_factory, small_dataset):
        clinic = await clinic_factory()
        async with async_session_factory() as session:
            session.add(Review(review="Great place.", rating=5, name="Ola",
                               title="Recommended", clinic_id=clinic.id))
            await session.commit()

        assert await seed_database(small_dataset, reset=True) == 2
        assert await _count(Review) == 0
        assert await _count(Clinic) == 2


class TestCommandLine:

    def test_reset_switch(self):
        assert build_parser().parse_args(["--reset"]).reset is True
        assert build_parser().parse_args(["--no-reset"]).reset is False

    def test_data_path_option(self):
        assert build_parser().parse_args(["--data", "x.json"]).data == "x.json"

    def test_missing_dataset_exits_nonzero(self, tmp_path):
        assert main(["--data", str(tmp_path / "missing.json")]) == 1
