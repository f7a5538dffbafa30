"""
HealthFinder API — Clinic Listing Endpoint Tests
==================================================

What:  GET /clinics and GET /clinics/{id} against a real (SQLite) store.

What we test:
    ✅ Page length = min(pageSize, max(total - offset, 0))
    ✅ total_results counts every match, independent of paging
    ✅ search=Stockholm&pageSize=10&pageNum=2 returns entries 11-20
    ✅ clinicType / openHours / dropin / avgRating filters and their counts
    ✅ sortField / sortOrder
    ✅ Malformed parameters → 400 invalid_query
    ✅ Unknown or malformed clinic id → 404
"""

import uuid

import pytest


async def _list(client, **params):
    response = await client.get("/clinics", params=params)
    assert response.status_code == 200, response.text
    return response.json()


class TestPagination:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page_size, page_num, expected",
        [("10", "1", 10), ("10", "3", 5), ("10", "4", 0), ("25", "1", 25), ("100", "1", 25)],
    )
    async def test_page_length(self, test_client, clinic_factory, page_size, page_num, expected):
        """Page length follows min(pageSize, max(total - offset, 0))."""
        await clinic_factory.many(25)
        body = await _list(test_client, pageSize=page_size, pageNum=page_num)
        assert len(body["clinics"]) == expected
        assert body["total_results"] == 25

    @pytest.mark.asyncio
    async def test_default_page_size(self, test_client, clinic_factory):
        await clinic_factory.many(23)
        body = await _list(test_client)
        assert len(body["clinics"]) == 20
        assert body["total_results"] == 23

    @pytest.mark.asyncio
    async def test_second_page_is_entries_eleven_to_twenty(self, test_client, clinic_factory):
        await clinic_factory.many(24, region="Stockholm")
        await clinic_factory.many(6, region="Uppsala", address="Dragarbrunnsgatan 1, Uppsala")

        everything = await _list(test_client, search="Stockholm", pageSize="100")
        page_two = await _list(test_client, search="Stockholm", pageSize="10", pageNum="2")

        assert page_two["total_results"] == 24
        expected_ids = [c["id"] for c in everything["clinics"][10:20]]
        assert [c["id"] for c in page_two["clinics"]] == expected_ids

    @pytest.mark.asyncio
    async def test_pages_do_not_overlap(self, test_client, clinic_factory):
        await clinic_factory.many(12)
        first = await _list(test_client, pageSize="5", pageNum="1")
        second = await _list(test_client, pageSize="5", pageNum="2")
        third = await _list(test_client, pageSize="5", pageNum="3")
        ids = [c["id"] for body in (first, second, third) for c in body["clinics"]]
        assert len(ids) == 12
        assert len(set(ids)) == 12

    @pytest.mark.asyncio
    async def test_empty_store(self, test_client):
        body = await _list(test_client)
        assert body == {"clinics": [], "total_results": 0}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path", ["/clinics", "/clinics/reviews", "/clinics/00000000-0000-0000-0000-000000000000/reviews"]
    )
    async def test_unaddressable_page_number_is_400(self, test_client, clinic_factory, path):
        await clinic_factory()
        response = await test_client.get(path, params={"pageSize": "100", "pageNum": str(10**18)})
        assert response.status_code == 400
        assert response.json()["details"]["parameter"] == "pageNum"


class TestSearchAndFilters:

    @pytest.mark.asyncio
    async def test_search_matches_region_or_address_case_insensitively(
        self, test_client, clinic_factory
    ):
        await clinic_factory(region="Stockholm", address="Ringvägen 1, Stockholm")
        await clinic_factory(region="Uppsala", address="Kungsgatan 5, Uppsala")
        await clinic_factory(region="Skåne", address="Stockholmsvägen 2, Malmö")

        body = await _list(test_client, search="stockholm")
        assert body["total_results"] == 2
        assert {c["region"] for c in body["clinics"]} == {"Stockholm", "Skåne"}

    @pytest.mark.asyncio
    async def test_search_folds_swedish_letters(self, test_client, clinic_factory):
        await clinic_factory(region="Örebro", address="Södra Grev Rosengatan 1, Örebro")
        await clinic_factory(region="Skåne", address="Bergsgatan 48, Malmö")
        await clinic_factory(region="Uppsala", address="Kungsgatan 5, Uppsala")

        assert (await _list(test_client, search="örebro"))["total_results"] == 1
        assert (await _list(test_client, search="SKÅNE"))["total_results"] == 1
        assert (await _list(test_client, search="MALMÖ"))["total_results"] == 1

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, test_client, clinic_factory):
        await clinic_factory(region="Stockholm", address="Ringvägen 1")
        body = await _list(test_client, search="%")
        assert body["total_results"] == 0

    @pytest.mark.asyncio
    async def test_clinic_type_emergency(self, test_client, clinic_factory):
        await clinic_factory(clinic_operation="Akutmottagning")
        await clinic_factory(clinic_operation="Närakut")
        await clinic_factory(clinic_operation="Jourmottagning")
        await clinic_factory(clinic_operation="Barnakutmottagning")
        await clinic_factory.many(3, clinic_operation="Vårdcentral")

        body = await _list(test_client, clinicType="emg", pageSize="1")
        assert body["total_results"] == 4
        assert len(body["clinics"]) == 1

    @pytest.mark.asyncio
    async def test_clinic_type_regular(self, test_client, clinic_factory):
        await clinic_factory(clinic_operation="Akutmottagning")
        await clinic_factory.many(3, clinic_operation="Vårdcentral")

        body = await _list(test_client, clinicType="reg")
        assert body["total_results"] == 3
        assert all(c["clinic_operation"] == "Vårdcentral" for c in body["clinics"])

    @pytest.mark.asyncio
    async def test_unknown_clinic_type_applies_no_filter(self, test_client, clinic_factory):
        await clinic_factory(clinic_operation="Akutmottagning")
        await clinic_factory(clinic_operation="Vårdcentral")
        body = await _list(test_client, clinicType="dentist")
        assert body["total_results"] == 2

    @pytest.mark.asyncio
    async def test_open_hours_filters(self, test_client, clinic_factory):
        await clinic_factory(open_hours="Dygnet runt")
        await clinic_factory(open_hours="Mån-Fre 08-17")
        await clinic_factory(open_hours="Uppgift saknas")

        around_the_clock = await _list(test_client, openHours="all")
        assert around_the_clock["total_results"] == 1
        assert around_the_clock["clinics"][0]["open_hours"] == "Dygnet runt"

        specified = await _list(test_client, openHours="other")
        assert specified["total_results"] == 2
        assert all(c["open_hours"] != "Uppgift saknas" for c in specified["clinics"])

    @pytest.mark.asyncio
    async def test_dropin_filter(self, test_client, clinic_factory):
        await clinic_factory(drop_in="Mån-Fre 08-10")
        await clinic_factory.many(2, drop_in="Uppgift saknas")

        assert (await _list(test_client, dropin="true"))["total_results"] == 1
        assert (await _list(test_client, dropin="false"))["total_results"] == 3

    @pytest.mark.asyncio
    async def test_avg_rating_is_a_minimum(self, test_client, clinic_factory):
        await clinic_factory(average_rating=4.5, review_count=2)
        await clinic_factory(average_rating=3.0, review_count=1)
        await clinic_factory(average_rating=0.0, review_count=0)

        assert (await _list(test_client, avgRating="4"))["total_results"] == 1
        assert (await _list(test_client, avgRating="3"))["total_results"] == 2
        assert (await _list(test_client, avgRating="1"))["total_results"] == 2

    @pytest.mark.asyncio
    async def test_filters_combine_with_search(self, test_client, clinic_factory):
        await clinic_factory(region="Stockholm", clinic_operation="Akutmottagning",
                             open_hours="Dygnet runt")
        await clinic_factory(region="Stockholm", clinic_operation="Vårdcentral",
                             open_hours="Dygnet runt")
        await clinic_factory(region="Uppsala", address="Sjukhusvägen 1, Uppsala",
                             clinic_operation="Akutmottagning", open_hours="Dygnet runt")

        body = await _list(test_client, search="Stockholm", clinicType="emg", openHours="all")
        assert body["total_results"] == 1
        assert body["clinics"][0]["region"] == "Stockholm"


class TestSorting:

    @pytest.mark.asyncio
    async def test_sort_by_name_descending(self, test_client, clinic_factory):
        for name in ("Beta", "Alpha", "Delta", "Charlie"):
            await clinic_factory(clinic_name=name)

        body = await _list(test_client, sortField="clinic_name", sortOrder="desc")
        assert [c["clinic_name"] for c in body["clinics"]] == ["Delta", "Charlie", "Beta", "Alpha"]

    @pytest.mark.asyncio
    async def test_sort_by_rating_ascending_is_default_order(self, test_client, clinic_factory):
        for rating in (3.5, 1.0, 4.8, 2.2):
            await clinic_factory(average_rating=rating, review_count=1)

        body = await _list(test_client, sortField="average_rating")
        assert [c["average_rating"] for c in body["clinics"]] == [1.0, 2.2, 3.5, 4.8]

    @pytest.mark.asyncio
    async def test_sort_is_applied_before_paging(self, test_client, clinic_factory):
        for name in ("E", "B", "D", "A", "C"):
            await clinic_factory(clinic_name=name)

        body = await _list(test_client, sortField="clinic_name", pageSize="2", pageNum="2")
        assert [c["clinic_name"] for c in body["clinics"]] == ["C", "D"]


class TestQueryErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params, parameter",
        [
            ({"pageSize": "abc"}, "pageSize"),
            ({"pageSize": "0"}, "pageSize"),
            ({"pageNum": "-2"}, "pageNum"),
            ({"pageSize": "100", "pageNum": str(10**18)}, "pageNum"),
            ({"pageSize": "1_0"}, "pageSize"),
            ({"sortField": "secret"}, "sortField"),
            ({"sortOrder": "sideways"}, "sortOrder"),
            ({"openHours": "sometimes"}, "openHours"),
            ({"dropin": "maybe"}, "dropin"),
            ({"avgRating": "9"}, "avgRating"),
        ],
    )
    async def test_malformed_parameter_returns_400(self, test_client, params, parameter):
        response = await test_client.get("/clinics", params=params)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid_query"
        assert body["details"]["parameter"] == parameter
        assert body["request_id"]


class TestGetClinic:

    @pytest.mark.asyncio
    async def test_returns_clinic_with_empty_reviews(self, test_client, clinic_factory):
        clinic = await clinic_factory(clinic_name="Vårdcentralen Gärdet")

        response = await test_client.get(f"/clinics/{clinic.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(clinic.id)
        assert body["clinic_name"] == "Vårdcentralen Gärdet"
        assert body["review_count"] == 0
        assert body["average_rating"] == 0
        assert body["reviews"] == []

    @pytest.mark.asyncio
    async def test_unknown_id_returns_404(self, test_client, clinic_factory):
        await clinic_factory()
        response = await test_client.get(f"/clinics/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_id_returns_404(self, test_client):
        response = await test_client.get("/clinics/not-a-uuid")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
