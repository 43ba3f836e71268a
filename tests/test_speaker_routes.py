"""
SpeakerHub Backend — Speaker Route Tests
==========================================

What we test:
    ✅ GET /api/speakers ordering and defaults for missing profiles
    ✅ PUT /api/speakers/me partial updates and validation, price bounds
    ✅ POST /api/speakers/slots hour range, past dates, duplicates
    ✅ GET /api/speakers/slots/{id} visibility of booked slots
"""

from datetime import date, timedelta

import pytest

from speakerhub.models import Role


def iso(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


class TestSpeakerDirectory:

    @pytest.mark.asyncio
    async def test_lists_speakers_by_name(self, test_client, factory):
        await factory.speaker(full_name="Zoe Zed", price_per_hour=50)
        await factory.speaker(full_name="Ada Lovelace", price_per_hour=150)
        await factory.profile(Role.SPEAKER, full_name="Mia NoProfile")
        await factory.profile(Role.ATTENDEE, full_name="Not A Speaker")

        response = await test_client.get("/api/speakers")

        assert response.status_code == 200
        speakers = response.json()
        assert [s["fullName"] for s in speakers] == ["Ada Lovelace", "Mia NoProfile", "Zoe Zed"]
        assert speakers[0]["pricePerHour"] == 150
        assert speakers[1]["pricePerHour"] == 0
        assert speakers[1]["expertise"] is None

    @pytest.mark.asyncio
    async def test_empty_directory(self, test_client):
        response = await test_client.get("/api/speakers")
        assert response.status_code == 200
        assert response.json() == []


class TestSpeakerProfileUpdate:

    @pytest.mark.asyncio
    async def test_partial_update(self, test_client, factory, auth_headers):
        speaker = await factory.speaker(price_per_hour=100)

        response = await test_client.put(
            "/api/speakers/me", json={"price_per_hour": 175.5}, headers=auth_headers(speaker)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["price_per_hour"] == 175.5
        assert data["expertise"] == "Distributed systems"

        listing = await test_client.get("/api/speakers")
        assert listing.json()[0]["pricePerHour"] == 175.5

    @pytest.mark.asyncio
    async def test_creates_missing_profile(self, test_client, factory, auth_headers):
        speaker = await factory.profile(Role.SPEAKER)

        response = await test_client.put(
            "/api/speakers/me", json={"bio": "Hello"}, headers=auth_headers(speaker)
        )

        assert response.status_code == 200
        assert response.json()["bio"] == "Hello"
        assert response.json()["price_per_hour"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body", [{}, {"price_per_hour": -1}, {"price_per_hour": 1e15}, {"price_per_hour": 100_000_000}]
    )
    async def test_invalid_update(self, test_client, factory, auth_headers, body):
        speaker = await factory.speaker()

        response = await test_client.put("/api/speakers/me", json=body, headers=auth_headers(speaker))

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["1e400", "-1e400", "NaN", "Infinity"])
    async def test_non_finite_price_rejected(self, test_client, factory, auth_headers, raw):
        speaker = await factory.speaker(price_per_hour=100)

        response = await test_client.put(
            "/api/speakers/me",
            content=f'{{"price_per_hour": {raw}}}',
            headers={**auth_headers(speaker), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        listing = await test_client.get("/api/speakers")
        assert listing.json()[0]["pricePerHour"] == 100

    @pytest.mark.asyncio
    async def test_largest_price_accepted(self, test_client, factory, auth_headers):
        speaker = await factory.speaker()

        response = await test_client.put(
            "/api/speakers/me", json={"price_per_hour": 99_999_999.99}, headers=auth_headers(speaker)
        )

        assert response.status_code == 200
        assert response.json()["price_per_hour"] == 99_999_999.99

    @pytest.mark.asyncio
    async def test_attendee_forbidden(self, test_client, factory, auth_headers):
        attendee = await factory.profile()

        response = await test_client.put(
            "/api/speakers/me", json={"bio": "x"}, headers=auth_headers(attendee)
        )
        assert response.status_code == 403


class TestSlots:

    @pytest.mark.asyncio
    async def test_create_slot(self, test_client, factory, auth_headers):
        speaker = await factory.speaker()

        response = await test_client.post(
            "/api/speakers/slots",
            json={"session_date": iso(3), "hour": 9},
            headers=auth_headers(speaker),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["speaker_id"] == speaker.id
        assert data["hour"] == 9
        assert data["is_booked"] is False

    @pytest.mark.asyncio
    async def test_today_is_allowed(self, test_client, factory, auth_headers):
        speaker = await factory.speaker()
        response = await test_client.post(
            "/api/speakers/slots",
            json={"session_date": iso(0), "hour": 16},
            headers=auth_headers(speaker),
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    @pytest.mark.parametrize("hour", [8, 17, 0, 23])
    async def test_hour_out_of_range(self, test_client, factory, auth_headers, hour):
        speaker = await factory.speaker()

        response = await test_client.post(
            "/api/speakers/slots",
            json={"session_date": iso(3), "hour": hour},
            headers=auth_headers(speaker),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid hour. Must be between 9 and 16 (inclusive)."

    @pytest.mark.asyncio
    async def test_past_date(self, test_client, factory, auth_headers):
        speaker = await factory.speaker()

        response = await test_client.post(
            "/api/speakers/slots",
            json={"session_date": iso(-1), "hour": 10},
            headers=auth_headers(speaker),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot create slots for past dates."

    @pytest.mark.asyncio
    async def test_duplicate_slot(self, test_client, factory, auth_headers):
        speaker = await factory.speaker()
        body = {"session_date": iso(3), "hour": 10}

        first = await test_client.post("/api/speakers/slots", json=body, headers=auth_headers(speaker))
        second = await test_client.post("/api/speakers/slots", json=body, headers=auth_headers(speaker))

        assert first.status_code == 201
        assert second.status_code == 409

    @pytest.mark.asyncio
    async def test_public_listing_hides_booked(self, test_client, factory, auth_headers):
        speaker = await factory.speaker()
        attendee = await factory.profile()
        day = date.today() + timedelta(days=5)
        await factory.slot(speaker.id, session_date=day, hour=14)
        booked = await factory.slot(speaker.id, session_date=day, hour=9)
        await factory.slot(speaker.id, session_date=day, hour=11)
        await factory.slot(speaker.id, session_date=day + timedelta(days=1), hour=9)
        await factory.booking(attendee.id, booked)

        anonymous = await test_client.get(f"/api/speakers/slots/{speaker.id}", params={"date": day.isoformat()})
        as_attendee = await test_client.get(
            f"/api/speakers/slots/{speaker.id}",
            params={"date": day.isoformat()},
            headers=auth_headers(attendee),
        )
        as_owner = await test_client.get(
            f"/api/speakers/slots/{speaker.id}",
            params={"date": day.isoformat()},
            headers=auth_headers(speaker),
        )

        assert [s["hour"] for s in anonymous.json()] == [11, 14]
        assert [s["hour"] for s in as_attendee.json()] == [11, 14]
        assert [s["hour"] for s in as_owner.json()] == [9, 11, 14]

    @pytest.mark.asyncio
    async def test_unknown_speaker(self, test_client, db_schema):
        response = await test_client.get("/api/speakers/slots/nobody", params={"date": iso(1)})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_date(self, test_client, factory):
        speaker = await factory.speaker()
        response = await test_client.get(f"/api/speakers/slots/{speaker.id}")
        assert response.status_code == 400
