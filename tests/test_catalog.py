"""Tests for users, events, registrations, the waitlist and products."""

import pytest

from storefront.application.accounts import CreateUserDTO, UsersService, pwd_context
from storefront.application.events import CreateEventDTO, EventsService
from storefront.domain.exceptions import ConflictError
from storefront.domain.models import RegistrationStatus

EVENT = {
    "title": "Harvest Festival",
    "description": "Wine tasting in the valley",
    "location": "Napa",
    "date": "2024-09-20T17:00:00Z",
    "capacity": 2,
    "price": 40,
    "imageUrl": "https://example.com/harvest.png",
}


class TestUsers:
    def test_create_and_login(self, api_client):
        created = api_client.post("/api/users", json={
            "username": "ann", "password": "s3cret", "email": "ann@example.com",
        })
        assert created.status_code == 201
        assert "passwordHash" not in created.json()
        assert created.json()["isAdmin"] is False

        ok = api_client.post("/api/auth/login", json={"username": "ann", "password": "s3cret"})
        assert ok.status_code == 200
        assert ok.json()["id"] == created.json()["id"]

        bad = api_client.post("/api/auth/login", json={"username": "ann", "password": "nope"})
        assert bad.status_code == 401

    def test_duplicates_are_rejected(self, api_client):
        api_client.post("/api/users", json={"username": "ann", "password": "x", "email": "ann@example.com"})

        same_name = api_client.post("/api/users", json={"username": "ann", "password": "x", "email": "b@example.com"})
        assert same_name.status_code == 400
        assert same_name.json()["detail"] == "Username already taken"

        same_email = api_client.post("/api/users", json={"username": "bob", "password": "x", "email": "ann@example.com"})
        assert same_email.json()["detail"] == "Email already registered"

    def test_invalid_email(self, api_client):
        response = api_client.post("/api/users", json={"username": "ann", "password": "x", "email": "not-an-email"})
        assert response.status_code == 400

    def test_role_update(self, api_client):
        user = api_client.post("/api/users", json={
            "username": "ann", "password": "x", "email": "ann@example.com",
        }).json()

        response = api_client.patch(f"/api/users/{user['id']}/role", json={"isAdmin": True})

        assert response.status_code == 200
        assert response.json()["isAdmin"] is True
        assert api_client.get("/api/users").json()[0]["isAdmin"] is True
        assert api_client.patch("/api/users/nope/role", json={"isAdmin": True}).status_code == 404

    async def test_password_is_hashed(self, memory_uow):
        user = await UsersService(memory_uow).create(
            CreateUserDTO(username="ann", password="s3cret", email="ann@example.com")
        )

        assert user.password_hash != "s3cret"
        assert pwd_context.verify("s3cret", memory_uow.state.users[user.id].password_hash)


class TestEvents:
    def test_create_and_fetch(self, api_client):
        created = api_client.post("/api/events", json=EVENT)
        assert created.status_code == 201
        event_id = created.json()["id"]

        assert api_client.get(f"/api/events/{event_id}").json()["title"] == "Harvest Festival"
        assert [e["id"] for e in api_client.get("/api/events").json()] == [event_id]
        assert api_client.get("/api/events/nope").status_code == 404

    def test_capacity_is_enforced(self, api_client):
        event_id = api_client.post("/api/events", json=EVENT).json()["id"]

        for user_id in ("u1", "u2"):
            response = api_client.post("/api/registrations", json={"userId": user_id, "eventId": event_id})
            assert response.status_code == 201
            assert response.json()["status"] == "pending"

        full = api_client.post("/api/registrations", json={"userId": "u3", "eventId": event_id})
        assert full.status_code == 400
        assert full.json()["detail"] == "Event is at full capacity"
        assert len(api_client.get(f"/api/events/{event_id}/registrations").json()) == 2

    def test_registration_for_unknown_event(self, api_client):
        response = api_client.post("/api/registrations", json={"userId": "u1", "eventId": "nope"})
        assert response.status_code == 404

    def test_get_registration(self, api_client):
        event_id = api_client.post("/api/events", json=EVENT).json()["id"]
        registration = api_client.post("/api/registrations", json={
            "userId": "u1", "eventId": event_id, "status": "confirmed",
        }).json()

        fetched = api_client.get(f"/api/registrations/{registration['id']}")
        assert fetched.json()["status"] == "confirmed"
        assert api_client.get("/api/registrations/nope").status_code == 404

    async def test_cancelled_registrations_free_seats(self, memory_uow):
        service = EventsService(memory_uow)

        event = await service.create_event(CreateEventDTO(
            title="Tasting", description="d", location="Napa", date="2024-09-20T17:00:00Z",
            capacity=1, price=0, image_url="https://example.com/x.png",
        ))
        await service.register("u1", event.id, RegistrationStatus.CANCELLED)

        registration = await service.register("u2", event.id)
        assert registration.status == RegistrationStatus.PENDING
        with pytest.raises(ConflictError):
            await service.register("u3", event.id)


class TestWaitlist:
    def test_join_once(self, api_client):
        first = api_client.post("/api/waitlist", json={"email": "Ann@Example.com"})
        assert first.status_code == 201
        assert first.json()["email"] == "ann@example.com"

        again = api_client.post("/api/waitlist", json={"email": "ann@example.com"})
        assert again.status_code == 400
        assert again.json()["detail"] == "Email already in waitlist"

    async def test_membership(self, memory_uow):
        service = EventsService(memory_uow)
        await service.join_waitlist("ann@example.com")

        assert await service.is_on_waitlist(" ANN@example.com ")
        assert not await service.is_on_waitlist("bob@example.com")


class TestProducts:
    def test_list_and_filter(self, api_client):
        api_client.post("/api/products", json={
            "name": "Poster", "description": "A2", "price": 12.5,
            "imageUrl": "https://example.com/p.png", "category": "prints", "stock": 4,
        })

        assert len(api_client.get("/api/products").json()) == 4
        prints = api_client.get("/api/products", params={"category": "prints"}).json()
        assert [p["name"] for p in prints] == ["Poster"]
        assert prints[0]["price"] == 12.5

    def test_update_stock(self, api_client):
        response = api_client.patch("/api/products/prod_1/stock", json={"stock": 3})
        assert response.status_code == 200
        assert response.json()["stock"] == 3
        assert api_client.get("/api/products/prod_1").json()["stock"] == 3

    def test_negative_stock(self, api_client):
        response = api_client.patch("/api/products/prod_1/stock", json={"stock": -1})
        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == [{"field": "stock", "message": "Stock cannot be negative"}]

    def test_unknown_product(self, api_client):
        assert api_client.get("/api/products/nope").status_code == 404
        assert api_client.patch("/api/products/nope/stock", json={"stock": 1}).status_code == 404
