"""Tests for the backend implementations."""

import json
from decimal import Decimal

import httpx
import pytest
from tenacity import wait_none

from spend_tracker.config import BackendSettings
from spend_tracker.models import (
    EntryKind,
    FundGoal,
    Funds,
    InvestmentType,
)
from spend_tracker.services.backend import (
    AuthenticationError,
    BackendError,
    ConnectionError,
    HttpBackend,
    InMemoryBackend,
    NotFoundError,
    api_url,
)
from tests.builders import expense, investment, salary


class TestApiUrl:
    """Tests for resolving /api paths."""

    def test_relative_without_base(self):
        assert api_url("/api/funds") == "/api/funds"
        assert api_url("api/funds") == "/api/funds"

    def test_base_url_drops_api_prefix(self):
        base = "https://backend.example.com"
        assert api_url("/api/data/2025/3", base) == f"{base}/data/2025/3"
        assert api_url("api/members", base) == f"{base}/members"

    def test_base_url_setting_strips_trailing_slash(self):
        settings = BackendSettings(base_url="https://backend.example.com/")
        assert settings.base_url == "https://backend.example.com"
        assert not settings.is_relative


class TestInMemoryBackend:
    """Tests for the in-process backend."""

    @pytest.mark.asyncio
    async def test_month_and_year_snapshots(self):
        backend = InMemoryBackend()
        await backend.add_entry(EntryKind.SALARY, salary(month=1))
        await backend.add_entry(EntryKind.SALARY, salary(month=2))
        await backend.add_entry(EntryKind.SALARY, salary(month=2, year=2024))

        january = await backend.fetch_month_snapshot(2025, 1)
        year = await backend.fetch_year_snapshot(2025)
        assert len(january.salaries) == 1
        assert len(year.salaries) == 2

    @pytest.mark.asyncio
    async def test_add_assigns_id_and_delete_removes(self):
        backend = InMemoryBackend()
        await backend.add_entry(EntryKind.EXPENSE, expense())
        stored = (await backend.fetch_month_snapshot(2025, 1)).expenses[0]
        assert stored.id

        await backend.delete_entry(EntryKind.EXPENSE, stored.id)
        assert (await backend.fetch_month_snapshot(2025, 1)).expenses == ()

    @pytest.mark.asyncio
    async def test_delete_unknown_raises(self):
        with pytest.raises(NotFoundError):
            await InMemoryBackend().delete_entry(EntryKind.EXPENSE, "missing")

    @pytest.mark.asyncio
    async def test_wrong_kind_rejected(self):
        with pytest.raises(BackendError):
            await InMemoryBackend().add_entry(EntryKind.SALARY, expense())

    @pytest.mark.asyncio
    async def test_members(self):
        backend = InMemoryBackend()
        asha = await backend.add_member("Asha")
        await backend.add_member("Ravi")
        await backend.remove_member(asha.id)
        assert [m.name for m in await backend.list_members()] == ["Ravi"]

    @pytest.mark.asyncio
    async def test_funds_round_trip(self):
        backend = InMemoryBackend()
        funds = Funds(emergency=FundGoal(enabled=True, target=Decimal("10"), current=Decimal("5")))
        await backend.save_funds(funds)
        assert await backend.fetch_funds() == funds

    @pytest.mark.asyncio
    async def test_gold_valuation(self):
        """Grams come from the purchase price, value from the current price."""
        backend = InMemoryBackend(gold_price_per_gram=Decimal("7000"))
        await backend.add_entry(EntryKind.INVESTMENT, investment(
            amount="12000", type=InvestmentType.GOLD,
            price_per_gram_at_purchase=Decimal("6000"),
        ))
        await backend.add_entry(EntryKind.INVESTMENT, investment(amount="500", type=InvestmentType.GOLD))
        await backend.add_entry(EntryKind.INVESTMENT, investment(amount="999"))

        valuation = await backend.gold_valuation()
        assert len(valuation.items) == 2
        assert valuation.items[0].grams == Decimal("2.000")
        assert valuation.items[0].current_value == Decimal("14000.00")
        assert valuation.total_invested == Decimal("12500")
        assert valuation.total_current_value == Decimal("14500.00")

    @pytest.mark.asyncio
    async def test_sign_up_then_sign_in(self):
        backend = InMemoryBackend()
        created = await backend.sign_up("Asha@Example.com", "secret1")
        signed_in = await backend.sign_in("asha@example.com", "secret1")
        assert created.user.id == signed_in.user.id

        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await backend.sign_in("asha@example.com", "wrong!!")
        with pytest.raises(AuthenticationError, match="already registered"):
            await backend.sign_up("asha@example.com", "secret1")

    @pytest.mark.asyncio
    async def test_token_required(self):
        backend = InMemoryBackend(require_token=True)
        with pytest.raises(AuthenticationError):
            await backend.list_members()
        result = await backend.sign_up("a@b.co", "secret1")
        backend.set_token(result.token)
        assert await backend.list_members() == []


def make_backend(handler, base_url: str = "", token: str = None) -> HttpBackend:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=base_url or "http://testserver",
    )
    return HttpBackend(
        settings=BackendSettings(base_url=base_url, max_retries=3),
        client=client,
        token=token,
        retry_wait=wait_none(),
    )


SNAPSHOT_BODY = {
    "salaries": [
        {"id": "s1", "person": "Asha", "amount": 50000,
         "date": "2025-03-01", "month": 3, "year": 2025},
    ],
    "expenses": [
        {"id": "e1", "title": "Rent", "amount": "20000", "category": "Rent",
         "paidBy": "Asha", "date": "2025-03-02", "month": 3, "year": 2025},
    ],
    "investments": [],
    "activities": [],
}


class TestHttpBackend:
    """Tests for the REST client against a mock transport."""

    @pytest.mark.asyncio
    async def test_fetch_month_snapshot(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SNAPSHOT_BODY)

        backend = make_backend(handler, token="tok")
        snapshot = await backend.fetch_month_snapshot(2025, 3)

        assert seen[0].url.path == "/api/data/2025/3"
        assert seen[0].headers["Authorization"] == "Bearer tok"
        assert snapshot.salaries[0].amount == Decimal("50000")
        assert snapshot.expenses[0].paid_by == "Asha"

    @pytest.mark.asyncio
    async def test_year_snapshot_with_base_url(self):
        """With a base URL the api/ prefix is dropped."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=SNAPSHOT_BODY)

        backend = make_backend(handler, base_url="https://backend.example.com", token="tok")
        await backend.fetch_year_snapshot(2025)

        assert str(seen[0].url) == "https://backend.example.com/data/year/2025"
        assert seen[0].headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        await make_backend(handler).list_members()
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_add_entry_posts_payload(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"id": "new"})

        await make_backend(handler).add_entry(EntryKind.EXPENSE, expense(id="ignored"))

        request = seen[0]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert request.url.path == "/api/expenses"
        assert body["paidBy"] == "Asha"
        assert "id" not in body

    @pytest.mark.asyncio
    async def test_delete_entry(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(204)

        await make_backend(handler).delete_entry(EntryKind.ACTIVITY, "a1")
        assert seen[0].method == "DELETE"
        assert seen[0].url.path == "/api/activities/a1"

    @pytest.mark.asyncio
    async def test_get_retried_on_transport_error(self):
        """Fetches survive a dropped connection."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200, json={"emergency": {"enabled": True, "target": 10, "current": 2}})

        funds = await make_backend(handler).fetch_funds()
        assert len(calls) == 2
        assert funds.emergency.enabled

    @pytest.mark.asyncio
    async def test_get_gives_up_after_max_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(ConnectionError):
            await make_backend(handler).fetch_funds()
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_commands_never_retried(self):
        """A failed POST is not resent, so nothing is created twice."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(ConnectionError):
            await make_backend(handler).add_entry(EntryKind.SALARY, salary())
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_http_errors_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={"detail": "Database unavailable"})

        with pytest.raises(BackendError, match="Database unavailable"):
            await make_backend(handler).fetch_month_snapshot(2025, 1)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_backend_message_surfaces_verbatim(self):
        def handler(request):
            return httpx.Response(400, json={"message": "Amount must be positive"})

        with pytest.raises(BackendError) as exc_info:
            await make_backend(handler).add_entry(EntryKind.SALARY, salary())
        assert exc_info.value.message == "Amount must be positive"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_status_mapping(self):
        def not_found(request):
            return httpx.Response(404, text="")

        def unauthorized(request):
            return httpx.Response(401, json={"message": "Token expired"})

        with pytest.raises(NotFoundError, match="status 404"):
            await make_backend(not_found).remove_member("m1")
        with pytest.raises(AuthenticationError, match="Token expired"):
            await make_backend(unauthorized).list_members()

    @pytest.mark.asyncio
    async def test_save_funds_puts_both_goals(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=json.loads(request.content))

        funds = Funds(vacation=FundGoal(enabled=True, target=Decimal("30000"), current=Decimal("100")))
        saved = await make_backend(handler).save_funds(funds)

        body = json.loads(seen[0].content)
        assert seen[0].method == "PUT"
        assert set(body) == {"emergency", "vacation"}
        assert body["vacation"]["target"] == 30000.0
        assert saved == funds

    @pytest.mark.asyncio
    async def test_add_member_uses_trimmed_name(self):
        def handler(request):
            return httpx.Response(201, json={"id": 7, "name": "whatever"})

        member = await make_backend(handler).add_member("Asha")
        assert member.id == "7"
        assert member.name == "Asha"

    @pytest.mark.asyncio
    async def test_non_list_members_is_empty(self):
        def handler(request):
            return httpx.Response(200, json={"error": "nope"})

        assert await make_backend(handler).list_members() == []

    @pytest.mark.asyncio
    async def test_gold_valuation(self):
        def handler(request):
            assert request.url.path == "/api/investments/gold-valuation"
            return httpx.Response(200, json={
                "currentPricePerGram": 7100,
                "items": [],
                "totalInvested": 0,
                "totalCurrentValue": 0,
            })

        valuation = await make_backend(handler).gold_valuation()
        assert valuation.current_price_per_gram == Decimal("7100")

    @pytest.mark.asyncio
    async def test_sign_in(self):
        def handler(request):
            assert request.url.path == "/api/auth/login"
            assert json.loads(request.content) == {"email": "a@b.co", "password": "secret1"}
            return httpx.Response(200, json={"token": "t1", "user": {"id": "u1", "email": "a@b.co"}})

        result = await make_backend(handler).sign_in("a@b.co", "secret1")
        assert result.token == "t1"
        assert result.user.email == "a@b.co"

    @pytest.mark.asyncio
    async def test_sign_up_rejection_is_authentication_error(self):
        def handler(request):
            return httpx.Response(409, json={"message": "Email already in use"})

        with pytest.raises(AuthenticationError, match="Email already in use"):
            await make_backend(handler).sign_up("a@b.co", "secret1")
