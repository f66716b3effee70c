from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

import app.main as main_module
import app.modules.checkout.service as checkout_service_module
from app.core.config import Settings
from app.core.enums import (
    CheckoutDraftStatusEnum,
    CheckoutFlowEnum,
    PaymentMethodEnum,
    RoleEnum,
    SlotTypeEnum,
)
from app.modules.checkout.schemas import CheckoutSessionCreate, GuestBookingInput
from app.modules.checkout.service import CheckoutService, get_checkout_service
from app.modules.family.service import FamilyService
from app.shared.exceptions import (
    ConfigurationException,
    ConflictException,
    NotFoundException,
    SignatureVerificationException,
    ValidationException,
)

BASE_URL = "https://fleetwood.example"
FIXED_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)


@dataclass
class FakeDraft:
    id: UUID
    flow: CheckoutFlowEnum
    billing_mode: PaymentMethodEnum
    payload: dict
    expires_at: datetime
    member_id: UUID | None
    status: CheckoutDraftStatusEnum = CheckoutDraftStatusEnum.OPEN
    stripe_session_id: str | None = None


class FakeStripeClient:
    def __init__(self, sessions: dict[str, dict] | None = None) -> None:
        self.created: list[dict] = []
        self.refunds: list[dict] = []
        self.sessions = sessions or {}
        self.event: dict | None = None
        self.subscriptions: dict[str, dict] = {}
        self.invoices: dict[str, dict] = {}
        self.expanded_invoices: dict[str, dict] = {}
        self.invoice_calls: list[tuple[str, list[str] | None]] = []

    async def create_checkout_session(self, params: dict, *, idempotency_key: str | None = None) -> dict:
        self.created.append({"params": params, "idempotency_key": idempotency_key})
        return {"id": f"cs_test_{len(self.created)}"}

    async def retrieve_checkout_session(self, session_id: str) -> dict:
        return self.sessions[session_id]

    async def retrieve_subscription(self, subscription_id: str) -> dict:
        return self.subscriptions[subscription_id]

    async def retrieve_invoice(self, invoice_id: str, *, expand: list[str] | None = None) -> dict:
        self.invoice_calls.append((invoice_id, expand))
        if expand:
            return self.expanded_invoices[invoice_id]
        return self.invoices[invoice_id]

    async def create_refund(self, payment_intent_id: str, *, idempotency_key: str | None = None) -> dict:
        self.refunds.append({"payment_intent": payment_intent_id, "idempotency_key": idempotency_key})
        return {"id": "re_1", "status": "succeeded", "amount": 1000, "currency": "gbp"}

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> dict:
        if signature != "t=1,v1=good":
            raise SignatureVerificationException("Invalid Stripe signature")
        return self.event


class FakeReconciler:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def reconcile(self, session: dict, *, source: str, record_failures: bool = True):
        self.calls.append((session["id"], source))
        return SimpleNamespace(succeeded=True)


class FakeCheckoutRepository:
    def __init__(self, drafts: list[FakeDraft] | None = None) -> None:
        self.drafts = {draft.id: draft for draft in drafts or []}

    async def create_draft(self, flow, billing_mode, payload, expires_at, member_id) -> FakeDraft:
        draft = FakeDraft(
            id=uuid4(),
            flow=flow,
            billing_mode=billing_mode,
            payload=payload,
            expires_at=expires_at,
            member_id=member_id,
        )
        self.drafts[draft.id] = draft
        return draft

    async def get_draft(self, draft_id: UUID) -> FakeDraft | None:
        return self.drafts.get(draft_id)

    async def attach_session(self, draft: FakeDraft, stripe_session_id: str) -> FakeDraft:
        draft.stripe_session_id = stripe_session_id
        return draft

    async def mark_expired(self, draft: FakeDraft) -> FakeDraft:
        draft.status = CheckoutDraftStatusEnum.EXPIRED
        return draft


class FakeClassesRepository:
    def __init__(self, classes: dict[UUID, SimpleNamespace] | None = None) -> None:
        self.classes = classes or {}

    async def get_class_by_id(self, class_id: UUID):
        return self.classes.get(class_id)


class FakeSchedulingService:
    def __init__(self, slots: dict[UUID, SimpleNamespace] | None = None, booked: set[UUID] | None = None) -> None:
        self.slots = slots or {}
        self.booked = booked or set()

    async def get_open_slot(self, slot_id: UUID):
        slot = self.slots.get(slot_id)
        if slot is None:
            raise NotFoundException("Slot not found")
        if slot_id in self.booked:
            raise ConflictException("Slot is already booked")
        return slot


class FakeBillingService:
    def __init__(self) -> None:
        self.refunded: list[tuple[str, str]] = []

    async def mark_refunded(self, stripe_session_id: str, refund_id: str, actor):
        self.refunded.append((stripe_session_id, refund_id))
        return SimpleNamespace(id=uuid4())


class FakeFamilyRepository:
    def __init__(self, dependents: list[SimpleNamespace] | None = None) -> None:
        self.dependents = {dependent.id: dependent for dependent in dependents or []}

    async def get_dependent_by_id(self, dependent_id: UUID):
        return self.dependents.get(dependent_id)


class FakeIdentityRepository:
    """Every member exists; ``members`` overrides the defaults."""

    def __init__(self, members: dict[UUID, SimpleNamespace] | None = None) -> None:
        self.members = members or {}

    async def get_user_by_id(self, user_id: UUID):
        if user_id in self.members:
            return self.members[user_id]
        return SimpleNamespace(id=user_id, full_name="Jamie Member", date_of_birth=date(1990, 5, 1))


class FakeAuditRepository:
    async def create_audit_log(self, **kwargs) -> None:
        return None


class Harness:
    def __init__(
        self,
        *,
        classes: dict[UUID, SimpleNamespace] | None = None,
        slots: dict[UUID, SimpleNamespace] | None = None,
        booked: set[UUID] | None = None,
        drafts: list[FakeDraft] | None = None,
        sessions: dict[str, dict] | None = None,
        dependents: list[SimpleNamespace] | None = None,
        members: dict[UUID, SimpleNamespace] | None = None,
        **settings_overrides,
    ) -> None:
        self.stripe = FakeStripeClient(sessions)
        self.reconciler = FakeReconciler()
        self.checkout = FakeCheckoutRepository(drafts)
        self.billing = FakeBillingService()
        family_service = FamilyService(
            FakeFamilyRepository(dependents),  # type: ignore[arg-type]
            FakeIdentityRepository(members),  # type: ignore[arg-type]
            FakeAuditRepository(),  # type: ignore[arg-type]
        )
        self.service = CheckoutService(
            stripe_client=self.stripe,  # type: ignore[arg-type]
            reconciler=self.reconciler,  # type: ignore[arg-type]
            checkout_repository=self.checkout,  # type: ignore[arg-type]
            classes_repository=FakeClassesRepository(classes),  # type: ignore[arg-type]
            scheduling_service=FakeSchedulingService(slots, booked),  # type: ignore[arg-type]
            billing_service=self.billing,  # type: ignore[arg-type]
            family_service=family_service,
            settings=Settings(_env_file=None, **settings_overrides),
        )


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(checkout_service_module, "utc_now", lambda: FIXED_NOW)


def make_class(
    price: Decimal = Decimal("10.00"),
    min_age: int | None = None,
    max_age: int | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        name="Monday Boxfit",
        coach_id=uuid4(),
        price=price,
        min_age=min_age,
        max_age=max_age,
    )


def make_slot(slot_type: SlotTypeEnum = SlotTypeEnum.PRIVATE, price: Decimal = Decimal("15.00")) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        title="Private 1-on-1",
        coach_id=uuid4(),
        slot_type=slot_type,
        start_at=datetime(2026, 10, 20, 18, 0, tzinfo=UTC),
        price=price,
    )


def make_dependent(member_id: UUID, date_of_birth: date = date(2014, 3, 2)) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), member_id=member_id, full_name="Robin Member", date_of_birth=date_of_birth)


def guest_details(**overrides) -> GuestBookingInput:
    values = {
        "participant_name": "Robin",
        "contact_name": "Alex",
        "contact_email": "alex@example.com",
        "contact_phone": "07700 900123",
    }
    values.update(overrides)
    return GuestBookingInput(**values)


@pytest.mark.parametrize(
    "payload",
    [
        CheckoutSessionCreate(member_id=uuid4(), class_id=uuid4()),
        CheckoutSessionCreate(price=Decimal("10.00"), class_id=uuid4()),
        CheckoutSessionCreate(price=Decimal("10.00"), member_id=uuid4()),
        CheckoutSessionCreate(price=Decimal("0"), member_id=uuid4(), class_id=uuid4()),
        CheckoutSessionCreate(price=Decimal("-5.00"), member_id=uuid4(), class_id=uuid4()),
        CheckoutSessionCreate(
            price=Decimal("10.00"),
            class_id=uuid4(),
            guest_booking=guest_details(contact_email=""),
        ),
        CheckoutSessionCreate(
            price=Decimal("10.00"),
            class_id=uuid4(),
            guest_booking=guest_details(contact_email="not-an-email"),
        ),
        CheckoutSessionCreate(
            price=Decimal("10.00"),
            member_id=uuid4(),
            class_id=uuid4(),
            success_path="//evil.example",
        ),
    ],
)
@pytest.mark.asyncio
async def test_invalid_requests_never_reach_provider(payload: CheckoutSessionCreate) -> None:
    harness = Harness()

    with pytest.raises(ValidationException):
        await harness.service.create_checkout_session(payload, base_url=BASE_URL)
    assert harness.stripe.created == []
    assert harness.checkout.drafts == {}


@pytest.mark.asyncio
async def test_one_off_class_checkout_builds_payment_session() -> None:
    gym_class = make_class()
    member_id = uuid4()
    harness = Harness(classes={gym_class.id: gym_class})

    result = await harness.service.create_checkout_session(
        CheckoutSessionCreate(price=Decimal("10.00"), member_id=member_id, class_id=gym_class.id),
        base_url=BASE_URL,
    )

    assert result.id == "cs_test_1"
    call = harness.stripe.created[0]
    params = call["params"]
    assert call["idempotency_key"] == f"checkout-draft:{result.draft_id}"
    assert params["mode"] == "payment"
    assert params["line_items"][0]["price_data"]["unit_amount"] == 1000
    assert params["line_items"][0]["price_data"]["currency"] == "gbp"
    assert params["line_items"][0]["price_data"]["product_data"]["name"] == "Monday Boxfit"
    assert params["success_url"] == f"{BASE_URL}/?stripe_success=true&session_id={{CHECKOUT_SESSION_ID}}"
    assert params["cancel_url"] == BASE_URL
    assert params["expires_at"] == int((FIXED_NOW + timedelta(minutes=60)).timestamp())
    assert params["payment_intent_data"] == {"metadata": params["metadata"]}

    metadata = params["metadata"]
    assert metadata["flow"] == "CLASS"
    assert metadata["billing_mode"] == "ONE_OFF"
    assert metadata["member_id"] == str(member_id)
    assert metadata["coach_id"] == str(gym_class.coach_id)
    assert metadata["draft_id"] == str(result.draft_id)
    assert all(isinstance(value, str) and len(value) <= 500 for value in metadata.values())

    draft = harness.checkout.drafts[result.draft_id]
    assert draft.stripe_session_id == "cs_test_1"
    assert draft.flow == CheckoutFlowEnum.CLASS


@pytest.mark.asyncio
async def test_weekly_and_monthly_modes_open_subscriptions() -> None:
    gym_class = make_class(Decimal("40.00"))
    harness = Harness(classes={gym_class.id: gym_class})

    for mode, interval in ((PaymentMethodEnum.WEEKLY, "week"), (PaymentMethodEnum.MONTHLY, "month")):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(
                price=Decimal("40.00"),
                billing_mode=mode,
                member_id=uuid4(),
                class_id=gym_class.id,
            ),
            base_url=BASE_URL,
        )
        params = harness.stripe.created[-1]["params"]
        assert params["mode"] == "subscription"
        assert params["line_items"][0]["price_data"]["recurring"] == {"interval": interval}
        assert params["metadata"]["billing_frequency"] == str(mode)
        assert "subscription_data" in params


@pytest.mark.asyncio
async def test_per_session_mode_saves_card_without_charge() -> None:
    gym_class = make_class()
    harness = Harness(classes={gym_class.id: gym_class})

    await harness.service.create_checkout_session(
        CheckoutSessionCreate(
            price=Decimal("0"),
            billing_mode=PaymentMethodEnum.PER_SESSION,
            member_id=uuid4(),
            class_id=gym_class.id,
        ),
        base_url=BASE_URL,
    )

    params = harness.stripe.created[0]["params"]
    assert params["mode"] == "setup"
    assert "line_items" not in params
    assert params["setup_intent_data"] == {"metadata": params["metadata"]}


@pytest.mark.asyncio
async def test_coach_slot_checkout_uses_slot_details() -> None:
    slot = make_slot(SlotTypeEnum.GROUP)
    harness = Harness(slots={slot.id: slot})

    await harness.service.create_checkout_session(
        CheckoutSessionCreate(price=Decimal("15.00"), member_id=uuid4(), slot_id=slot.id),
        base_url=BASE_URL,
    )

    metadata = harness.stripe.created[0]["params"]["metadata"]
    assert metadata["flow"] == "COACH_SLOT"
    assert metadata["slot_id"] == str(slot.id)
    assert metadata["slot_type"] == "GROUP"
    assert metadata["coach_id"] == str(slot.coach_id)
    assert metadata["title"] == "Private 1-on-1"
    assert metadata["session_start"] == slot.start_at.isoformat()


@pytest.mark.asyncio
async def test_booked_slot_is_rejected_before_provider_call() -> None:
    slot = make_slot()
    harness = Harness(slots={slot.id: slot}, booked={slot.id})

    with pytest.raises(ConflictException):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(price=Decimal("30.00"), member_id=uuid4(), slot_id=slot.id),
            base_url=BASE_URL,
        )
    assert harness.stripe.created == []


@pytest.mark.asyncio
async def test_unknown_class_is_not_found() -> None:
    harness = Harness()

    with pytest.raises(NotFoundException):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(price=Decimal("10.00"), member_id=uuid4(), class_id=uuid4()),
            base_url=BASE_URL,
        )


@pytest.mark.asyncio
async def test_guest_checkout_prefills_email_and_carries_guest_details() -> None:
    gym_class = make_class(Decimal("12.50"))
    harness = Harness(classes={gym_class.id: gym_class})

    await harness.service.create_checkout_session(
        CheckoutSessionCreate(
            price=Decimal("12.50"),
            class_id=gym_class.id,
            guest_booking=guest_details(),
            success_path="/thanks",
        ),
        base_url=BASE_URL,
    )

    params = harness.stripe.created[0]["params"]
    assert params["customer_email"] == "alex@example.com"
    assert params["success_url"].startswith(f"{BASE_URL}/thanks?stripe_success=true")
    metadata = params["metadata"]
    assert metadata["flow"] == "GUEST"
    assert metadata["guest_booking"] == "true"
    assert metadata["guest_participant_name"] == "Robin"
    assert metadata["guest_contact_email"] == "alex@example.com"
    assert "member_id" not in metadata


@pytest.mark.asyncio
async def test_retry_with_draft_reuses_existing_session() -> None:
    draft = FakeDraft(
        id=uuid4(),
        flow=CheckoutFlowEnum.CLASS,
        billing_mode=PaymentMethodEnum.ONE_OFF,
        payload={},
        expires_at=FIXED_NOW + timedelta(minutes=45),
        member_id=uuid4(),
        stripe_session_id="cs_existing",
    )
    harness = Harness(drafts=[draft])

    result = await harness.service.create_checkout_session(
        CheckoutSessionCreate(
            price=Decimal("10.00"),
            member_id=draft.member_id,
            class_id=uuid4(),
            draft_id=draft.id,
        ),
        base_url=BASE_URL,
    )

    assert result.id == "cs_existing"
    assert harness.stripe.created == []


@pytest.mark.asyncio
async def test_completed_draft_cannot_be_reused() -> None:
    draft = FakeDraft(
        id=uuid4(),
        flow=CheckoutFlowEnum.CLASS,
        billing_mode=PaymentMethodEnum.ONE_OFF,
        payload={},
        expires_at=FIXED_NOW + timedelta(minutes=45),
        member_id=uuid4(),
        status=CheckoutDraftStatusEnum.COMPLETED,
    )
    harness = Harness(drafts=[draft])

    with pytest.raises(ConflictException):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(
                price=Decimal("10.00"),
                member_id=draft.member_id,
                class_id=uuid4(),
                draft_id=draft.id,
            ),
            base_url=BASE_URL,
        )


@pytest.mark.asyncio
async def test_expired_draft_is_replaced_by_new_one() -> None:
    gym_class = make_class()
    stale = FakeDraft(
        id=uuid4(),
        flow=CheckoutFlowEnum.CLASS,
        billing_mode=PaymentMethodEnum.ONE_OFF,
        payload={},
        expires_at=FIXED_NOW - timedelta(minutes=1),
        member_id=uuid4(),
        stripe_session_id="cs_stale",
    )
    harness = Harness(classes={gym_class.id: gym_class}, drafts=[stale])

    result = await harness.service.create_checkout_session(
        CheckoutSessionCreate(
            price=Decimal("10.00"),
            member_id=stale.member_id,
            class_id=gym_class.id,
            draft_id=stale.id,
        ),
        base_url=BASE_URL,
    )

    assert stale.status == CheckoutDraftStatusEnum.EXPIRED
    assert result.draft_id != stale.id
    assert result.id == "cs_test_1"


@pytest.mark.asyncio
async def test_get_draft_expires_stale_open_draft() -> None:
    draft = FakeDraft(
        id=uuid4(),
        flow=CheckoutFlowEnum.GUEST,
        billing_mode=PaymentMethodEnum.ONE_OFF,
        payload={},
        expires_at=FIXED_NOW - timedelta(seconds=1),
        member_id=None,
    )
    harness = Harness(drafts=[draft])

    result = await harness.service.get_draft(draft.id)

    assert result.status == CheckoutDraftStatusEnum.EXPIRED
    with pytest.raises(NotFoundException):
        await harness.service.get_draft(uuid4())


@pytest.mark.asyncio
async def test_webhook_reconciles_completed_and_async_paid_sessions() -> None:
    harness = Harness()

    for event_type in ("checkout.session.completed", "checkout.session.async_payment_succeeded"):
        harness.stripe.event = {
            "id": "evt_1",
            "type": event_type,
            "data": {"object": {"id": "cs_webhook", "metadata": {}}},
        }
        ack = await harness.service.handle_webhook(b"{}", "t=1,v1=good")
        assert ack.received is True

    assert harness.reconciler.calls == [("cs_webhook", "webhook"), ("cs_webhook", "webhook")]


@pytest.mark.asyncio
async def test_webhook_ignores_other_events_and_rejects_bad_signatures() -> None:
    harness = Harness()
    harness.stripe.event = {"id": "evt_2", "type": "invoice.paid", "data": {"object": {"id": "in_1"}}}

    ack = await harness.service.handle_webhook(b"{}", "t=1,v1=good")
    assert ack.received is True
    assert harness.reconciler.calls == []

    with pytest.raises(SignatureVerificationException):
        await harness.service.handle_webhook(b"{}", "t=1,v1=forged")


@pytest.mark.asyncio
async def test_refund_uses_payment_intent_and_flags_ledger() -> None:
    harness = Harness(sessions={"cs_paid": {"id": "cs_paid", "payment_intent": {"id": "pi_1"}}})
    admin = SimpleNamespace(id=uuid4(), role=SimpleNamespace(name=RoleEnum.ADMIN))

    response = await harness.service.refund("cs_paid", admin)

    assert harness.stripe.refunds == [{"payment_intent": "pi_1", "idempotency_key": "refund:cs_paid"}]
    assert harness.billing.refunded == [("cs_paid", "re_1")]
    assert response.refund_id == "re_1"
    assert response.transaction_id is not None


@pytest.mark.asyncio
async def test_refund_without_payment_is_rejected() -> None:
    harness = Harness(sessions={"cs_setup": {"id": "cs_setup", "payment_intent": None}})
    admin = SimpleNamespace(id=uuid4(), role=SimpleNamespace(name=RoleEnum.ADMIN))

    with pytest.raises(ValidationException):
        await harness.service.refund("cs_setup", admin)
    assert harness.stripe.refunds == []


@pytest.mark.asyncio
async def test_subscription_refund_uses_invoice_payment_intent() -> None:
    harness = Harness(
        sessions={
            "cs_monthly": {
                "id": "cs_monthly",
                "mode": "subscription",
                "payment_intent": None,
                "invoice": "in_1",
                "subscription": "sub_1",
            }
        }
    )
    harness.stripe.invoices["in_1"] = {"id": "in_1", "payment_intent": "pi_invoice"}
    admin = SimpleNamespace(id=uuid4(), role=SimpleNamespace(name=RoleEnum.ADMIN))

    await harness.service.refund("cs_monthly", admin)

    assert harness.stripe.refunds == [{"payment_intent": "pi_invoice", "idempotency_key": "refund:cs_monthly"}]
    assert harness.stripe.invoice_calls == [("in_1", None)]


@pytest.mark.asyncio
async def test_subscription_refund_falls_back_to_latest_invoice_payments() -> None:
    harness = Harness(
        sessions={
            "cs_weekly": {
                "id": "cs_weekly",
                "mode": "subscription",
                "payment_intent": None,
                "invoice": None,
                "subscription": {"id": "sub_2"},
            }
        }
    )
    harness.stripe.subscriptions["sub_2"] = {"id": "sub_2", "latest_invoice": {"id": "in_2"}}
    harness.stripe.invoices["in_2"] = {"id": "in_2"}
    harness.stripe.expanded_invoices["in_2"] = {
        "id": "in_2",
        "payments": {"data": [{"payment": {"type": "payment_intent", "payment_intent": "pi_weekly"}}]},
    }
    admin = SimpleNamespace(id=uuid4(), role=SimpleNamespace(name=RoleEnum.ADMIN))

    response = await harness.service.refund("cs_weekly", admin)

    assert response.refund_id == "re_1"
    assert harness.stripe.refunds[0]["payment_intent"] == "pi_weekly"
    assert harness.stripe.invoice_calls == [("in_2", None), ("in_2", ["payments"])]
    assert harness.billing.refunded == [("cs_weekly", "re_1")]


@pytest.mark.asyncio
async def test_price_must_match_listed_price() -> None:
    gym_class = make_class(Decimal("10.00"))
    slot = make_slot(price=Decimal("30.00"))
    harness = Harness(classes={gym_class.id: gym_class}, slots={slot.id: slot})

    with pytest.raises(ValidationException):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(price=Decimal("0.50"), member_id=uuid4(), class_id=gym_class.id),
            base_url=BASE_URL,
        )
    with pytest.raises(ValidationException):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(price=Decimal("1.00"), member_id=uuid4(), slot_id=slot.id),
            base_url=BASE_URL,
        )
    assert harness.stripe.created == []
    assert harness.checkout.drafts == {}


@pytest.mark.asyncio
async def test_member_can_book_for_own_dependent() -> None:
    gym_class = make_class()
    member_id = uuid4()
    dependent = make_dependent(member_id)
    harness = Harness(classes={gym_class.id: gym_class}, dependents=[dependent])

    await harness.service.create_checkout_session(
        CheckoutSessionCreate(
            price=Decimal("10.00"),
            member_id=member_id,
            participant_id=dependent.id,
            class_id=gym_class.id,
        ),
        base_url=BASE_URL,
    )

    metadata = harness.stripe.created[0]["params"]["metadata"]
    assert metadata["member_id"] == str(member_id)
    assert metadata["participant_id"] == str(dependent.id)
    assert metadata["participant_name"] == "Robin Member"


@pytest.mark.asyncio
async def test_member_booking_for_self_records_member_as_participant() -> None:
    gym_class = make_class()
    member_id = uuid4()
    harness = Harness(classes={gym_class.id: gym_class})

    await harness.service.create_checkout_session(
        CheckoutSessionCreate(price=Decimal("10.00"), member_id=member_id, class_id=gym_class.id),
        base_url=BASE_URL,
    )

    metadata = harness.stripe.created[0]["params"]["metadata"]
    assert metadata["participant_id"] == str(member_id)
    assert metadata["participant_name"] == "Jamie Member"


@pytest.mark.asyncio
async def test_participant_outside_members_family_is_rejected() -> None:
    gym_class = make_class()
    member_id = uuid4()
    someone_elses_child = make_dependent(uuid4())
    harness = Harness(classes={gym_class.id: gym_class}, dependents=[someone_elses_child])

    for participant_id in (someone_elses_child.id, uuid4()):
        with pytest.raises(ValidationException):
            await harness.service.create_checkout_session(
                CheckoutSessionCreate(
                    price=Decimal("10.00"),
                    member_id=member_id,
                    participant_id=participant_id,
                    class_id=gym_class.id,
                ),
                base_url=BASE_URL,
            )
    assert harness.stripe.created == []
    assert harness.checkout.drafts == {}


@pytest.mark.asyncio
async def test_class_age_limits_apply_to_dependent_and_guest() -> None:
    gym_class = make_class(min_age=8, max_age=15)
    member_id = uuid4()
    toddler = make_dependent(member_id, date_of_birth=date(2022, 6, 1))
    harness = Harness(classes={gym_class.id: gym_class}, dependents=[toddler])

    with pytest.raises(ValidationException, match="starts at age 8"):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(
                price=Decimal("10.00"),
                member_id=member_id,
                participant_id=toddler.id,
                class_id=gym_class.id,
            ),
            base_url=BASE_URL,
        )
    with pytest.raises(ValidationException, match="up to 15"):
        await harness.service.create_checkout_session(
            CheckoutSessionCreate(
                price=Decimal("10.00"),
                class_id=gym_class.id,
                guest_booking=guest_details(participant_dob=date(2000, 1, 1)),
            ),
            base_url=BASE_URL,
        )
    assert harness.stripe.created == []


def test_config_requires_publishable_key() -> None:
    assert Harness(stripe_publishable_key="pk_test_1").service.get_config().publishable_key == "pk_test_1"
    with pytest.raises(ConfigurationException):
        Harness().service.get_config()


def test_checkout_routes_validate_before_provider_and_require_signature() -> None:
    gym_class = make_class()
    harness = Harness(classes={gym_class.id: gym_class})
    main_module.app.dependency_overrides[get_checkout_service] = lambda: harness.service
    try:
        client = TestClient(main_module.app)
        missing_price = client.post(
            "/api/v1/checkout/sessions",
            json={"member_id": str(uuid4()), "class_id": str(gym_class.id)},
        )
        created = client.post(
            "/api/v1/checkout/sessions",
            json={"price": "10.00", "member_id": str(uuid4()), "class_id": str(gym_class.id)},
        )
        unsigned = client.post("/api/v1/checkout/webhook", content=b"{}")
    finally:
        main_module.app.dependency_overrides.clear()

    assert missing_price.status_code == 400
    assert missing_price.json()["error"]["code"] == "validation_error"
    assert created.status_code == 201
    assert created.json()["id"] == "cs_test_1"
    assert unsigned.status_code == 403
    assert len(harness.stripe.created) == 1
