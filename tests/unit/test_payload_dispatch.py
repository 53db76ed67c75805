"""
Test suite for payload dispatch.

Verifies:
- Support payloads reply with the right persona
- SUPPORT_END fans out into closing text + survey
- Unmatched payloads return None per dispatcher, fallback at the router
- Dispatch is idempotent
"""

from config import PersonaConfig
from relay.dispatch import HandlerContext, PayloadDispatcher, PayloadRouter
from relay.handlers import core, create_router, support, survey
from relay.session import Session
from transport.messenger.schemas import UserProfile


def ana():
    return Session(user_id="U1", profile=UserProfile(first_name="Ana"))


class TestSupportDispatcher:
    """Tests for the SUPPORT_* handlers."""

    def test_billing_uses_billing_persona(self, context):
        response = support.dispatcher.dispatch(ana(), "SUPPORT_BILLING", context)

        assert len(response) == 1
        unit = response[0]
        assert unit.persona_id == "persona_billing"
        assert unit.message == {
            "text": context.translator.translate(
                "support.issue",
                "en_US",
                userFirstName="Ana",
                agentFirstName="Jessica",
                topic="Billing",
            )
        }
        assert "Ana" in unit.message["text"]
        assert "Jessica" in unit.message["text"]

    def test_order_and_inquiry_use_order_persona(self, context):
        for payload in ("SUPPORT_ORDER", "SUPPORT_INQUIRY"):
            response = support.dispatcher.dispatch(ana(), payload, context)
            assert response[0].persona_id == "persona_order"

    def test_sales_and_other(self, context):
        sales = support.dispatcher.dispatch(ana(), "SUPPORT_SALES", context)
        other = support.dispatcher.dispatch(ana(), "SUPPORT_OTHER", context)

        assert sales[0].persona_id == "persona_sales"
        assert "Laura" in sales[0].message["text"]
        assert other[0].persona_id == "persona_care"
        assert "Rose" in other[0].message["text"]

    def test_help_offers_quick_replies(self, context):
        response = support.dispatcher.dispatch(ana(), "SUPPORT_HELP", context)

        payloads = [reply["payload"] for reply in response[0].message["quick_replies"]]
        assert payloads == ["SUPPORT_ORDER", "SUPPORT_INQUIRY", "SUPPORT_BILLING", "SUPPORT_OTHER"]
        assert response[0].persona_id is None

    def test_end_appends_survey(self, context):
        response = support.dispatcher.dispatch(ana(), "SUPPORT_END", context)

        assert len(response) == 2
        closing, rating = response
        assert closing.persona_id == "persona_care"
        assert closing.message["text"] == context.translator.translate("support.end")
        assert [reply["payload"] for reply in rating.message["quick_replies"]] == [
            "CSAT_GOOD", "CSAT_AVERAGE", "CSAT_BAD",
        ]
        assert "Rose" in rating.message["text"]
        assert rating.delay_ms == survey.RATING_DELAY_MS

    def test_unknown_payload_returns_none(self, context):
        assert support.dispatcher.dispatch(ana(), "SUPPORT_UNKNOWN", context) is None
        assert support.dispatcher.dispatch(ana(), "support_billing", context) is None

    def test_dispatch_is_idempotent(self, context):
        session = ana()

        for payload in support.dispatcher.payloads:
            first = support.dispatcher.dispatch(session, payload, context)
            second = support.dispatcher.dispatch(session, payload, context)
            assert first == second

    def test_unconfigured_persona_sends_without_attribution(self, translator):
        context = HandlerContext(translator=translator, personas=PersonaConfig())

        response = support.dispatcher.dispatch(ana(), "SUPPORT_BILLING", context)

        assert response[0].persona_id is None

    def test_locale_follows_session(self, context):
        session = Session(user_id="U1", profile=UserProfile(first_name="Ana"), locale="de_DE")

        response = support.dispatcher.dispatch(session, "SUPPORT_BILLING", context)

        assert response[0].message["text"].startswith("Hallo Ana")


class TestSurveyDispatcher:

    def test_csat_answers(self, context):
        for payload, key in (
            ("CSAT_GOOD", "survey.positive"),
            ("CSAT_AVERAGE", "survey.neutral"),
            ("CSAT_BAD", "survey.negative"),
        ):
            response = survey.dispatcher.dispatch(ana(), payload, context)
            assert response[0].message["text"] == context.translator.translate(key)


class TestPayloadRouter:
    """Composition across dispatchers."""

    def test_first_matching_dispatcher_wins(self, context):
        router = create_router()

        response = router.route(ana(), "SUPPORT_BILLING", context)

        assert response[0].persona_id == "persona_billing"

    def test_get_started(self, context):
        response = create_router().route(ana(), "GET_STARTED", context)

        assert "Ana" in response[0].message["text"]
        buttons = response[1].message["attachment"]["payload"]["buttons"]
        assert buttons[0] == {"type": "web_url", "title": "Visit the shop", "url": "https://shop.example.com"}
        assert buttons[1]["payload"] == "SUPPORT_HELP"

    def test_fallback_when_nothing_matches(self, context):
        calls = []

        def fallback(session, ctx, payload):
            calls.append(payload)
            return core.error_reply(session, ctx)

        router = PayloadRouter([support.dispatcher, survey.dispatcher], fallback)

        response = router.route(ana(), "NOPE", context)

        assert calls == ["NOPE"]
        assert response == core.error_reply(ana(), context)

    def test_empty_handler_result_counts_as_no_match(self, context):
        silent = PayloadDispatcher("silent", {"SUPPORT_HELP": lambda session, ctx: []})
        router = PayloadRouter([silent, support.dispatcher], core.payload_fallback)

        response = router.route(ana(), "SUPPORT_HELP", context)

        assert "quick_replies" in response[0].message
