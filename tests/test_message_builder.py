"""
Tests for reply rendering and text-to-speech cleanup.
"""
from datetime import datetime, timezone

import pytest

from barista_bot.tasks.flow import AnswerOutcome, TurnOutcome
from barista_bot.tasks.message_builder import (
    MessageBuilder,
    ReplyMessages,
    clean_text_for_tts,
    format_options,
)
from barista_bot.tasks.models import FinalizedOrder, LineItem, MatchResult, Order, ProductRef
from barista_bot.tasks.parsers.intents import Intent
from barista_bot.tasks.pricing import price_order
from barista_bot.tasks.schemas.steps import BEVERAGE, BRANCH, CONFIRM, DONE, REVIEW, SIZE, Step


@pytest.fixture
def builder(catalog, branches, payment_methods):
    return MessageBuilder(catalog, branches, payment_methods)


class TestFormatOptions:

    @pytest.mark.parametrize("options,expected", [
        ([], ""),
        (["Latte"], "Latte"),
        (["Latte", "Mocha"], "Latte o Mocha"),
        (["Latte", "Cappuccino", "Mocha"], "Latte, Cappuccino o Mocha"),
    ])
    def test_spoken_list(self, options, expected):
        assert format_options(options) == expected


class TestCleanTextForTTS:
    """Symbols a speech engine would read aloud are removed."""

    def test_currency_sign_removed(self):
        assert clean_text_for_tts("Total: $118.00.") == "Total: 118.00."

    def test_currency_names(self):
        assert clean_text_for_tts("Son 50 pesos mexicanos") == "Son 50 pesos"
        assert clean_text_for_tts("Son 50 MXN") == "Son 50 pesos"

    def test_ampersand_spelled_out(self):
        assert clean_text_for_tts("Jamón & Queso") == "Jamón y Queso"

    def test_markup_and_quotes_removed(self):
        assert clean_text_for_tts('**Latte** • "Grande" [x]') == "Latte Grande x"

    def test_emoji_removed(self):
        assert clean_text_for_tts("¡Listo! ☕ Gracias 😊") == "¡Listo! Gracias"

    def test_singular_star(self):
        assert clean_text_for_tts("Ganaste 1 estrellas.") == "Ganaste 1 estrella."
        assert clean_text_for_tts("Ganaste 11 estrellas.") == "Ganaste 11 estrellas."

    def test_plain_text_unchanged(self):
        text = "¿Qué bebida te gustaría?"
        assert clean_text_for_tts(text) == text


class TestPrompts:

    def test_welcome_asks_if_ready(self, builder):
        assert builder.welcome().endswith(ReplyMessages.ASK_READY)

    def test_size_prompt_names_beverage(self, builder):
        order = Order(beverage=ProductRef(id="cappuccino", name="Cappuccino"))
        assert builder.prompt_for(SIZE, order) == "¿De qué tamaño quieres tu Cappuccino?"

    def test_known_modifier_prompt(self, builder):
        order = Order(beverage=ProductRef(id="caffe_latte", name="Caffè Latte"))
        assert builder.prompt_for(Step.modifier("tipo_leche"), order) == "¿Con qué tipo de leche la quieres?"

    def test_unknown_modifier_falls_back_to_group_id(self, builder):
        order = Order(beverage=ProductRef(id="caffe_latte", name="Caffè Latte"))
        assert builder.prompt_for(Step.modifier("sabor"), order) == "¿Qué sabor prefieres?"

    def test_confirm_prompt_carries_total(self, builder, catalog, latte_order):
        order = latte_order()
        breakdown = price_order(order, catalog)
        assert builder.prompt_for(CONFIRM, order, breakdown) == "¿Confirmas tu pedido por un total de $69.00?"


class TestOrderSummary:

    def test_full_summary(self, builder, catalog, latte_order):
        order = latte_order(food=ProductRef(id="croissant", name="Croissant"))
        breakdown = price_order(order, catalog)
        assert builder.build_order_summary(order, breakdown) == (
            "Tu pedido: Caffè Latte Grande con Leche Entera y Croissant, "
            "para recoger en Starbucks Reforma 222. Total: $111.00."
        )

    def test_summary_without_breakdown(self, builder):
        order = Order(beverage=ProductRef(id="americano", name="Americano"))
        assert builder.build_order_summary(order) == "Tu pedido: Americano."

    def test_empty_order(self, builder):
        assert builder.build_order_summary(Order()) == "Tu pedido está vacío."

    def test_review_prompt_includes_summary(self, builder, catalog, latte_order):
        order = latte_order(reviewed=False, confirmed=False)
        reply = builder.prompt_for(REVIEW, order, price_order(order, catalog))
        assert reply.startswith("Tu pedido: Caffè Latte Grande")
        assert reply.endswith(ReplyMessages.ASK_REVIEW)


class TestBuildReply:

    def test_miss_reports_not_found_and_options(self, builder):
        outcome = TurnOutcome(
            previous_step=BEVERAGE,
            step=BEVERAGE,
            intent=Intent.NONE,
            answer=AnswerOutcome(step=BEVERAGE, accepted=False, match=MatchResult(found=False)),
        )
        reply = builder.build_reply(outcome, Order(), None, ["Caffè Latte", "Cappuccino", "Americano"])
        assert reply == (
            "No encontré eso en el menú. ¿Qué bebida te gustaría? "
            "Puedes elegir: Caffè Latte, Cappuccino o Americano."
        )

    def test_unavailable_names_product(self, builder, catalog):
        nitro = catalog.find("nitro_cold_brew")
        outcome = TurnOutcome(
            previous_step=BEVERAGE,
            step=BEVERAGE,
            intent=Intent.NONE,
            answer=AnswerOutcome(
                step=BEVERAGE,
                accepted=False,
                match=MatchResult(found=False, entity=nitro),
                note="unavailable",
            ),
        )
        reply = builder.build_reply(outcome, Order())
        assert reply.startswith("Lo siento, Nitro Cold Brew no está disponible por ahora.")

    def test_not_ready(self, builder):
        step = Step.parse("awaiting_ready")
        outcome = TurnOutcome(
            previous_step=step,
            step=step,
            intent=Intent.NONE,
            answer=AnswerOutcome(step=step, accepted=False, note="not_ready"),
        )
        assert builder.build_reply(outcome, Order(welcomed=True)) == ReplyMessages.NOT_READY

    def test_new_order_is_announced(self, builder):
        outcome = TurnOutcome(previous_step=DONE, step=BRANCH, intent=Intent.NEW_ORDER, new_order_started=True)
        reply = builder.build_reply(outcome, Order(welcomed=True, ready_to_order=True))
        assert reply == f"{ReplyMessages.NEW_ORDER} {ReplyMessages.ASK_BRANCH}"

    def test_remove_which_lists_items(self, builder):
        outcome = TurnOutcome(
            previous_step=REVIEW,
            step=REVIEW,
            intent=Intent.REMOVE,
            answer=AnswerOutcome(step=REVIEW, accepted=False, note="remove_which"),
        )
        reply = builder.build_reply(outcome, Order(), None, ["Caffè Latte", "Croissant"])
        assert reply == "¿Qué quieres quitar? Puedes elegir: Caffè Latte o Croissant."

    def test_completion(self, builder, latte_order):
        order = latte_order(payment_method="Starbucks Card", order_number="SBX191234")
        finalized = FinalizedOrder(
            order_number="SBX191234",
            order=order,
            line_items=[LineItem(kind="beverage", name="Caffè Latte", price=69.0, size="Grande")],
            total=69.0,
            loyalty_points=6,
            finalized_at=datetime(2024, 5, 19, 9, 0, tzinfo=timezone.utc),
        )
        outcome = TurnOutcome(previous_step=Step.parse("payment"), step=DONE, intent=Intent.NONE, finalized=finalized)
        assert builder.build_reply(outcome, order) == (
            "¡Listo! Tu número de orden es SBX191234. Total: $69.00. "
            "Ganaste 6 estrellas. Recógelo en Starbucks Reforma 222."
        )
