"""
Message Builder for the order flow.

Renders the Spanish replies of the assistant from fixed templates: the
question for each step, the order summary shown at review, and the short
notes that explain a miss ("no encontré...", "no está disponible").

Replies are meant to be spoken, so clean_text_for_tts strips symbols a
speech engine would read aloud.
"""

import re
from typing import Iterable

from .catalog import Branch, Catalog, PaymentMethod
from .flow import TurnOutcome
from .models import FinalizedOrder, Order
from .pricing import PriceBreakdown
from .schemas.steps import Step, StepKind
from .slot_orchestrator import resolve_beverage


class ReplyMessages:
    """Standard messages for the order flow."""

    WELCOME = "¡Hola! Bienvenido a Starbucks, soy tu asistente para ordenar por voz."
    ASK_READY = "¿Estás listo para ordenar?"
    NOT_READY = "Sin prisa, avísame cuando estés listo para ordenar."
    ASK_BRANCH = "¿En qué sucursal quieres recoger tu pedido?"
    ASK_BEVERAGE = "¿Qué bebida te gustaría?"
    ASK_SIZE = "¿De qué tamaño quieres tu {beverage}?"
    ASK_MODIFIER = "¿Qué {group} prefieres?"
    ASK_FOOD = "¿Quieres algo de comer para acompañar?"
    ASK_REVIEW = "¿Quieres agregar o quitar algo?"
    ASK_CONFIRM = "¿Confirmas tu pedido por un total de ${total:.2f}?"
    ASK_PAYMENT = "¿Cómo quieres pagar?"
    ASK_REMOVE_WHICH = "¿Qué quieres quitar?"
    ASK_CHANGE_WHICH = "¿Qué quieres cambiar?"

    NOT_FOUND = "No encontré eso en el menú."
    NOT_UNDERSTOOD = "No te entendí bien."
    UNAVAILABLE = "Lo siento, {name} no está disponible por ahora."
    OPTIONS = "Puedes elegir: {options}."
    NEW_ORDER = "¡Claro! Empecemos un nuevo pedido."
    INVALID_ORDER = "Necesito revisar algunos datos de tu pedido."

    COMPLETED = (
        "¡Listo! Tu número de orden es {number}. Total: ${total:.2f}. "
        "Ganaste {stars} estrellas. Recógelo en {branch}."
    )
    ALREADY_COMPLETED = (
        "Tu pedido {number} ya está confirmado. Si quieres hacer otro pedido, solo dímelo."
    )


# Questions for well-known modifier groups
MODIFIER_PROMPTS = {
    "tipo_leche": "¿Con qué tipo de leche la quieres?",
    "tipo_cafe": "¿Con qué tipo de café la quieres?",
    "tipo_grano": "¿Qué tipo de grano prefieres?",
    "splash_leche": "¿Quieres un toque de leche?",
    "crema_batida": "¿Deseas crema batida?",
    "tipo_molido": "¿Qué tipo de molido prefieres?",
    "intensidad": "¿Qué intensidad prefieres?",
    "adicionales": "¿Algún adicional?",
}


def format_options(options: list[str]) -> str:
    """Join choices the way they are spoken: "A, B o C"."""
    if not options:
        return ""
    if len(options) == 1:
        return options[0]
    return f"{', '.join(options[:-1])} o {options[-1]}"


def clean_text_for_tts(text: str) -> str:
    """
    Strip characters a speech engine would read aloud.

    Removes currency signs, brackets, markdown emphasis, bullets, quotes and
    emoji, spells out "&", and collapses whitespace.
    """
    result = text.replace("$", "")
    result = re.sub(r"pesos mexicanos", "pesos", result, flags=re.IGNORECASE)
    result = re.sub(r"\bMXN\b", "pesos", result, flags=re.IGNORECASE)
    result = result.replace("&", " y ")
    result = re.sub(r"[{}\[\]*•\"“”]", "", result)
    result = re.sub(r"[\U0001F300-\U0001FAFF☀-➿]", "", result)
    result = re.sub(r"\s+", " ", result)
    result = re.sub(r"\b1\s+estrellas\b", "1 estrella", result, flags=re.IGNORECASE)
    return result.strip()


class MessageBuilder:
    """
    Builds the assistant replies for the order flow.

    Args:
        catalog: Catalog used to describe the beverage configuration
        branches: Known branches
        payment_methods: Accepted payment methods
    """

    def __init__(
        self,
        catalog: Catalog,
        branches: Iterable[Branch],
        payment_methods: Iterable[PaymentMethod],
    ):
        self.catalog = catalog
        self.branches = list(branches)
        self.payment_methods = list(payment_methods)

    def welcome(self) -> str:
        return f"{ReplyMessages.WELCOME} {ReplyMessages.ASK_READY}"

    def prompt_for(self, step: Step, order: Order, breakdown: PriceBreakdown | None = None) -> str:
        """Question asked at a step."""
        kind = step.kind
        if kind is StepKind.WELCOME:
            return self.welcome()
        if kind is StepKind.AWAITING_READY:
            return ReplyMessages.ASK_READY
        if kind is StepKind.BRANCH:
            return ReplyMessages.ASK_BRANCH
        if kind is StepKind.BEVERAGE:
            return ReplyMessages.ASK_BEVERAGE
        if kind is StepKind.SIZE:
            beverage = order.beverage.name if order.beverage else "bebida"
            return ReplyMessages.ASK_SIZE.format(beverage=beverage)
        if kind is StepKind.MODIFIER:
            if step.group_id in MODIFIER_PROMPTS:
                return MODIFIER_PROMPTS[step.group_id]
            product = resolve_beverage(order, self.catalog)
            group = product.get_group(step.group_id) if product else None
            name = group.name.lower() if group else step.group_id
            return ReplyMessages.ASK_MODIFIER.format(group=name)
        if kind is StepKind.FOOD:
            return ReplyMessages.ASK_FOOD
        if kind is StepKind.REVIEW:
            return f"{self.build_order_summary(order, breakdown)} {ReplyMessages.ASK_REVIEW}"
        if kind is StepKind.CONFIRM:
            total = breakdown.total if breakdown else 0.0
            return ReplyMessages.ASK_CONFIRM.format(total=total)
        if kind is StepKind.PAYMENT:
            return ReplyMessages.ASK_PAYMENT
        if order.order_number:
            return ReplyMessages.ALREADY_COMPLETED.format(number=order.order_number)
        return ""

    def build_order_summary(self, order: Order, breakdown: PriceBreakdown | None = None) -> str:
        """Spoken summary of the order: items first, then the total."""
        parts = []
        if breakdown is not None:
            beverage_line = next((i for i in breakdown.line_items if i.kind == "beverage"), None)
            modifiers = [i.name for i in breakdown.line_items if i.kind == "modifier"]
            foods = [i.name for i in breakdown.line_items if i.kind == "food"]
            if beverage_line is not None:
                description = beverage_line.name
                if beverage_line.size:
                    description += f" {beverage_line.size}"
                if modifiers:
                    description += f" con {format_options(modifiers).replace(' o ', ' y ')}"
                parts.append(description)
            parts.extend(foods)
        elif order.beverage is not None:
            parts.append(order.beverage.name)
            if order.has_food:
                parts.append(order.food.name)

        if not parts:
            return "Tu pedido está vacío."
        items = format_options(parts).replace(" o ", " y ")
        summary = f"Tu pedido: {items}"
        if order.branch:
            summary += f", para recoger en {order.branch}"
        if breakdown is not None:
            summary += f". Total: ${breakdown.total:.2f}"
        return summary + "."

    def build_completion(self, finalized: FinalizedOrder) -> str:
        return ReplyMessages.COMPLETED.format(
            number=finalized.order_number,
            total=finalized.total,
            stars=finalized.loyalty_points,
            branch=finalized.order.branch,
        )

    def build_reply(
        self,
        outcome: TurnOutcome,
        order: Order,
        breakdown: PriceBreakdown | None = None,
        suggestions: list[str] | None = None,
    ) -> str:
        """
        Reply for a processed turn.

        A note on what went wrong (if anything) is followed by the question
        for the next step and the offered choices.
        """
        if outcome.finalized is not None:
            return self.build_completion(outcome.finalized)
        if outcome.step.kind is StepKind.DONE:
            return ReplyMessages.ALREADY_COMPLETED.format(number=order.order_number)

        parts: list[str] = []
        if outcome.new_order_started:
            parts.append(ReplyMessages.NEW_ORDER)
        if outcome.validation is not None and not outcome.validation.valid:
            parts.append(ReplyMessages.INVALID_ORDER)

        answer = outcome.answer
        if answer is not None and not answer.accepted:
            if answer.note == "unavailable" and answer.match and answer.match.name:
                parts.append(ReplyMessages.UNAVAILABLE.format(name=answer.match.name))
            elif answer.note == "not_ready":
                return ReplyMessages.NOT_READY
            elif answer.note == "remove_which":
                parts.append(ReplyMessages.ASK_REMOVE_WHICH)
            elif answer.note == "change_which":
                parts.append(ReplyMessages.ASK_CHANGE_WHICH)
            elif answer.match is not None and not answer.match.found:
                parts.append(ReplyMessages.NOT_FOUND)
            elif outcome.step == outcome.previous_step:
                parts.append(ReplyMessages.NOT_UNDERSTOOD)

        if not (answer is not None and answer.note in ("remove_which", "change_which")):
            parts.append(self.prompt_for(outcome.step, order, breakdown))
        if suggestions and outcome.step.kind not in (StepKind.REVIEW, StepKind.CONFIRM):
            parts.append(ReplyMessages.OPTIONS.format(options=format_options(suggestions)))
        elif suggestions and answer is not None and answer.note in ("remove_which", "change_which"):
            parts.append(ReplyMessages.OPTIONS.format(options=format_options(suggestions)))

        return " ".join(part for part in parts if part)
