"""
Parser Constants.

Keyword tables used to interpret Spanish voice input: mis-encoding repairs,
spoken variants of catalog concepts, filler words ignored by the matcher,
and the keyword lists behind intent detection.

All entries (except MISENCODED_SEQUENCES) are written in normalized form:
lower case, no accents, no punctuation.
"""

import re

# =============================================================================
# Mis-encoded Sequences
# =============================================================================

# UTF-8 accented characters that were re-read as Latin-1. Keys are lower case
# because normalization lower-cases before repairing.
MISENCODED_SEQUENCES = {
    "ã©": "é",
    "ã¡": "á",
    "ã­": "í",
    "ã³": "ó",
    "ãº": "ú",
    "ã±": "ñ",
    "ã¼": "ü",
    "â®": "®",
    "â©": "©",
    "â´": "",
}

# =============================================================================
# Alias Tables
# =============================================================================
# concept key -> spoken variants. A candidate whose name contains the key is
# a hit when the utterance contains one of the variants.

PRODUCT_ALIASES = {
    "espresso": ["espresso", "expreso", "expres", "expresso", "esprreso"],
    "croissant": ["croissant", "cruasan", "croissan", "croasan"],
    "muffin": ["muffin", "mofin", "mufin", "magdalena"],
    "brownie": ["brownie", "brauni", "browni"],
    "sandwich": ["sandwich", "sanwich", "emparedado"],
    "bagel": ["bagel", "baguel", "beigel"],
    "cookie": ["cookie", "galleta", "coki"],
    "galleta": ["galleta", "cookie", "coki"],
    "donut": ["donut", "dona", "donuts"],
    "dona": ["dona", "donut", "donuts"],
    "cake pop": ["cake pop", "cakepop", "paleta"],
    "panini": ["panini", "panino"],
    "baguette": ["baguette", "baget", "baguete"],
    "frappuccino": ["frappuccino", "frapuccino", "frapuchino", "frappe", "frape"],
    "chocolate": ["chocolate", "choco"],
}

# Size labels as they appear in the catalog, with the ways customers say them
SIZE_ALIASES = {
    "corto": ["corto", "short", "pequeno", "chico", "chiquito"],
    "alto": ["alto", "tall"],
    "grande": ["grande", "mediano", "medio", "regular", "large"],
    "venti": ["venti", "benti", "bendi"],
}

# Modifier option concepts (milk types, espresso blends)
OPTION_KEYWORDS = {
    "espresso": ["espresso", "expreso", "expres", "expresso", "esprreso"],
    "anniversary": ["anniversary", "aniversario", "anniversario", "aniversary", "blend"],
    "entera": ["entera", "completa", "normal", "whole"],
    "light": ["light", "ligera", "baja grasa", "descremada", "semidescremada"],
    "coco": ["coco", "coconut"],
    "sin leche": ["sin leche", "no leche", "ninguna", "black", "negro"],
    "soya": ["soya", "soy", "soja"],
    "almendra": ["almendra", "almond"],
    "deslactosada": ["deslactosada", "lactose free", "sin lactosa"],
}

# =============================================================================
# Filler Words
# =============================================================================

# Words ignored when scoring token overlap
FILLER_WORDS = {
    "quiero", "queria", "quisiera", "gustaria", "dame", "deme", "denme",
    "puedes", "podria", "podrias", "pedir", "ordenar", "tomar", "traer",
    "una", "uno", "unos", "unas", "los", "las", "del", "con", "por", "favor",
    "porfa", "porfavor", "para", "que", "sea", "este", "esta", "eso", "esa",
    "ese", "tambien", "mas", "pero", "bien", "gracias", "hola", "buenos",
    "buenas", "dias", "tardes", "noches", "please", "mejor",
}

# =============================================================================
# Numbers and Ordinals
# =============================================================================

WORD_TO_NUM = {
    "uno": 1, "una": 1,
    "dos": 2,
    "tres": 3,
    "cuatro": 4,
    "cinco": 5,
    "seis": 6,
    "siete": 7,
    "ocho": 8,
    "nueve": 9,
    "diez": 10,
}

ORDINAL_WORDS = {
    "primero": 1, "primera": 1, "primer": 1,
    "segundo": 2, "segunda": 2,
    "tercero": 3, "tercera": 3, "tercer": 3,
    "cuarto": 4, "cuarta": 4,
    "quinto": 5, "quinta": 5,
}

# "2", "el dos", "numero 2", "la segunda", "opcion tres"
ORDINAL_PATTERN = re.compile(
    r"^(?:(?:el|la|lo)\s+)?(?:(?:numero|opcion|num)\s+)?(\w+)(?:\s+(?:opcion|por favor|porfa))?$"
)

# =============================================================================
# Intent Keywords
# =============================================================================

NEW_ORDER_KEYWORDS = [
    "nuevo pedido", "otra orden", "otro pedido", "nueva orden", "quiero pedir",
    "quiero ordenar", "hacer otro pedido", "nuevo", "otra vez",
]

ADD_KEYWORDS = [
    "quiero agregar", "tambien quiero", "y tambien", "agrega", "agregar",
    "anade", "anadir", "incluye", "agregame",
]

REMOVE_KEYWORDS = [
    "ya no quiero", "mejor no", "quita", "quitar", "quitale", "elimina",
    "eliminar", "cancela", "borra",
]

CHANGE_KEYWORDS = [
    "cambia", "cambiar", "cambialo", "en vez de", "en lugar de", "modifica",
    "modificar", "corrige", "corregir", "no es correcto", "esta mal",
]

# Product words that, after an order is closed, signal a new order
PRODUCT_MENTION_KEYWORDS = [
    "latte", "cappuccino", "capuchino", "americano", "espresso", "mocha",
    "frappuccino", "cafe", "muffin", "croissant", "brownie",
    "sandwich", "bagel",
]

# =============================================================================
# Yes / No Patterns
# =============================================================================

AFFIRMATIVE_PATTERN = re.compile(
    r"\b(si|sip|claro|correcto|esta bien|asi esta bien|dale|ok|okay|va|vale|"
    r"perfecto|de acuerdo|listo|adelante|confirmo|confirmar|por supuesto|exacto|"
    r"eso es|simon|afirmativo|sale|ya estoy listo|estoy listo)\b"
)

NEGATIVE_PATTERN = re.compile(
    r"\b(no|nel|nop|nope|negativo|para nada|incorrecto|todavia no|aun no)\b"
)

# Answers at the review step meaning "the order is fine as it is"
REVIEW_DONE_PATTERN = re.compile(
    r"\b(no|nada|esta bien|asi esta|todo bien|perfecto|listo|continua|continuar|"
    r"cerrar|confirmar|ok|es todo|eso es todo|nada mas)\b"
)

# Answers at the food step meaning "no food"
NO_FOOD_PATTERN = re.compile(
    r"\b(no|ninguno|ninguna|nada|sin alimento|sin comida|solo la bebida|solo bebida)\b"
)
