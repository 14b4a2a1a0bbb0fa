"""
Costanti per la riconciliazione bollette / clienti / immobili.
"""

# Placeholder usati quando il documento non riporta il dato
UNKNOWN_VALUE = "N/D"
"""Valore generico per fornitore/codice non rilevati."""

UNKNOWN_ADDRESS = "Indirizzo Sconosciuto"
"""Indirizzo assegnato a un immobile creato senza indirizzo estratto."""

UNKNOWN_CITY = "Città"
"""Città assegnata a un immobile creato senza città estratta."""

PLACEHOLDER_FIRST_NAME = "Nuovo"
PLACEHOLDER_LAST_NAME = "Cliente"
"""Nome/cognome di un cliente creato senza nominativo estratto."""

# Valori di default della fornitura
DEFAULT_UNIT_PRICE = 0.15
"""Prezzo materia prima (€/kWh o €/Smc) quando la bolletta non lo riporta."""

DEFAULT_FIXED_FEE_YEAR = 120.0
"""Quota fissa annua (€) quando la bolletta non la riporta."""

BILLING_PERIODS_PER_YEAR = 6
"""Le bollette sono bimestrali: consumo annuo = consumo in bolletta × 6."""

# Classificazione codice fiscale / partita IVA
OMOCODIA_LETTERS = "LMNPQRSTUV"
"""Lettere che sostituiscono le cifre 0-9 nei codici fiscali omocodici."""

COMPANY_NAME_KEYWORDS = (
    "SRL",
    "SRLS",
    "SPA",
    "SNC",
    "SAS",
    "DITTA",
    "SOCIETA",
)
"""Forme societarie cercate nel nominativo (dopo rimozione di punti e accenti)."""

# Operatore: scelta "nuovo immobile" dopo un risultato ambiguo
NEW_PROPERTY_CHOICE = "NEW"
