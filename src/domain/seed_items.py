from __future__ import annotations

from .custody import FORENSIC_ITEM_DOC_TYPE, Item, ItemId

# (ID, Description, Quantity, Custodian, Value)
SEED_CATALOGUE: tuple[tuple[str, str, int, str, int], ...] = (
    ("item1", "AmostraDeSangue", 1, "Dr.Silva", 300),
    ("item2", "Impressãodigital", 1, "OficialSantos", 400),
    ("item3", "SwabDeDNA", 2, "TécnicoLima", 500),
    ("item4", "Arma", 1, "DetetiveSouza", 650),
    ("item5", "FilmagemDevigilância", 1, "AgentePereira", 700),
    ("item6", "Documento", 3, "AnalistaOliveira", 800),
)


def seed_items() -> list[Item]:
    """Fresh Item instances for the bootstrap catalogue on every call."""
    return [
        Item(
            id=ItemId(item_id),
            description=description,
            quantity=quantity,
            custodian=custodian,
            value=value,
            doc_type=FORENSIC_ITEM_DOC_TYPE,
        )
        for item_id, description, quantity, custodian, value in SEED_CATALOGUE
    ]
