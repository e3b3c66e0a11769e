"""
Quick-pick catalog
Fixed product names grouped by presentation, used to pre-fill a search term.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class CatalogCategory:
    title: str
    items: Tuple[str, ...]


CATALOG_CATEGORIES: Tuple[CatalogCategory, ...] = (
    CatalogCategory(
        title="Botes y Latones (Lata)",
        items=(
            "Pacífico Clara Bote 355ml",
            "Pacífico Light Bote 330ml",
            "Pacífico Suave Bote",
            "Corona Extra Bote 355ml",
            "Corona Light Bote 355ml",
            "Corona Cero Bote 355ml",
            "Modelo Especial Bote 355ml",
            "Modelo Especial Latón 473ml",
            "Victoria Bote 355ml",
            "Victoria Latón 473ml",
            "Michelob Ultra Bote 355ml",
            "Michelob Ultra Slim 355ml",
            "Bud Light Bote 355ml",
            "Barrilito Bote",
        ),
    ),
    CatalogCategory(
        title="Vidrio: Medias y Cuartitos",
        items=(
            "Pacífico Media 355ml",
            "Pacífico Cuartito 210ml",
            "Pacífico Light Cuartito",
            "Corona Extra Media 355ml",
            "Corona Cuartito 210ml",
            "Corona Light Media 355ml",
            "Victoria Media 355ml",
            "Victoria Cuartito",
            "Modelo Especial Botella",
            "Negra Modelo Botella",
            "Montejo Botella",
            "León Botella",
            "Estrella Botella",
            "Michelob Ultra Botella Media",
            "Michelob Ultra Cuartito",
            "Stella Artois Botella 330ml",
            "Barrilito Botella 325ml",
        ),
    ),
    CatalogCategory(
        title="Familiar, Mega y Ballenas",
        items=(
            "Pacífico Ballena 940ml",
            "Pacífico Ballenón 1.2L",
            "Corona Familiar 940ml",
            "Corona Mega 1.2L",
            "Victoria Familiar 940ml",
            "Victoria Ballenón 1.2L",
            "Modelo Especial Familiar",
            "Modelo Mega 1.2L",
            "Corona Caguamón",
            "Miller High Life Ballena",
        ),
    ),
)


def all_items() -> List[str]:
    """Every catalog entry, in display order (categories first to last)"""
    return [item for category in CATALOG_CATEGORIES for item in category.items]


def find_category(item: str) -> Optional[CatalogCategory]:
    for category in CATALOG_CATEGORIES:
        if item in category.items:
            return category
    return None
