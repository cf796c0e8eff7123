"""
Catalog snapshot used when the host does not supply one
"""
from typing import List

from order_assistant.models.order_models import MenuItem

DEFAULT_MENU: List[MenuItem] = [
    MenuItem(
        id=1,
        name="Pollo Guisado",
        description="Delicioso pollo guisado al estilo dominicano con arroz blanco y habichuelas rojas",
        price=350,
        category="pollo",
        ingredients=["pollo", "cebolla", "pimiento", "ajo", "tomate", "cilantro"],
        preparation_time=15,
    ),
    MenuItem(
        id=2,
        name="Pollo al Horno",
        description="Pollo al horno con especias dominicanas, acompañado de yuca hervida",
        price=400,
        category="pollo",
        ingredients=["pollo", "oregano", "ajo", "limón", "yuca"],
        preparation_time=20,
    ),
    MenuItem(
        id=3,
        name="Res Guisada",
        description="Carne de res guisada con vegetales frescos y moro de guandules",
        price=450,
        category="res",
        ingredients=["res", "cebolla", "pimiento", "zanahoria", "guandules", "arroz"],
        preparation_time=25,
    ),
    MenuItem(
        id=4,
        name="Pescado Frito",
        description="Pescado fresco frito con patacones y ensalada verde",
        price=500,
        category="pescado",
        ingredients=["pescado", "plátano verde", "lechuga", "tomate", "cebolla"],
        allergens=["pescado"],
        preparation_time=18,
    ),
    MenuItem(
        id=5,
        name="Jugo de Chinola",
        description="Refrescante jugo de maracuyá natural",
        price=80,
        category="bebidas",
        preparation_time=5,
    ),
    MenuItem(
        id=6,
        name="Flan de Coco",
        description="Postre tradicional dominicano de coco con caramelo",
        price=120,
        category="postres",
        ingredients=["coco", "leche", "huevos", "azúcar"],
        allergens=["leche", "huevo"],
        preparation_time=3,
    ),
]
