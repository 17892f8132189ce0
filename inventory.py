# inventory.py
"""Stock deduction for submitted orders.

Every persisted OrderItem row is one physical unit. Its usage is the recipe
for its item name, one serving of each mapped topping ingredient and one of
each standard consumable. Usage of all units is summed per ingredient and
applied as one ``stock = stock - amount`` update per ingredient, which ends
at the same stock levels as deducting unit by unit.

Stock is allowed to go negative. Anything that ends below
LOW_STOCK_THRESHOLD is logged and reported back, never refused.
"""
from collections import Counter
from dataclasses import dataclass
from sqlalchemy import select, update
from models import Ingredient, Recipe
import utils

LOW_STOCK_THRESHOLD = 20

STANDARD_CONSUMABLES = ("Ice", "Cups", "Straws", "Napkins")

# topping name on the menu -> raw ingredient kept in stock
TOPPING_INGREDIENTS = {
    "Pearls (tapioca balls)": "Tapioca pearls (raw)",
    "Lychee Jelly": "Lychee jelly (raw)",
    "Pudding": "Pudding mix",
    "Red Bean": "Red beans",
    "Aloe Vera": "Aloe vera cubes",
    "Crystal Boba": "Crystal boba (raw)",
}


@dataclass(frozen=True)
class LowStock:
    ingredient_id: int
    name: str
    stock: float


class StockLookup:
    """Per-order cache of recipe rows and ingredient ids."""

    def __init__(self, session):
        self.session = session
        self._recipes = {}
        self._ingredient_ids = {}

    def recipe(self, item_name):
        if item_name not in self._recipes:
            rows = self.session.execute(
                select(Recipe.ingredient_id, Recipe.quantity).where(Recipe.item_name == item_name)
            ).all()
            if not rows:
                utils.log(f"Inventory: no recipe for '{item_name}'")
            self._recipes[item_name] = [(r.ingredient_id, r.quantity) for r in rows]
        return self._recipes[item_name]

    def ingredient_id(self, name):
        if name not in self._ingredient_ids:
            ing_id = self.session.execute(
                select(Ingredient.id).where(Ingredient.name == name)
            ).scalar_one_or_none()
            if ing_id is None:
                utils.log(f"Inventory: ingredient '{name}' missing, nothing deducted")
            self._ingredient_ids[name] = ing_id
        return self._ingredient_ids[name]


def unit_usage(item, lookup):
    """Ingredient id -> amount consumed by one unit of ``item``."""
    usage = Counter()
    for ingredient_id, quantity in lookup.recipe(item.item_name):
        usage[ingredient_id] += quantity
    for topping in utils.split_toppings(item.toppings):
        raw = TOPPING_INGREDIENTS.get(topping)
        if raw is None:
            continue
        ingredient_id = lookup.ingredient_id(raw)
        if ingredient_id is not None:
            usage[ingredient_id] += 1
    for name in STANDARD_CONSUMABLES:
        ingredient_id = lookup.ingredient_id(name)
        if ingredient_id is not None:
            usage[ingredient_id] += 1
    return usage


def deduct_stock(session, ingredient_id, amount):
    """Atomically decrement one ingredient, returning the new stock (None if it doesn't exist)."""
    result = session.execute(
        update(Ingredient)
        .where(Ingredient.id == ingredient_id)
        .values(stock=Ingredient.stock - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    return session.execute(select(Ingredient.stock).where(Ingredient.id == ingredient_id)).scalar_one()


def deduct_order_inventory(session, items):
    """Deduct stock for every unit in ``items`` and return the LowStock observations."""
    lookup = StockLookup(session)
    total = Counter()
    for item in items:
        total.update(unit_usage(item, lookup))

    low = []
    for ingredient_id, amount in total.items():
        stock = deduct_stock(session, ingredient_id, amount)
        if stock is None or stock >= LOW_STOCK_THRESHOLD:
            continue
        name = session.execute(select(Ingredient.name).where(Ingredient.id == ingredient_id)).scalar_one()
        low.append(LowStock(ingredient_id=ingredient_id, name=name, stock=stock))
        utils.log(f"Low stock: {name} at {stock} (below {LOW_STOCK_THRESHOLD})")
    return low


def low_stock_ingredients(session, threshold=LOW_STOCK_THRESHOLD):
    rows = session.execute(
        select(Ingredient).where(Ingredient.stock < threshold).order_by(Ingredient.stock)
    ).scalars().all()
    return [LowStock(ingredient_id=i.id, name=i.name, stock=i.stock) for i in rows]
