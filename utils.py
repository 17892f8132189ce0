# utils.py
import os
from datetime import datetime
from models import db, MenuItem, Ingredient, Recipe, Customer, Employee

NOT_SELECTED = ("", "N/A", None)

def log(msg):
    ts = datetime.now().isoformat(sep=" ", timespec="seconds")
    line = f"[{ts}] {msg}\n"
    log_file = os.environ.get("BUBBLETEA_POS_LOG", "bubbletea_pos.log")
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(line)

def format_modifications(customizations):
    """'Sweetness: X, Ice: Y' from the selections that were actually made."""
    if not customizations:
        return ""
    parts = []
    sweetness = customizations.get("sweetness")
    ice = customizations.get("ice")
    if sweetness not in NOT_SELECTED:
        parts.append(f"Sweetness: {sweetness}")
    if ice not in NOT_SELECTED:
        parts.append(f"Ice: {ice}")
    return ", ".join(parts)

def format_toppings(toppings):
    if not toppings:
        return ""
    return ", ".join(str(t).strip() for t in toppings if str(t).strip())

def split_toppings(text):
    if not text:
        return []
    return [t.strip() for t in text.split(",") if t.strip()]

def seed_menu_and_inventory(app):
    """Create tables and seed demo data. Safe to call multiple times."""
    with app.app_context():
        db.create_all()
        if MenuItem.query.count() > 0 or Ingredient.query.count() > 0:
            log("Seed: existing data found, skipping reseed.")
            return
        seed_menu = [
            ("Classic Milk Tea", "Milky Series", "Drink", 4.75),
            ("Taro Milk Tea", "Milky Series", "Drink", 5.25),
            ("Brown Sugar Boba Milk", "Milky Series", "Drink", 5.75),
            ("Matcha Latte", "Milky Series", "Drink", 5.50),
            ("Mango Green Tea", "Fruity Beverage", "Drink", 4.95),
            ("Strawberry Slush", "Seasonal", "Drink", 5.95),
            ("Bottled Water", "Miscellaneous", "Drink", 1.50),
            ("Pearls (tapioca balls)", "Topping", "Topping", 0.75),
            ("Lychee Jelly", "Topping", "Topping", 0.75),
            ("Pudding", "Topping", "Topping", 0.75),
            ("Red Bean", "Topping", "Topping", 0.75),
            ("Aloe Vera", "Topping", "Topping", 0.75),
            ("Crystal Boba", "Topping", "Topping", 0.95),
            ("No Sugar (0%)", "sweetness", "Modification", 0.0),
            ("Light (30%)", "sweetness", "Modification", 0.0),
            ("Half (50%)", "sweetness", "Modification", 0.0),
            ("Less (80%)", "sweetness", "Modification", 0.0),
            ("Normal (100%)", "sweetness", "Modification", 0.0),
            ("No Ice", "ice", "Modification", 0.0),
            ("Less Ice", "ice", "Modification", 0.0),
            ("Regular", "ice", "Modification", 0.0),
            ("Extra Ice", "ice", "Modification", 0.0),
        ]
        for name, cat, kind, price in seed_menu:
            db.session.add(MenuItem(name=name, category=cat, type=kind, price=price, available=True))
        seed_ingredients = [
            ("Black tea leaves", 500, "g"),
            ("Green tea leaves", 500, "g"),
            ("Milk", 400, "oz"),
            ("Taro powder", 300, "g"),
            ("Matcha powder", 200, "g"),
            ("Sugar syrup", 300, "oz"),
            ("Brown sugar syrup", 200, "oz"),
            ("Mango puree", 150, "oz"),
            ("Strawberry puree", 150, "oz"),
            ("Bottled water", 48, "unit"),
            ("Tapioca pearls (raw)", 250, "serving"),
            ("Lychee jelly (raw)", 120, "serving"),
            ("Pudding mix", 80, "serving"),
            ("Red beans", 80, "serving"),
            ("Aloe vera cubes", 60, "serving"),
            ("Crystal boba (raw)", 60, "serving"),
            ("Ice", 1000, "scoop"),
            ("Cups", 600, "unit"),
            ("Straws", 600, "unit"),
            ("Napkins", 1200, "unit"),
        ]
        ingredients = {}
        for name, stock, unit in seed_ingredients:
            ing = Ingredient(name=name, stock=stock, unit=unit)
            db.session.add(ing)
            ingredients[name] = ing
        db.session.flush()
        seed_recipes = [
            ("Classic Milk Tea", "Black tea leaves", 2), ("Classic Milk Tea", "Milk", 4), ("Classic Milk Tea", "Sugar syrup", 1),
            ("Taro Milk Tea", "Taro powder", 3), ("Taro Milk Tea", "Milk", 4), ("Taro Milk Tea", "Sugar syrup", 1),
            ("Brown Sugar Boba Milk", "Milk", 6), ("Brown Sugar Boba Milk", "Brown sugar syrup", 2),
            ("Matcha Latte", "Matcha powder", 2), ("Matcha Latte", "Milk", 5),
            ("Mango Green Tea", "Green tea leaves", 2), ("Mango Green Tea", "Mango puree", 2), ("Mango Green Tea", "Sugar syrup", 1),
            ("Strawberry Slush", "Strawberry puree", 3), ("Strawberry Slush", "Sugar syrup", 1),
            ("Bottled Water", "Bottled water", 1),
        ]
        for item_name, ing_name, qty in seed_recipes:
            db.session.add(Recipe(item_name=item_name, ingredient_id=ingredients[ing_name].id, quantity=qty))
        db.session.add(Employee(name="Demo Cashier", role="cashier"))
        db.session.add(Employee(name="Demo Manager", role="manager"))
        db.session.add(Customer(name="Demo Customer", phone="5550100", points=250))
        db.session.commit()
        log("Database seeded with menu, ingredients and recipes.")
