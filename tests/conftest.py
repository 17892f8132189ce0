import pytest
from sqlalchemy import func, select
from app import create_app
from models import db, MenuItem, Ingredient, Recipe, Customer, Employee


def seed_fixture_data():
    db.session.add_all([
        MenuItem(id=1, name="Taro Milk Tea", category="Milky Series", type="Drink", price=5.50),
        MenuItem(id=2, name="Classic Milk Tea", category="Milky Series", type="Drink", price=4.75),
        MenuItem(id=3, name="Pearls (tapioca balls)", category="Topping", type="Topping", price=0.75),
        MenuItem(id=4, name="Normal (100%)", category="sweetness", type="Modification", price=0),
        MenuItem(id=5, name="Regular", category="ice", type="Modification", price=0),
    ])
    db.session.add_all([
        Ingredient(id=1, name="Taro powder", stock=100, unit="g"),
        Ingredient(id=2, name="Milk", stock=100, unit="oz"),
        Ingredient(id=3, name="Tapioca pearls (raw)", stock=100, unit="serving"),
        Ingredient(id=4, name="Ice", stock=100, unit="scoop"),
        Ingredient(id=5, name="Cups", stock=100, unit="unit"),
        Ingredient(id=6, name="Straws", stock=100, unit="unit"),
        Ingredient(id=7, name="Napkins", stock=100, unit="unit"),
        Ingredient(id=8, name="Black tea leaves", stock=21, unit="g"),
        Ingredient(id=9, name="Matcha powder", stock=20, unit="g"),
    ])
    db.session.add_all([
        Recipe(item_name="Taro Milk Tea", ingredient_id=1, quantity=3),
        Recipe(item_name="Taro Milk Tea", ingredient_id=2, quantity=4),
        Recipe(item_name="Classic Milk Tea", ingredient_id=8, quantity=2),
        Recipe(item_name="Matcha Shot", ingredient_id=9, quantity=0),
    ])
    db.session.add_all([
        Customer(id=1, name="Regular Rita", phone="5550001", points=200),
        Customer(id=2, name="New Nico", phone="5550002", points=40),
        Employee(id=1, name="Casey", role="cashier"),
    ])
    db.session.commit()


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("BUBBLETEA_POS_LOG", str(tmp_path / "pos.log"))
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SEED_DEMO_DATA": False,
    })
    with app.app_context():
        seed_fixture_data()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "pos.log"


def stock(name):
    return db.session.execute(select(Ingredient.stock).where(Ingredient.name == name)).scalar_one()


def points(customer_id):
    return db.session.execute(select(Customer.points).where(Customer.id == customer_id)).scalar_one()


def count(model):
    return db.session.execute(select(func.count()).select_from(model)).scalar_one()
