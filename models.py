# models.py
from datetime import datetime
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

class MenuItem(db.Model):
    __tablename__ = "menu_items"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, unique=True, nullable=False)
    category = db.Column(db.String, nullable=False)
    type = db.Column(db.String, nullable=False, default="Drink")  # Drink, Topping, Modification
    price = db.Column(db.Float, nullable=False, default=0.0)
    available = db.Column(db.Boolean, default=True)

class Ingredient(db.Model):
    __tablename__ = "ingredients"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, unique=True, nullable=False)
    # may go negative, orders never block on stock
    stock = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String, nullable=False, default="unit")

class Recipe(db.Model):
    __tablename__ = "recipes"
    id = db.Column(db.Integer, primary_key=True)
    # matched against OrderItem.item_name, not a foreign key
    item_name = db.Column(db.String, nullable=False, index=True)
    ingredient_id = db.Column(db.Integer, db.ForeignKey("ingredients.id"), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1.0)

class Customer(db.Model):
    __tablename__ = "customers"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    phone = db.Column(db.String, unique=True, nullable=True)
    points = db.Column(db.Integer, nullable=False, default=0)

class Employee(db.Model):
    __tablename__ = "employees"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    role = db.Column(db.String, nullable=False, default="cashier")

class Order(db.Model):
    __tablename__ = "orders"
    id = db.Column(db.Integer, primary_key=True)
    order_date = db.Column(db.Date, nullable=False)
    order_time = db.Column(db.Time, nullable=False)
    total = db.Column(db.Float, nullable=False, default=0.0)
    discount = db.Column(db.Float, nullable=False, default=0.0)
    rewards = db.Column(db.String, nullable=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)

class OrderItem(db.Model):
    __tablename__ = "order_items"
    id = db.Column(db.Integer, primary_key=True)
    order_id_fk = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    item_name = db.Column(db.String, nullable=False)
    modifications = db.Column(db.String, nullable=False, default="")
    toppings = db.Column(db.String, nullable=False, default="")
    price = db.Column(db.Float, nullable=False)

class Payment(db.Model):
    __tablename__ = "payments"
    id = db.Column(db.Integer, primary_key=True)
    order_id_fk = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    payment_type = db.Column(db.String, nullable=False)
    amount = db.Column(db.Float, nullable=False)
    status = db.Column(db.String, nullable=False, default="Completed")
    created_at = db.Column(db.DateTime, default=datetime.now)
