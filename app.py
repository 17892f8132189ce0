# app.py
import os
from flask import Flask, request, jsonify
from sqlalchemy import select
from models import db, MenuItem
import inventory
import utils
from orders import OrderRequest, OrderError, submit_order

def create_app(test_config=None):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-key-change")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///bubbletea_pos.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SEED_DEMO_DATA"] = True
    if test_config:
        app.config.update(test_config)
    db.init_app(app)

    with app.app_context():
        db.create_all()
        if app.config["SEED_DEMO_DATA"]:
            utils.seed_menu_and_inventory(app)

    register_routes(app)
    return app

def _menu_row(m):
    return {"menuitemid": m.id, "name": m.name, "category": m.category, "type": m.type, "price": m.price}

def register_routes(app):

    @app.route("/api/health")
    def api_health():
        return jsonify({"status": "ok"})

    @app.route("/api/menu")
    def api_menu():
        try:
            items = db.session.execute(select(MenuItem).order_by(MenuItem.id)).scalars().all()
            drinks = [m for m in items if m.type == "Drink" or m.category == "Miscellaneous"]
            # Seasonal, then Miscellaneous, after the regular categories
            order = {"Seasonal": 1, "Miscellaneous": 2}
            categories = sorted({m.category for m in drinks}, key=lambda c: (order.get(c, 0), c))
            return jsonify({
                "categories": [{"category": c} for c in categories],
                "menu_items": [_menu_row(m) for m in items],
                "toppings": sorted(
                    (_menu_row(m) for m in items if m.type == "Topping" and m.available),
                    key=lambda r: r["name"],
                ),
                "sweetness_options": [_menu_row(m) for m in items if m.type == "Modification" and m.category == "sweetness"],
                "ice_options": [_menu_row(m) for m in items if m.type == "Modification" and m.category == "ice"],
            })
        except Exception as e:
            utils.log(f"api_menu error: {e}")
            return jsonify({"error": "An error occurred while fetching the menu."}), 500

    @app.route("/api/orders", methods=["POST"])
    def api_orders():
        try:
            req = OrderRequest.from_json(request.get_json(silent=True))
            result = submit_order(req)
        except OrderError as e:
            utils.log(f"api_orders error ({e.status_code}): {e.message}")
            body = {"success": False, "error": e.message}
            if e.detail:
                body["details"] = e.detail
            return jsonify(body), e.status_code
        return jsonify({"success": True, "orderId": result.order_id}), 201

    @app.route("/api/manager/inventory/low-stock")
    def api_low_stock():
        threshold = request.args.get("threshold", inventory.LOW_STOCK_THRESHOLD, type=float)
        items = inventory.low_stock_ingredients(db.session, threshold)
        return jsonify({"items": [
            {"id": i.ingredient_id, "name": i.name, "stock": i.stock} for i in items
        ]})

if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", 3001)), debug=True)
